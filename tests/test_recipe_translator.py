"""
Recipe Translation Tests
========================

Covers language detection, the offline dictionary, the stage combinator and
the all-or-nothing fallback from the remote service to the dictionary.
Remote calls go to FakeTranslationClient (tests/conftest.py); nothing here
touches the network.
"""

from unittest.mock import MagicMock, patch

import pytest

from conftest import FakeTranslationClient
from recipe_models import Ingredient, Instruction, ParsedRecipe


def _chicken_soup():
    return ParsedRecipe(
        title="Chicken soup",
        ingredients=[
            Ingredient(name="chicken breast", amount="1", unit="pound"),
            Ingredient(name="water", amount="2", unit="cups"),
        ],
        instructions=[Instruction(text="Boil the water and add the chicken.", ingredient_indices=[0, 1])],
    )


def _cake_with_blank_row():
    return ParsedRecipe(
        title="Chocolate cake with butter and sugar",
        ingredients=[
            Ingredient(name="butter", amount="100", unit="g"),
            Ingredient(name="  "),
            Ingredient(name="sugar", amount="1", unit="cup"),
        ],
        instructions=[Instruction(text="Mix the butter and sugar.", ingredient_indices=[0, 1, 2])],
    )


def _tortilla():
    return ParsedRecipe(
        title="Tortilla de patatas",
        ingredients=[
            Ingredient(name="huevos", amount="4"),
            Ingredient(name="aceite de oliva", amount="100", unit="ml"),
        ],
        instructions=[Instruction(text="Freír las patatas en el aceite hasta que estén blandas.")],
    )


# =============================================================================
# DICTIONARY
# =============================================================================

@pytest.mark.readonly
class TestTranslateWithDictionary:

    def test_multi_word_terms_win(self):
        from cooking_dictionary import translate_with_dictionary
        assert translate_with_dictionary("olive oil") == "aceite de oliva"
        assert translate_with_dictionary("chicken breast") == "pechuga de pollo"

    def test_replaced_text_is_not_translated_again(self):
        """"bread" becomes "pan", and that "pan" is not turned into "sartén"."""
        from cooking_dictionary import translate_with_dictionary
        assert translate_with_dictionary("bread") == "pan"
        assert translate_with_dictionary("pan") == "sartén"

    def test_capitalization_preserved(self):
        from cooking_dictionary import translate_with_dictionary
        assert translate_with_dictionary("Eggs") == "Huevos"
        assert translate_with_dictionary("Olive oil") == "Aceite de oliva"

    def test_unknown_words_untouched(self):
        from cooking_dictionary import translate_with_dictionary
        assert translate_with_dictionary("carbonara") == "carbonara"
        assert translate_with_dictionary("") == ""

    def test_word_boundaries(self):
        from cooking_dictionary import translate_with_dictionary
        # "salt" must not match inside "salted" or "basalt"
        assert translate_with_dictionary("basalt") == "basalt"
        assert translate_with_dictionary("salt to taste") == "sal al gusto"


# =============================================================================
# LANGUAGE DETECTION
# =============================================================================

@pytest.mark.readonly
class TestDetectLanguage:

    def test_spanish_recipe(self):
        from recipe_translator import detect_language
        assert detect_language(_tortilla()) == "es"

    def test_english_recipe(self):
        from recipe_translator import detect_language
        assert detect_language(_chicken_soup()) == "other"

    def test_too_few_indicators(self):
        from recipe_translator import detect_language
        recipe = ParsedRecipe(title="Pasta carbonara", ingredients=[Ingredient(name="eggs", amount="2")])
        assert detect_language(recipe) == "unknown"

    def test_no_clear_winner(self):
        from recipe_translator import detect_language
        recipe = ParsedRecipe(title="salt sugar sal azúcar")
        assert detect_language(recipe) == "unknown"


# =============================================================================
# STAGE COMBINATOR
# =============================================================================

@pytest.mark.readonly
class TestFirstSuccessful:

    def test_returns_first_success_and_skips_rest(self):
        from recipe_translator import StageResult, first_successful
        recipe = ParsedRecipe(title="x")
        later = MagicMock()
        result = first_successful([
            lambda: StageResult(method="a", error="boom"),
            lambda: StageResult(method="b", recipe=recipe),
            later,
        ])
        assert result.method == "b"
        assert result.recipe is recipe
        later.assert_not_called()

    def test_returns_last_failure(self):
        from recipe_translator import StageResult, first_successful
        result = first_successful([
            lambda: StageResult(method="a", error="first"),
            lambda: StageResult(method="b", error="second"),
        ])
        assert not result.ok
        assert result.error == "second"

    def test_requires_a_stage(self):
        from recipe_translator import first_successful
        with pytest.raises(ValueError):
            first_successful([])


# =============================================================================
# TRANSLATE RECIPE
# =============================================================================

class TestTranslateRecipe:
    """translate_recipe end to end with a fake remote client."""

    @pytest.mark.readonly
    def test_dictionary_only_never_calls_remote(self):
        from recipe_translator import translate_recipe
        client = MagicMock()
        recipe = ParsedRecipe(title="Pasta carbonara", ingredients=[Ingredient(name="eggs", unit="pcs", amount="2")])

        result = translate_recipe(recipe, mode="dictionaryOnly", client=client)

        assert result.translated is True
        assert result.method == "dictionary"
        assert result.recipe.title == "Pasta carbonara"
        assert result.recipe.ingredients[0].name == "huevos"
        assert result.recipe.ingredients[0].amount == "2"
        client.translate.assert_not_called()

    @pytest.mark.readonly
    def test_already_spanish_is_returned_unchanged(self):
        from recipe_translator import translate_recipe
        client = FakeTranslationClient()
        recipe = _tortilla()

        result = translate_recipe(recipe, client=client)

        assert result.translated is False
        assert result.method is None
        assert result.original_language == "es"
        assert result.recipe == recipe
        assert client.calls == []

    @pytest.mark.readonly
    def test_api_translation(self):
        from recipe_translator import translate_recipe
        client = FakeTranslationClient()

        result = translate_recipe(_chicken_soup(), client=client)

        assert result.method == "api"
        assert result.message == "Recipe translated to Spanish"
        assert result.original_language == "other"
        assert [i.name for i in result.recipe.ingredients] == ["[es] chicken breast", "[es] water"]
        assert result.recipe.ingredients[0].unit == "[es] pound"
        assert result.recipe.ingredients[0].amount == "1"
        assert result.recipe.instructions[0].ingredient_indices == frozenset({0, 1})

    @pytest.mark.readonly
    def test_each_distinct_text_sent_once(self):
        from recipe_translator import translate_recipe
        client = FakeTranslationClient()
        recipe = ParsedRecipe(
            title="Chicken and rice",
            ingredients=[Ingredient(name="water"), Ingredient(name="water"), Ingredient(name="rice")],
            instructions=[Instruction(text="Boil the water and add the rice.")],
        )
        translate_recipe(recipe, client=client)
        assert sorted(client.calls) == sorted(set(client.calls))

    @pytest.mark.readonly
    def test_empty_ingredient_name_falls_back_to_dictionary(self):
        from recipe_translator import translate_recipe
        client = FakeTranslationClient(responses={"water": ""})

        result = translate_recipe(_chicken_soup(), client=client)

        assert result.method == "dictionary"
        assert [i.name for i in result.recipe.ingredients] == ["pechuga de pollo", "agua"]
        # Nothing from the discarded remote batch leaks into the result
        assert not any("[es]" in text for text in _all_texts(result.recipe))

    @pytest.mark.readonly
    def test_blank_ingredient_row_does_not_discard_remote_batch(self):
        from recipe_translator import translate_recipe
        client = FakeTranslationClient()

        result = translate_recipe(_cake_with_blank_row(), client=client)

        assert result.method == "api"
        assert [i.name for i in result.recipe.ingredients] == ["[es] butter", "[es] sugar"]
        assert "" not in client.calls

    @pytest.mark.readonly
    @pytest.mark.parametrize("mode", ["auto", "dictionaryOnly"])
    def test_blank_ingredient_rows_are_dropped(self, mode):
        from recipe_translator import translate_recipe
        client = FakeTranslationClient(fail_on={"butter"})

        result = translate_recipe(_cake_with_blank_row(), mode=mode, client=client)

        assert result.method == "dictionary"
        assert [i.name for i in result.recipe.ingredients] == ["mantequilla", "azúcar"]
        # Indices shift down past the removed row
        assert result.recipe.instructions[0].ingredient_indices == frozenset([0, 1])

    @pytest.mark.readonly
    def test_remote_error_falls_back_to_dictionary(self):
        from recipe_translator import translate_recipe
        client = FakeTranslationClient(fail_on={"chicken breast"})

        result = translate_recipe(_chicken_soup(), client=client)

        assert result.method == "dictionary"
        assert result.message == "Translation service unavailable, translated with the offline dictionary"
        assert not any("[es]" in text for text in _all_texts(result.recipe))

    @pytest.mark.slow
    @pytest.mark.readonly
    def test_batch_timeout_falls_back_to_dictionary(self):
        from recipe_translator import translate_recipe
        client = FakeTranslationClient(slow_on={"water"}, delay=1.0)

        result = translate_recipe(_chicken_soup(), client=client, batch_timeout=0.2)

        assert result.method == "dictionary"
        assert result.recipe.ingredients[1].name == "agua"

    @pytest.mark.readonly
    def test_original_recipe_not_modified(self):
        from recipe_translator import translate_recipe
        recipe = _chicken_soup()
        translate_recipe(recipe, client=FakeTranslationClient())
        assert recipe.ingredients[0].name == "chicken breast"

    @pytest.mark.readonly
    def test_unknown_mode(self):
        from errors import InputError
        from recipe_translator import translate_recipe
        with pytest.raises(InputError, match="Unknown translation mode"):
            translate_recipe(_chicken_soup(), mode="telepathy", client=FakeTranslationClient())

    @pytest.mark.readonly
    def test_builds_and_closes_client_when_none_given(self):
        from recipe_translator import translate_recipe
        client = MagicMock()
        client.translate.side_effect = lambda text: f"ES {text}"

        with patch('recipe_translator.get_translation_client', return_value=client):
            result = translate_recipe(_chicken_soup())

        assert result.method == "api"
        client.close.assert_called_once()

    @pytest.mark.readonly
    def test_result_to_dict(self):
        from recipe_translator import translate_recipe
        data = translate_recipe(_chicken_soup(), mode="dictionaryOnly").to_dict()
        assert set(data) == {'recipe', 'translated', 'method', 'originalLanguage', 'message'}
        assert data['recipe']['ingredients'][1]['name'] == "agua"


def _all_texts(recipe):
    texts = [recipe.title]
    texts.extend(i.name for i in recipe.ingredients)
    texts.extend(i.unit for i in recipe.ingredients)
    texts.extend(i.text for i in recipe.instructions)
    return texts

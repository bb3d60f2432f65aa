"""
Recipe Translator
=================

Translates a ParsedRecipe into Spanish.

Two stages, tried in order by first_successful():
1. api: every text field goes to the remote translation service
   concurrently. Any failure, a batch timeout, or an ingredient name that
   comes back empty fails the whole stage.
2. dictionary: offline term substitution over the original recipe. Never
   fails.

A failed api stage is discarded entirely; the dictionary stage always starts
from the untouched original, so a returned recipe is never a mix of both.
Ingredient rows with a blank name are dropped before either stage runs.

Usage:
    from recipe_translator import translate_recipe

    result = translate_recipe(recipe, mode="auto")
    result.method  # "api", "dictionary" or None (already Spanish)
"""

import concurrent.futures
import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional

from config import get_translation_config
from cooking_dictionary import ENGLISH_INDICATORS, SPANISH_INDICATORS, translate_with_dictionary
from errors import InputError
from recipe_models import ParsedRecipe
from tools.logging_utils import get_logger
from translation_client import get_translation_client

logger = get_logger(__name__)

TARGET_LANGUAGE = "es"
MIN_INDICATORS = 3
DOMINANCE_RATIO = 1.5

_WORD = re.compile(r"[^\W\d_]+")
_SPANISH_MARKS = re.compile(r"[áéíóúüñ]")


class TranslationMode(str, Enum):
    AUTO = "auto"
    DICTIONARY_ONLY = "dictionaryOnly"


@dataclass(frozen=True)
class StageResult:
    """Outcome of one translation stage: a recipe on success, an error otherwise."""
    method: str
    recipe: Optional[ParsedRecipe] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.recipe is not None


@dataclass(frozen=True)
class TranslationResult:
    recipe: ParsedRecipe
    translated: bool
    method: Optional[str]
    original_language: str
    message: str

    def to_dict(self) -> Dict:
        return {
            'recipe': self.recipe.to_dict(),
            'translated': self.translated,
            'method': self.method,
            'originalLanguage': self.original_language,
            'message': self.message,
        }


def first_successful(stages: Iterable[Callable[[], StageResult]]) -> StageResult:
    """
    Run stages in order and return the first successful result.

    Returns the last failure when every stage fails.

    Raises:
        ValueError: If no stages were given
    """
    last = None
    for stage in stages:
        result = stage()
        if result.ok:
            return result
        logger.warning(f"Translation stage '{result.method}' failed: {result.error}")
        last = result
    if last is None:
        raise ValueError("first_successful() needs at least one stage")
    return last


# =============================================================================
# LANGUAGE DETECTION
# =============================================================================

def detect_language(recipe: ParsedRecipe) -> str:
    """
    Guess the recipe's language from indicator words.

    Looks at the title, description, ingredient names and instruction texts.
    Words with Spanish diacritics that are not English indicators ("sauté")
    also count toward Spanish.

    Returns:
        "es", "other" or "unknown" (fewer than 3 indicators, or no clear winner)
    """
    parts = [recipe.title, recipe.description or ""]
    parts.extend(ing.name for ing in recipe.ingredients)
    parts.extend(inst.text for inst in recipe.instructions)

    english = 0
    spanish = 0
    for word in _WORD.findall(" ".join(parts).lower()):
        if word in ENGLISH_INDICATORS:
            english += 1
        elif word in SPANISH_INDICATORS or _SPANISH_MARKS.search(word):
            spanish += 1

    if english + spanish < MIN_INDICATORS:
        return "unknown"
    if spanish > english * DOMINANCE_RATIO:
        return "es"
    if english > spanish * DOMINANCE_RATIO:
        return "other"
    return "unknown"


# =============================================================================
# STAGES
# =============================================================================

def _map_text_fields(recipe: ParsedRecipe, fn: Callable[[str], str]) -> ParsedRecipe:
    """Apply fn to every translatable text field; blank fields are left alone."""
    def apply(text: Optional[str]) -> Optional[str]:
        if not text or not text.strip():
            return text
        return fn(text)

    return replace(
        recipe,
        title=apply(recipe.title),
        description=apply(recipe.description),
        notes=apply(recipe.notes),
        tags=[apply(tag) for tag in recipe.tags],
        ingredients=[
            replace(ing, name=apply(ing.name), unit=apply(ing.unit))
            for ing in recipe.ingredients
        ],
        instructions=[replace(inst, text=apply(inst.text)) for inst in recipe.instructions],
    )


def _drop_blank_ingredients(recipe: ParsedRecipe) -> ParsedRecipe:
    """Remove ingredient rows with no name, remapping instruction indices."""
    kept: Dict[int, int] = {}
    ingredients = []
    for index, ing in enumerate(recipe.ingredients):
        if (ing.name or "").strip():
            kept[index] = len(ingredients)
            ingredients.append(ing)

    if len(ingredients) == len(recipe.ingredients):
        return recipe

    logger.debug(f"Dropping {len(recipe.ingredients) - len(ingredients)} blank ingredient rows from '{recipe.title}'")
    return replace(
        recipe,
        ingredients=ingredients,
        instructions=[
            replace(inst, ingredient_indices=frozenset(kept[i] for i in inst.ingredient_indices if i in kept))
            for inst in recipe.instructions
        ],
    )


def _collect_texts(recipe: ParsedRecipe) -> List[str]:
    """Distinct non-blank text fields, in first-seen order."""
    seen: Dict[str, None] = {}

    def collect(text: str) -> str:
        seen.setdefault(text, None)
        return text

    _map_text_fields(recipe, collect)
    return list(seen)


def _dictionary_stage(recipe: ParsedRecipe) -> StageResult:
    return StageResult(method="dictionary", recipe=_map_text_fields(recipe, translate_with_dictionary))


def _api_stage(recipe: ParsedRecipe, client, batch_timeout: float, max_workers: int) -> StageResult:
    """
    Translate every text field remotely and wait for all calls.

    The batch timeout is the only cancellation point; hitting it counts as a
    failure like any other.
    """
    texts = _collect_texts(recipe)
    if not texts:
        return StageResult(method="api", recipe=recipe)

    executor = concurrent.futures.ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(texts))))
    try:
        future_to_text = {executor.submit(client.translate, text): text for text in texts}
        done, not_done = concurrent.futures.wait(future_to_text, timeout=batch_timeout)
    finally:
        # Do not block on stragglers after a timeout
        executor.shutdown(wait=False, cancel_futures=True)

    if not_done:
        return StageResult(
            method="api",
            error=f"{len(not_done)} of {len(texts)} texts not translated within {batch_timeout}s",
        )

    translations: Dict[str, str] = {}
    for future in done:
        text = future_to_text[future]
        try:
            result = future.result()
        except Exception as e:
            return StageResult(method="api", error=f"Failed to translate {text[:40]!r}: {e}")
        translations[text] = result if isinstance(result, str) else ""

    translated = _map_text_fields(recipe, lambda text: translations.get(text, text))

    empty = [
        i for i, (before, after) in enumerate(zip(recipe.ingredients, translated.ingredients))
        if (before.name or "").strip() and not (after.name or "").strip()
    ]
    if empty:
        return StageResult(method="api", error=f"Empty ingredient names at positions {empty}")

    return StageResult(method="api", recipe=translated)


# =============================================================================
# ENTRY POINT
# =============================================================================

def _coerce_mode(mode) -> TranslationMode:
    if isinstance(mode, TranslationMode):
        return mode
    try:
        return TranslationMode(mode or TranslationMode.AUTO.value)
    except ValueError:
        raise InputError(
            f"Unknown translation mode: {mode!r}",
            operation="translate_recipe",
            details={'allowed': ", ".join(m.value for m in TranslationMode)},
        )


def translate_recipe(
    recipe: ParsedRecipe,
    mode="auto",
    client=None,
    batch_timeout: Optional[float] = None,
    max_workers: Optional[int] = None,
) -> TranslationResult:
    """
    Translate a recipe into Spanish.

    Args:
        recipe: Recipe to translate (never modified)
        mode: "auto" (remote service, dictionary fallback) or "dictionaryOnly"
        client: Object with translate(text) -> str; built from config when
            omitted and the mode needs it
        batch_timeout: Seconds to wait for the whole remote fan-out
        max_workers: Concurrent remote calls

    Returns:
        TranslationResult; method names the stage that produced the recipe

    Raises:
        InputError: If mode is not recognized
    """
    mode = _coerce_mode(mode)
    language = detect_language(recipe)

    if language == TARGET_LANGUAGE:
        return TranslationResult(
            recipe=recipe,
            translated=False,
            method=None,
            original_language=language,
            message="Recipe is already in Spanish",
        )

    # Blank rows carry nothing to translate and must not reach the result
    source = _drop_blank_ingredients(recipe)
    config = get_translation_config()
    owned_client = None
    stages: List[Callable[[], StageResult]] = []

    if mode is TranslationMode.AUTO:
        if client is None:
            client = owned_client = get_translation_client()
        timeout = batch_timeout if batch_timeout is not None else config['batch_timeout']
        workers = max_workers if max_workers is not None else config['max_workers']
        stages.append(lambda: _api_stage(source, client, timeout, workers))

    stages.append(lambda: _dictionary_stage(source))

    try:
        result = first_successful(stages)
    finally:
        if owned_client is not None:
            owned_client.close()

    if result.method == "api":
        message = "Recipe translated to Spanish"
    elif mode is TranslationMode.AUTO:
        message = "Translation service unavailable, translated with the offline dictionary"
    else:
        message = "Recipe translated with the offline dictionary"

    logger.info(f"Translated '{recipe.title}' via {result.method} (detected: {language})")
    return TranslationResult(
        recipe=result.recipe,
        translated=True,
        method=result.method,
        original_language=language,
        message=message,
    )

"""Recipe validation shared by the bulk importer and the review routes."""

from recipe_models import ParsedRecipe

# Placeholder texts some exporters write instead of real content
ERROR_PLACEHOLDERS = [
    "could not detect ingredients",
    "could not detect instructions",
    "no ingredients found",
    "no instructions found",
]


def _is_error_placeholder(text: str) -> bool:
    """Check if text is an error placeholder, not real content."""
    if not text:
        return False
    text_lower = text.strip().lower()
    return any(placeholder in text_lower for placeholder in ERROR_PLACEHOLDERS)


def _is_meaningful(text: str) -> bool:
    return bool(text and text.strip()) and not _is_error_placeholder(text)


def count_meaningful_ingredients(recipe: ParsedRecipe) -> int:
    """Ingredient rows with a real name; section headers do not count."""
    return sum(1 for ing in recipe.ingredients if not ing.is_header and _is_meaningful(ing.name))


def count_meaningful_instructions(recipe: ParsedRecipe) -> int:
    """Steps with real text; "**Header**" rows do not count."""
    count = 0
    for inst in recipe.instructions:
        text = inst.text.strip()
        if text.startswith("**") and text.endswith("**"):
            continue
        if _is_meaningful(text):
            count += 1
    return count


def is_valid_recipe_content(recipe: ParsedRecipe) -> tuple[bool, str]:
    """
    Check that a recipe is worth persisting.

    A valid recipe must have:
    - A non-empty title AND
    - At least 1 ingredient or 1 instruction with actual content

    Args:
        recipe: Recipe about to be saved

    Returns:
        Tuple of (is_valid: bool, reason: str)
    """
    if not recipe.title.strip():
        return False, "Recipe has no title"

    ingredient_count = count_meaningful_ingredients(recipe)
    instruction_count = count_meaningful_instructions(recipe)

    if ingredient_count == 0 and instruction_count == 0:
        return False, (
            f"No ingredients and no instructions (had {len(recipe.ingredients)} ingredient "
            f"and {len(recipe.instructions)} instruction rows)"
        )

    return True, "Valid recipe content"

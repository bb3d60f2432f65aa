"""
Ingredient line tokenization for export imports.

Splits free-text lines like "1 1/2 cups flour" or "100 g harina (2/3 tazas)"
into amount / unit / name. Segmentation is best-effort; the guarantee is that
nothing is lost: if a line cannot be split, the whole line becomes the name and
amount/unit stay empty.
"""

import re
import unicodedata

from recipe_models import Ingredient

FRACTION_GLYPHS = {
    '¼': '1/4', '½': '1/2', '¾': '3/4',
    '⅓': '1/3', '⅔': '2/3',
    '⅕': '1/5', '⅖': '2/5', '⅗': '3/5', '⅘': '4/5',
    '⅙': '1/6', '⅚': '5/6',
    '⅛': '1/8', '⅜': '3/8', '⅝': '5/8', '⅞': '7/8',
}

_GLYPHS = ''.join(FRACTION_GLYPHS)

# Closed unit vocabulary (English and Spanish). Longer spellings first so the
# alternation never stops at a prefix ("tbsp" before "tb", "kg" before "g").
UNIT_VOCABULARY = [
    # volume
    'tablespoons', 'tablespoon', 'teaspoons', 'teaspoon', 'cucharaditas', 'cucharadita',
    'cucharadas', 'cucharada', 'tbsps', 'tbsp', 'tsps', 'tsp', 'cups', 'cup', 'tazas', 'taza',
    'milliliters', 'milliliter', 'mililitros', 'mililitro', 'liters', 'liter', 'litros', 'litro',
    'ml', 'cl', 'dl', 'l',
    # weight
    'kilograms', 'kilogram', 'kilos', 'kilo', 'kg', 'grams', 'gram', 'gramos', 'gramo', 'gr', 'g',
    'ounces', 'ounce', 'onzas', 'onza', 'oz', 'pounds', 'pound', 'libras', 'libra', 'lbs', 'lb',
    # small amounts
    'pinches', 'pinch', 'pizcas', 'pizca', 'dashes', 'dash', 'chorritos', 'chorrito',
    # pieces and containers
    'cloves', 'clove', 'dientes', 'diente', 'pieces', 'piece', 'piezas', 'pieza', 'trozos', 'trozo',
    'slices', 'slice', 'rebanadas', 'rebanada', 'rodajas', 'rodaja', 'cans', 'can', 'latas', 'lata',
    'botes', 'bote', 'packages', 'package', 'paquetes', 'paquete', 'pkg', 'sobres', 'sobre',
    'unidades', 'unidad', 'uds', 'ud', 'pcs', 'pc',
]

_AMOUNT = rf'[\d{_GLYPHS}][\d{_GLYPHS}/.,\s\-–]*'
_UNIT = '|'.join(re.escape(u) for u in UNIT_VOCABULARY)

# amount, unit, name ("2 cups flour", "100g harina", "1 tbsp. sugar")
_AMOUNT_UNIT_NAME = re.compile(rf'^({_AMOUNT})\s*({_UNIT})\.?\s+(.+)$', re.IGNORECASE)
# amount, name ("2 eggs")
_AMOUNT_NAME = re.compile(rf'^({_AMOUNT})\s+(.+)$')
# Trailing parenthesised secondary measurement ("(2/3 cups)")
_SECONDARY = re.compile(rf'\s*\(({_AMOUNT})\s*({_UNIT}|[^\d\s)][^)]*)?\)\s*$', re.IGNORECASE)


def normalize_amount(amount: str) -> str:
    """Replace unicode fraction glyphs with ASCII fractions and tidy spacing."""
    result = amount
    for glyph, fraction in FRACTION_GLYPHS.items():
        # "1½" -> "1 1/2"
        result = re.sub(rf'(\d){glyph}', rf'\1 {fraction}', result)
        result = result.replace(glyph, fraction)
    return re.sub(r'\s+', ' ', result).strip()


def normalize_ingredient_name(name: str) -> str:
    """Lower-case, accent-folded, single-spaced key for matching names."""
    decomposed = unicodedata.normalize('NFD', name.lower())
    stripped = ''.join(c for c in decomposed if unicodedata.category(c) != 'Mn')
    return re.sub(r'\s+', ' ', stripped).strip()


def _split_secondary(text: str):
    """Return (main_text, amount2, unit2); amount2 is None when nothing split off."""
    match = _SECONDARY.search(text)
    if not match:
        return text, None, None
    main_text = text[:match.start()].strip()
    if not main_text:
        return text, None, None
    amount2 = normalize_amount(match.group(1))
    unit2 = (match.group(2) or '').strip()
    return main_text, amount2, unit2


def parse_ingredient_line(text: str) -> Ingredient:
    """
    Parse a single ingredient line into structured data.

    Args:
        text: Raw line, e.g. "1 ½ cups flour (200 g)"

    Returns:
        Ingredient with amount/unit/name split out. When the line does not
        start with a quantity, the entire line is the name.
    """
    line = re.sub(r'\s+', ' ', text or '').strip()
    if not line:
        return Ingredient(name='')

    main_text, amount2, unit2 = _split_secondary(line)

    match = _AMOUNT_UNIT_NAME.match(main_text)
    if match:
        amount, unit, name = match.group(1), match.group(2), match.group(3)
    else:
        match = _AMOUNT_NAME.match(main_text)
        if match:
            amount, unit, name = match.group(1), '', match.group(2)
        else:
            amount, unit, name = '', '', main_text

    name = name.strip()
    if not name:
        # Never drop the line: fall back to the whole text as the name
        return Ingredient(name=line)

    return Ingredient(
        name=name,
        amount=normalize_amount(amount),
        unit=unit.strip(),
        amount2=amount2,
        unit2=unit2 if amount2 is not None else None,
    )

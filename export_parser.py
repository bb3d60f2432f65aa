"""
Export Parser
=============

Converts a recipe-manager HTML export into ParsedRecipe records.

Supported layouts:
- CopyMeThat export: one ``.recipe`` block per recipe, fields addressed by id
  (``#name``, ``#recipeIngredients``, ``#recipeInstructions``, ...)
- Generic HTML: ``article`` / ``.card`` / ``section`` blocks with a heading,
  an unordered ingredient list and an ordered instruction list. Only used when
  the CopyMeThat layout yields nothing.

parse_export() never raises on malformed HTML. A block that fails extraction is
logged and skipped; an empty list means "nothing found".
"""

import re
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, Tag

from recipe_models import Ingredient, Instruction, ParsedRecipe
from tools.logging_utils import get_logger
from utils.ingredient_parsing import normalize_ingredient_name, parse_ingredient_line

logger = get_logger(__name__)

UNTITLED_RECIPE = "Untitled recipe"
MAX_TAG_LENGTH = 50

PREP_KEYWORDS = ["prep", "preparation", "preparación"]
COOK_KEYWORDS = ["cook", "cooking", "bake", "baking", "cocción"]

# Subheaders naming a pan/mould size start a variant block ("MOLDE GRANDE:")
VARIANT_LABEL = re.compile(r'^(MOLDE|MOLD[EO]S?|PAN|BANDEJA|FUENTE|RECIPIENTE)\s+(.+?):?$', re.IGNORECASE)
SECTION_HEADER = re.compile(r'^(Para\s+(?:la|el)|For\s+(?:the)?)?\s*(.+?):?$', re.IGNORECASE)
STEP_NUMBER = re.compile(r'^\d+[.)]\s*')
NOTES_LABEL = re.compile(r'^Notes?\s*', re.IGNORECASE)
SERVINGS = re.compile(r'(?:serves?|servings?|yield|makes?|raciones?|porciones?)[:\s]*(\d+)', re.IGNORECASE)

_TIME_UNITS = r'(min|minutes?|mins?|hrs?|hours?|horas?)'


def _text(element: Optional[Tag]) -> str:
    if element is None:
        return ""
    return re.sub(r'\s+', ' ', element.get_text(" ")).strip()


def _has_class(element: Tag, name: str) -> bool:
    return name in (element.get('class') or [])


def _extract_time(text: str, keywords: List[str]) -> Optional[int]:
    """
    Find a duration anchored on a keyword ("prep time: 15 min", "1 hour bake").

    Returns:
        Minutes, or None when no keyword is followed/preceded by a duration
    """
    for keyword in keywords:
        patterns = [
            re.compile(rf'{keyword}[^\d]*(\d+)\s*{_TIME_UNITS}', re.IGNORECASE),
            re.compile(rf'(\d+)\s*{_TIME_UNITS}\s*{keyword}', re.IGNORECASE),
        ]
        for pattern in patterns:
            match = pattern.search(text)
            if match:
                minutes = int(match.group(1))
                if match.group(2).lower().startswith('h'):
                    minutes *= 60
                return minutes
    return None


def _extract_servings(text: str) -> Optional[int]:
    match = SERVINGS.search(text)
    return int(match.group(1)) if match else None


def _map_rating(text: str) -> Optional[int]:
    """Map 1-5 stars onto the 1-3 scale (1-3 -> 1, 4 -> 2, 5 -> 3)."""
    match = re.match(r'^\s*(\d+)', text or "")
    if not match:
        return None
    stars = int(match.group(1))
    if stars < 1 or stars > 5:
        return None
    if stars <= 3:
        return 1
    return 2 if stars == 4 else 3


def _section_header(text: str) -> Optional[Ingredient]:
    match = SECTION_HEADER.match(text)
    if not match:
        return None
    name = match.group(0).rstrip(':').strip()
    if not name:
        return None
    return Ingredient(name=name, is_header=True)


def _parse_block(items: List[Tuple[str, bool]]) -> List[Ingredient]:
    """Turn (text, is_subheader) rows into ingredients, keeping section headers."""
    result = []
    for text, is_subheader in items:
        if is_subheader:
            header = _section_header(text)
            if header:
                result.append(header)
        else:
            result.append(parse_ingredient_line(text))
    return result


def _merge_variants(block1: List[Ingredient], block2: List[Ingredient]) -> List[Ingredient]:
    """
    Merge two variant blocks section by section, matching by normalized name.

    The first block's amount/unit stay primary; the second block's land in
    amount2/unit2. Ingredients present in only one block are kept.
    """
    sections: Dict[str, Dict[str, Dict[str, Ingredient]]] = {}

    for slot, block in (('first', block1), ('second', block2)):
        section = ""
        for ing in block:
            if ing.is_header:
                section = ing.name
                sections.setdefault(section, {})
                continue
            pairs = sections.setdefault(section, {})
            pairs.setdefault(normalize_ingredient_name(ing.name), {})[slot] = ing

    merged = []
    for section, pairs in sections.items():
        if section:
            merged.append(Ingredient(name=section, is_header=True))
        for pair in pairs.values():
            first, second = pair.get('first'), pair.get('second')
            base = first or second
            merged.append(Ingredient(
                name=base.name,
                amount=(first.amount if first else "") or (second.amount if second else ""),
                unit=(first.unit if first else "") or (second.unit if second else ""),
                amount2=second.amount if second else None,
                unit2=second.unit if second else None,
            ))
    return merged


def _extract_ingredients(block: Tag) -> Tuple[List[Ingredient], Optional[str], Optional[str]]:
    """
    Read #recipeIngredients in order.

    Returns:
        (ingredients, variant_1_label, variant_2_label)
    """
    container = block.select_one('#recipeIngredients')
    if container is None:
        return [], None, None

    items: List[Tuple[str, bool]] = []
    for child in container.find_all(recursive=False):
        text = _text(child)
        if not text or _has_class(child, 'recipeIngredient_spacer'):
            continue
        if _has_class(child, 'recipeIngredient_subheader'):
            items.append((text, True))
        elif _has_class(child, 'recipeIngredient') and child.name == 'li':
            items.append((text, False))

    variant_starts = [
        i for i, (text, is_subheader) in enumerate(items)
        if is_subheader and VARIANT_LABEL.match(text)
    ]
    if len(variant_starts) == 2:
        first, second = variant_starts
        label1 = items[first][0].rstrip(':').strip()
        label2 = items[second][0].rstrip(':').strip()
        # Rows before the first label are shared by both variants
        shared = _parse_block(items[:first])
        merged = _merge_variants(
            _parse_block(items[first + 1:second]),
            _parse_block(items[second + 1:]),
        )
        return shared + merged, label1, label2

    return _parse_block(items), None, None


def _extract_instructions(block: Tag) -> List[Instruction]:
    """Steps and step subheaders, in document order."""
    container = block.select_one('#recipeInstructions')
    if container is None:
        return []

    steps = []
    for element in container.find_all(class_=['instruction', 'instruction_subheader']):
        text = _text(element)
        if not text:
            continue
        if _has_class(element, 'instruction_subheader'):
            steps.append(Instruction(text=f"**{text}**"))
        else:
            cleaned = STEP_NUMBER.sub('', text)
            if cleaned:
                steps.append(Instruction(text=cleaned))
    return steps


def _extract_notes(block: Tag) -> Optional[str]:
    notes = [t for t in (_text(n) for n in block.select('#recipeNotes .recipeNote')) if t]
    if notes:
        return "\n\n".join(notes)

    section = _text(block.select_one('#recipeNotes'))
    cleaned = NOTES_LABEL.sub('', section).strip() if section else ""
    return cleaned or None


def _parse_copymethat_block(block: Tag) -> ParsedRecipe:
    title = _text(block.select_one('#name')) or UNTITLED_RECIPE

    image_url = None
    local_image_path = None
    image = block.select_one('img.recipeImage')
    src = (image.get('src') or '').strip() if image is not None else ''
    if src.startswith('http'):
        image_url = src
    elif src:
        # Relative path into the export's images/ folder
        local_image_path = src

    link = block.select_one('#original_link')
    source_url = None
    if link is not None:
        source_url = (link.get('href') or '').strip() or None

    tags = []
    for tag in block.select('.recipeCategory'):
        text = _text(tag)
        if text and len(text) < MAX_TAG_LENGTH:
            tags.append(text)

    servings_text = _text(block.select_one('#recipeYield')) or None
    servings = None
    if servings_text:
        match = re.match(r'^(\d+)', servings_text)
        if match:
            servings = int(match.group(1))

    ingredients, variant_1_label, variant_2_label = _extract_ingredients(block)
    block_text = _text(block).lower()

    return ParsedRecipe(
        title=title,
        description=_text(block.select_one('#description')) or None,
        source_url=source_url,
        image_url=image_url,
        local_image_path=local_image_path,
        prep_time_minutes=_extract_time(block_text, PREP_KEYWORDS),
        cook_time_minutes=_extract_time(block_text, COOK_KEYWORDS),
        servings=servings,
        servings_text=servings_text,
        tags=tags,
        ingredients=ingredients,
        instructions=_extract_instructions(block),
        notes=_extract_notes(block),
        rating=_map_rating(_text(block.select_one('#ratingValue'))),
        made_it='made this' in _text(block.select_one('#made_this')).lower(),
        variant_1_label=variant_1_label,
        variant_2_label=variant_2_label,
    )


def _parse_generic(soup: BeautifulSoup) -> List[ParsedRecipe]:
    """Fallback for exports that are not in CopyMeThat layout."""
    recipes = []
    accepted = set()  # id() of blocks already turned into recipes

    for element in soup.select("article, .card, [class*='recipe'], section"):
        if any(id(parent) in accepted for parent in element.parents):
            continue
        try:
            title = _text(element.find(['h1', 'h2', 'h3']))
            if not (2 < len(title) < 200):
                continue

            ingredients = []
            for li in element.select('ul li'):
                text = _text(li)
                if text and len(text) < 200:
                    ingredients.append(parse_ingredient_line(text))

            instructions = []
            for li in element.select('ol li'):
                text = STEP_NUMBER.sub('', _text(li))
                if text:
                    instructions.append(Instruction(text=text))

            if not ingredients and not instructions:
                continue

            link = element.select_one("a[href*='http']")
            image = element.find('img')
            recipes.append(ParsedRecipe(
                title=title,
                source_url=link.get('href') if link is not None else None,
                image_url=(image.get('src') or None) if image is not None else None,
                servings=_extract_servings(_text(element)),
                ingredients=ingredients,
                instructions=instructions,
            ))
            accepted.add(id(element))
        except Exception as e:
            logger.warning(f"Skipping unparseable block <{element.name}>: {e}")

    return recipes


def parse_export(document: str) -> List[ParsedRecipe]:
    """
    Parse an export document into recipes.

    Args:
        document: Raw HTML text of the export

    Returns:
        Recipes in document order. Empty when nothing recognizable was found.
    """
    if not isinstance(document, str) or not document.strip():
        return []

    soup = BeautifulSoup(document, "html.parser")

    recipes = []
    for index, block in enumerate(soup.select('.recipe')):
        try:
            recipes.append(_parse_copymethat_block(block))
        except Exception as e:
            logger.warning(f"Skipping recipe block {index}: {e}")

    if recipes:
        logger.info(f"Parsed {len(recipes)} recipes from CopyMeThat export")
        return recipes

    recipes = _parse_generic(soup)
    logger.info(f"Parsed {len(recipes)} recipes with generic HTML fallback")
    return recipes

"""
Bulk import of export documents.

Two steps, driven by the /api/import-bulk route:
1. parse_export_document(): size check + parse, for the preview list
2. import_recipes(): persist the selected recipes, uploading their local
   images first. One recipe failing never stops the rest; each gets a
   {success, title, error?} entry in the results.
"""

import json
import secrets
import string
import time
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional, Tuple

from config import get_import_config
from errors import InputError, RecetarioError, StorageError
from export_parser import parse_export
from recipe_models import ParsedRecipe
from tools.logging_utils import get_logger
from utils.recipe_validation import is_valid_recipe_content

logger = get_logger(__name__)

EXTENSION_TO_CONTENT_TYPE = {
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'png': 'image/png',
    'webp': 'image/webp',
    'gif': 'image/gif',
}

_FILENAME_ALPHABET = string.ascii_lowercase + string.digits


@dataclass(frozen=True)
class ImageFile:
    """An uploaded file as received from the client."""
    filename: str
    content_type: str
    data: bytes


def _mb(size: int) -> str:
    return f"{size // (1024 * 1024)}MB"


def load_json_field(value: Optional[str], name: str) -> Any:
    """Decode a JSON form field, raising InputError when absent or malformed."""
    if value is None or value == '':
        raise InputError(f"Missing {name}", operation='import_bulk')
    try:
        return json.loads(value)
    except (TypeError, ValueError) as e:
        raise InputError(f"Invalid JSON in {name}: {e}", operation='import_bulk')


def parse_export_document(data, max_bytes: Optional[int] = None) -> List[ParsedRecipe]:
    """
    Validate and parse an uploaded export.

    Args:
        data: Document as bytes or str (None when no file was sent)
        max_bytes: Size ceiling; defaults to import.max_html_bytes

    Raises:
        InputError: No document, document too large, or no recipes found
    """
    if data is None:
        raise InputError("No HTML file provided", operation='parse_export')

    if max_bytes is None:
        max_bytes = get_import_config()['max_html_bytes']
    raw = data.encode('utf-8') if isinstance(data, str) else data
    if len(raw) > max_bytes:
        raise InputError(
            f"HTML file too large. Maximum size is {_mb(max_bytes)}.",
            operation='parse_export',
            details={'size': len(raw)},
        )

    text = data if isinstance(data, str) else data.decode('utf-8', errors='replace')
    recipes = parse_export(text)
    if not recipes:
        raise InputError("No recipes found in the HTML file", operation='parse_export')
    return recipes


def generate_image_filename(extension: str) -> str:
    """Unique storage name: <epoch ms>-<6 random chars>.<ext>"""
    suffix = ''.join(secrets.choice(_FILENAME_ALPHABET) for _ in range(6))
    return f"{int(time.time() * 1000)}-{suffix}.{extension}"


def validate_image(
    image: ImageFile,
    max_bytes: Optional[int] = None,
    allowed_types: Optional[Iterable[str]] = None,
) -> Tuple[str, str]:
    """
    Check type and size of an image.

    The type is accepted by content type or, when the client sent none (common
    with folder uploads), by file extension.

    Returns:
        (content_type, extension) to store the image with

    Raises:
        InputError: Unsupported type or too large
    """
    config = get_import_config()
    max_bytes = max_bytes if max_bytes is not None else config['max_image_bytes']
    allowed_types = list(allowed_types if allowed_types is not None else config['allowed_image_types'])

    extension = image.filename.rsplit('.', 1)[-1].lower() if '.' in image.filename else ''
    type_ok = image.content_type in allowed_types
    if not type_ok and extension not in EXTENSION_TO_CONTENT_TYPE:
        raise InputError(
            f"Invalid file type: {image.content_type or extension}. "
            f"Please upload a JPEG, PNG, WebP, or GIF image.",
            operation='upload_image',
        )
    if len(image.data) > max_bytes:
        raise InputError(
            f"File too large. Maximum size is {_mb(max_bytes)}.",
            operation='upload_image',
            details={'size': len(image.data)},
        )

    content_type = image.content_type if type_ok else EXTENSION_TO_CONTENT_TYPE.get(extension, 'image/jpeg')
    if extension not in EXTENSION_TO_CONTENT_TYPE:
        extension = next(
            (ext for ext, ctype in EXTENSION_TO_CONTENT_TYPE.items() if ctype == content_type),
            'jpg',
        )
    return content_type, extension


def upload_image(image: ImageFile, image_store, max_bytes: Optional[int] = None) -> Dict[str, str]:
    """
    Validate and store one image.

    Returns:
        {'url': public URL, 'path': stored filename}

    Raises:
        InputError: Invalid image
        StorageError: Write failed
    """
    content_type, extension = validate_image(image, max_bytes=max_bytes)
    filename = generate_image_filename(extension)
    url = image_store.upload(filename, image.data, content_type)
    return {'url': url, 'path': filename}


def _final_image_url(recipe: ParsedRecipe, images: Dict[str, ImageFile], image_store) -> Optional[str]:
    """Upload the recipe's local image if supplied; keep the original URL on any failure."""
    if not recipe.local_image_path or recipe.local_image_path not in images:
        return recipe.image_url
    try:
        return upload_image(images[recipe.local_image_path], image_store)['url']
    except (InputError, StorageError) as e:
        logger.warning(f"Image for '{recipe.title}' not uploaded, keeping original URL: {e}")
        return recipe.image_url


def import_recipes(
    recipes: List[Any],
    selected_indices: List[Any],
    images: Dict[str, ImageFile],
    recipe_store,
    image_store,
) -> Dict[str, Any]:
    """
    Persist the selected recipes.

    Args:
        recipes: Recipe dicts from the parse step (or ParsedRecipe values)
        selected_indices: Positions in `recipes` to import
        images: Local image path -> uploaded file
        recipe_store: Object with insert(ParsedRecipe) -> id
        image_store: Object with upload(filename, data, content_type) -> url

    Returns:
        {'success': True, 'imported': n, 'failed': n, 'results': [...]}
    """
    if not isinstance(recipes, list) or not isinstance(selected_indices, list):
        raise InputError("recipes and selectedIndices must be lists", operation='import_bulk')

    results = []
    for index in selected_indices:
        title = f"Recipe #{index}"
        try:
            if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(recipes):
                raise InputError("Invalid recipe index", operation='import_bulk', details={'index': index})

            item = recipes[index]
            recipe = item if isinstance(item, ParsedRecipe) else ParsedRecipe.from_dict(item)
            title = recipe.title or title

            is_valid, reason = is_valid_recipe_content(recipe)
            if not is_valid:
                raise InputError(reason, operation='import_bulk')

            recipe = replace(
                recipe,
                image_url=_final_image_url(recipe, images, image_store),
                local_image_path=None,
            )
            recipe_id = recipe_store.insert(recipe)
            logger.info(f"Imported '{recipe.title}' as {recipe_id}")
            results.append({'success': True, 'title': recipe.title, 'id': recipe_id})
        except (RecetarioError, ValueError) as e:
            message = e.message if isinstance(e, RecetarioError) else str(e)
            logger.warning(f"Import failed for '{title}': {e}")
            results.append({'success': False, 'title': title, 'error': message})
        except Exception as e:
            logger.exception(f"Unexpected error importing '{title}'")
            results.append({'success': False, 'title': title, 'error': str(e) or "Unknown error"})

    imported = sum(1 for r in results if r['success'])
    return {
        'success': True,
        'imported': imported,
        'failed': len(results) - imported,
        'results': results,
    }

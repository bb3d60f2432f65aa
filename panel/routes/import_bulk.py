"""One-shot bulk import: parse for preview, then import the selection."""
from flask import Blueprint, current_app, jsonify, request

from errors import InputError
from panel.bulk_import import ImageFile, import_recipes, load_json_field, parse_export_document
from panel.routes import api_errors

bp = Blueprint('import_bulk', __name__)

IMAGE_FIELD_PREFIX = 'image:'


def _collect_images():
    """Files posted as image:<local path> keyed by that path."""
    images = {}
    for key, storage in request.files.items(multi=True):
        if not key.startswith(IMAGE_FIELD_PREFIX):
            continue
        images[key[len(IMAGE_FIELD_PREFIX):]] = ImageFile(
            filename=storage.filename or key,
            content_type=storage.mimetype or '',
            data=storage.read(),
        )
    return images


@bp.route('/import-bulk', methods=['POST'])
@api_errors("Bulk import failed")
def import_bulk():
    action = request.form.get('action')

    if action == 'parse':
        html_file = request.files.get('html')
        if html_file is None:
            raise InputError("No HTML file provided")
        recipes = parse_export_document(html_file.read())
        return jsonify({
            'recipes': [recipe.to_dict() for recipe in recipes],
            'total': len(recipes),
        })

    if action == 'import':
        recipes = load_json_field(request.form.get('recipes'), 'recipes')
        selected = load_json_field(request.form.get('selectedIndices'), 'selectedIndices')
        summary = import_recipes(
            recipes,
            selected,
            _collect_images(),
            current_app.config['RECIPE_STORE'],
            current_app.config['IMAGE_STORE'],
        )
        return jsonify(summary)

    raise InputError("Invalid action")

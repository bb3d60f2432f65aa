"""Recipe translation route."""
from flask import Blueprint, current_app, jsonify, request

from errors import InputError
from recipe_models import ParsedRecipe
from recipe_translator import translate_recipe
from panel.routes import api_errors

bp = Blueprint('translate', __name__)


@bp.route('/translate-recipe', methods=['POST'])
@api_errors("Failed to translate recipe")
def translate():
    """Body: {recipe, mode: "auto" | "dictionaryOnly"}"""
    body = request.get_json(silent=True) or {}
    data = body.get('recipe') if isinstance(body, dict) else None
    if not data:
        raise InputError("No recipe provided")

    try:
        recipe = ParsedRecipe.from_dict(data)
    except ValueError as e:
        raise InputError(f"Invalid recipe: {e}")

    result = translate_recipe(
        recipe,
        mode=body.get('mode') or 'auto',
        client=current_app.config.get('TRANSLATION_CLIENT'),
    )
    return jsonify(result.to_dict())

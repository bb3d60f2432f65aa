"""Import session routes - create, fetch, review actions, abandon."""
from flask import Blueprint, current_app, jsonify, request

from config import get_import_config
from errors import InputError, NotFoundError
from panel.bulk_import import parse_export_document
from panel.routes import api_errors

bp = Blueprint('import_session', __name__)


def _store():
    return current_app.config['SESSION_STORE']


@bp.route('/import-session', methods=['GET'])
@api_errors("Failed to fetch session")
def get_session():
    """A session by ?id=, or the active one as {"session": ... | null}."""
    session_id = request.args.get('id')
    if session_id:
        session = _store().get(session_id)
        if session is None:
            raise NotFoundError("Session not found")
        return jsonify(session.to_dict())

    active = _store().get_active()
    return jsonify({'session': active.to_dict() if active else None})


@bp.route('/import-session', methods=['POST'])
@api_errors("Failed to create session")
def create_session():
    """Parse an uploaded export and start reviewing it."""
    html_file = request.files.get('html')
    if html_file is None:
        raise InputError("No HTML file provided")

    recipes = parse_export_document(html_file.read())
    source = request.form.get('source') or get_import_config()['default_source']
    session = _store().create(recipes, source)

    return jsonify({
        'session': session.to_dict(),
        'message': f"Created import session with {session.total_recipes} recipes",
    })


@bp.route('/import-session', methods=['PATCH'])
@api_errors("Failed to update session")
def update_session():
    """Apply one review action: {sessionId, action, recipeIndex, editedRecipe, importedId, imageMapping}."""
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise InputError("Request body must be a JSON object")

    session_id = body.get('sessionId')
    if not session_id:
        raise InputError("Session ID required")

    outcome = _store().apply(session_id, body.get('action'), body)
    return jsonify(outcome.to_dict())


@bp.route('/import-session', methods=['DELETE'])
@api_errors("Failed to delete session")
def delete_session():
    session_id = request.args.get('id')
    if not session_id:
        raise InputError("Session ID required")

    _store().abandon(session_id)
    return jsonify({'success': True})

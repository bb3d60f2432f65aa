"""Blueprint registration and shared JSON error handling."""
import functools

from flask import jsonify

from errors import InputError, NotFoundError, UpstreamError
from tools.logging_utils import get_logger

logger = get_logger(__name__)


def api_errors(failure_message: str):
    """
    Map pipeline errors to JSON responses.

    InputError -> 400, NotFoundError -> 404, UpstreamError -> 502, anything
    else is logged with traceback and reported as a generic 500.
    """
    def decorator(view):
        @functools.wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except InputError as e:
                return jsonify({'error': e.message}), 400
            except NotFoundError as e:
                return jsonify({'error': e.message}), 404
            except UpstreamError as e:
                logger.error(f"{failure_message}: {e}")
                return jsonify({'error': f"{failure_message}: {e.message}"}), 502
            except Exception:
                logger.exception(failure_message)
                return jsonify({'error': failure_message}), 500
        return wrapper
    return decorator


def register_blueprints(app):
    """Register all route blueprints."""
    from .sessions import bp as sessions_bp
    from .import_bulk import bp as import_bulk_bp
    from .translate import bp as translate_bp
    from .images import bp as images_bp

    app.register_blueprint(sessions_bp, url_prefix='/api')
    app.register_blueprint(import_bulk_bp, url_prefix='/api')
    app.register_blueprint(translate_bp, url_prefix='/api')
    app.register_blueprint(images_bp)

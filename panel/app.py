"""Flask application factory."""
from flask import Flask
from pathlib import Path
import os

from config import DATA_DIR, get_storage_config
from panel.storage import ImageStore, RecipeStore, SessionStore
from tools.logging_utils import get_logger
from translation_client import get_translation_client

logger = get_logger(__name__)


def create_app(data_dir=None, translation_client=None):
    """
    Create and configure the Flask application.

    Args:
        data_dir: Where the SQLite files and images live (defaults to DATA_DIR)
        translation_client: Object with translate(text) -> str; defaults to a
            LibreTranslate client built from config
    """
    app = Flask(__name__)
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', os.urandom(24).hex())
    app.json.ensure_ascii = False

    data_dir = Path(data_dir) if data_dir else DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    storage = get_storage_config()

    app.config['SESSION_STORE'] = SessionStore(data_dir / 'import_sessions.db')
    app.config['RECIPE_STORE'] = RecipeStore(data_dir / 'recipes.db')
    app.config['IMAGE_STORE'] = ImageStore(
        data_dir / storage['images_dir'],
        public_base_url=storage['public_image_base_url'],
    )
    app.config['TRANSLATION_CLIENT'] = translation_client or get_translation_client()

    # Register blueprints
    from panel.routes import register_blueprints
    register_blueprints(app)

    logger.info(f"Panel ready (data dir: {data_dir})")
    return app


# For gunicorn: gunicorn -b 0.0.0.0:8080 panel.app:app
app = create_app()

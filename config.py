"""
Configuration module for the Recetario recipe import panel
==========================================================

This module centralizes all configuration for the bulk import pipeline:
- Export parsing limits (document and image size ceilings)
- Translation (LibreTranslate instances, timeouts, target language)
- Storage (where uploaded images are written and how they are served)
- Logging (dictConfig used by tools/logging_utils.py)

CONFIGURATION:
- data/config.yaml: Optional user overrides, deep-merged over DEFAULT_CONFIG
- Environment variables: RECETARIO_DATA_DIR, LIBRETRANSLATE_URL,
  LIBRETRANSLATE_API_KEY

Usage:
    from config import DATA_DIR, get_translation_config

    translation = get_translation_config()
    timeout = translation['request_timeout']

SETUP:
    1. Copy config.yaml.example to data/config.yaml
    2. Edit the sections you want to override
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


# =============================================================================
# PATHS
# =============================================================================

# Project root directory (where this file lives)
PROJECT_ROOT = Path(__file__).parent

# Data directory - THE canonical location for all runtime data
# (session database, recipe database, uploaded images, logs)
DATA_DIR = Path(os.getenv("RECETARIO_DATA_DIR", str(PROJECT_ROOT / "data")))

# Config path - ONE location, no fallbacks
CONFIG_PATH = DATA_DIR / "config.yaml"


# =============================================================================
# DEFAULTS
# =============================================================================

DEFAULT_CONFIG: Dict[str, Any] = {
    "import": {
        "max_html_bytes": 50 * 1024 * 1024,   # Exports with many recipes get large
        "max_image_bytes": 5 * 1024 * 1024,
        "allowed_image_types": ["image/jpeg", "image/png", "image/webp", "image/gif"],
        "default_source": "copymethat",
    },
    "translation": {
        "target_language": "es",
        "source_language": "en",
        # LibreTranslate public instances, tried in order for every text
        "instances": [
            "https://libretranslate.com",
            "https://translate.argosopentech.com",
            "https://translate.terraprint.co",
        ],
        "api_key": None,
        "request_timeout": 5,     # Per HTTP call (seconds)
        "batch_timeout": 30,      # Whole-recipe fan-out (seconds)
        "max_workers": 5,
    },
    "storage": {
        "public_image_base_url": "/images",
        "images_dir": "recipe-images",
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge override into a copy of base, recursing into nested dicts."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_user_config(config_path: Optional[Path] = None) -> Dict[str, Any]:
    """
    Load data/config.yaml and merge it over DEFAULT_CONFIG.

    A missing file means "use defaults". A file that exists but is not valid
    YAML, or whose top level is not a mapping, fails immediately.

    Raises:
        ValueError: If YAML is invalid or has the wrong shape
    """
    config_path = config_path or CONFIG_PATH
    if not config_path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ValueError(
            f"\n{'='*60}\n"
            f"ERROR: config.yaml has invalid YAML syntax\n"
            f"{'='*60}\n"
            f"File: {config_path}\n"
            f"Error: {e}\n"
            f"{'='*60}"
        ) from e

    if user_config is None:
        return copy.deepcopy(DEFAULT_CONFIG)

    if not isinstance(user_config, dict):
        raise ValueError(
            f"\n{'='*60}\n"
            f"ERROR: config.yaml must contain a mapping of sections\n"
            f"{'='*60}\n"
            f"File: {config_path}\n"
            f"Found: {type(user_config).__name__}\n"
            f"{'='*60}"
        )

    return _deep_merge(DEFAULT_CONFIG, user_config)


USER_CONFIG = load_user_config()


def reload_user_config() -> Dict[str, Any]:
    """
    Reload data/config.yaml into the in-memory USER_CONFIG.

    Accessors below read USER_CONFIG on every call, so callers pick up the new
    values without re-importing.
    """
    global USER_CONFIG
    USER_CONFIG = load_user_config()
    return USER_CONFIG


# =============================================================================
# SECTION ACCESSORS
# =============================================================================

def get_import_config() -> Dict[str, Any]:
    """
    Get import limits.

    Returns config dict with keys:
    - max_html_bytes: int
    - max_image_bytes: int
    - allowed_image_types: list of MIME types
    - default_source: str
    """
    return dict(USER_CONFIG["import"])


def get_translation_config() -> Dict[str, Any]:
    """
    Get translation configuration, with environment overrides applied.

    LIBRETRANSLATE_URL replaces the instance chain with a single instance
    (self-hosted deployments). LIBRETRANSLATE_API_KEY sets the API key.
    """
    translation = dict(USER_CONFIG["translation"])

    env_url = os.getenv("LIBRETRANSLATE_URL", "").strip()
    if env_url:
        translation["instances"] = [env_url]

    env_key = os.getenv("LIBRETRANSLATE_API_KEY", "").strip()
    if env_key:
        translation["api_key"] = env_key

    return translation


def get_storage_config() -> Dict[str, Any]:
    """Get storage configuration (public image URL base, images directory)."""
    return dict(USER_CONFIG["storage"])


# =============================================================================
# LOGGING CONFIGURATION
# =============================================================================

LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        },
        "detailed": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s"
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "INFO",
            "formatter": "standard",
            "stream": "ext://sys.stdout"
        },
        "file": {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "detailed",
            "filename": str(DATA_DIR / "logs" / "recetario.log"),
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5,
            "encoding": "utf-8"
        }
    },
    "root": {
        "level": "DEBUG",
        "handlers": ["console", "file"]
    }
}

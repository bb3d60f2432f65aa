"""
Pytest Configuration and Fixtures
=================================

Provides shared fixtures for the test suite:
- A throwaway data directory (set before any project module is imported)
- A CopyMeThat-style export document with three recipe blocks
- A fake translation client (no network)
- Flask app/test client and stores backed by tmp_path SQLite files

SAFETY: Nothing here touches the network or the real data directory.
"""

import os
import tempfile
import threading
import time

# Must happen before config.py is imported anywhere
os.environ["RECETARIO_DATA_DIR"] = tempfile.mkdtemp(prefix="recetario-tests-")
os.environ.pop("LIBRETRANSLATE_URL", None)
os.environ.pop("LIBRETRANSLATE_API_KEY", None)

import pytest


SAMPLE_EXPORT_HTML = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>CopyMeThat export</title></head>
<body>
<div class="recipe">
  <div id="name">Fluffy Pancakes</div>
  <img class="recipeImage" src="images/fluffy_pancakes.jpg">
  <a id="original_link" href="https://example.com/pancakes">Original recipe</a>
  <div id="description">Weekend breakfast classic.</div>
  <span class="recipeCategory">Breakfast</span>
  <span class="recipeCategory">Sweet</span>
  <div id="ratingValue">5</div>
  <div id="made_this">I made this</div>
  <div id="recipeYield">10 pancakes</div>
  <div class="times">Prep time: 10 min</div>
  <div class="times">Cook time: 20 minutes</div>
  <ul id="recipeIngredients">
    <li class="recipeIngredient_subheader">For the batter:</li>
    <li class="recipeIngredient">1 ½ cups flour</li>
    <li class="recipeIngredient">2 eggs</li>
    <li class="recipeIngredient_spacer"> </li>
    <li class="recipeIngredient">Salt to taste</li>
  </ul>
  <ol id="recipeInstructions">
    <li class="instruction_subheader">Batter</li>
    <li class="instruction">1. Mix the flour and eggs.</li>
    <li class="instruction">2) Cook on a hot pan.</li>
  </ol>
  <div id="recipeNotes"><div class="recipeNote">Serve warm.</div></div>
</div>
<div class="recipe">
  <div id="name">Tortilla de patatas</div>
  <img class="recipeImage" src="https://cdn.example.com/tortilla.jpg">
  <div id="ratingValue">4</div>
  <div id="recipeYield">Para 4 personas</div>
  <ul id="recipeIngredients">
    <li class="recipeIngredient">4 huevos</li>
    <li class="recipeIngredient">500 g patatas</li>
    <li class="recipeIngredient">100 ml aceite de oliva (1/2 taza)</li>
  </ul>
  <ol id="recipeInstructions">
    <li class="instruction">Pelar y cortar las patatas.</li>
    <li class="instruction">Freír las patatas en el aceite hasta que estén blandas.</li>
  </ol>
</div>
<div class="recipe">
  <div id="name"></div>
  <ul id="recipeIngredients">
    <li class="recipeIngredient">1 cup rice</li>
  </ul>
</div>
</body>
</html>
"""


class FakeTranslationClient:
    """
    Stand-in for LibreTranslateClient.

    Translates "x" to "[es] x" unless told otherwise:
    - responses: exact text -> translated text
    - fail_on: texts that raise
    - slow_on: texts that sleep `delay` seconds first
    """

    def __init__(self, responses=None, fail_on=(), slow_on=(), delay=1.0):
        self.responses = dict(responses or {})
        self.fail_on = set(fail_on)
        self.slow_on = set(slow_on)
        self.delay = delay
        self.calls = []
        self._lock = threading.Lock()

    def translate(self, text):
        with self._lock:
            self.calls.append(text)
        if text in self.slow_on:
            time.sleep(self.delay)
        if text in self.fail_on:
            from errors import TranslationAPIError
            raise TranslationAPIError("All translation instances failed")
        return self.responses.get(text, f"[es] {text}")

    def close(self):
        pass


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def sample_export_html():
    """Export with three recipe blocks; the third has no title."""
    return SAMPLE_EXPORT_HTML


@pytest.fixture
def parsed_sample(sample_export_html):
    from export_parser import parse_export
    return parse_export(sample_export_html)


@pytest.fixture
def fake_translator():
    return FakeTranslationClient()


@pytest.fixture
def session_store(tmp_path):
    from panel.storage import SessionStore
    return SessionStore(tmp_path / "sessions.db")


@pytest.fixture
def recipe_store(tmp_path):
    from panel.storage import RecipeStore
    return RecipeStore(tmp_path / "recipes.db")


@pytest.fixture
def image_store(tmp_path):
    from panel.storage import ImageStore
    return ImageStore(tmp_path / "images", public_base_url="/images")


@pytest.fixture
def app(tmp_path, fake_translator):
    from panel.app import create_app
    app = create_app(data_dir=tmp_path / "data", translation_client=fake_translator)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


# =============================================================================
# Test Markers
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "readonly: marks test as read-only (no database writes)"
    )
    config.addinivalue_line(
        "markers", "creates_data: marks test as creating SQLite rows or image files under tmp_path"
    )
    config.addinivalue_line(
        "markers", "slow: marks test as slow (waits on timeouts)"
    )

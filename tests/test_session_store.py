"""
Session Registry and Storage Tests
==================================

SQLite-backed stores on tmp_path: SessionStore, RecipeStore, ImageStore.
"""

import sqlite3
import threading
from unittest.mock import MagicMock, patch

import pytest

from errors import InputError, NotFoundError
from recipe_models import Ingredient, ParsedRecipe


def _recipes(count=3):
    return [
        ParsedRecipe(title=f"Receta {i}", ingredients=[Ingredient(name="harina", amount="100", unit="g")])
        for i in range(count)
    ]


# =============================================================================
# SESSION STORE
# =============================================================================

@pytest.mark.creates_data
class TestSessionStore:

    def test_create_and_get(self, session_store):
        session = session_store.create(_recipes(), source="copymethat")
        loaded = session_store.get(session.id)
        assert loaded.id == session.id
        assert loaded.total_recipes == 3
        assert loaded.entries[0].original.title == "Receta 0"
        assert loaded.entries[0].original.ingredients[0].unit == "g"

    def test_get_unknown(self, session_store):
        assert session_store.get("missing") is None
        assert session_store.get_active() is None

    def test_new_session_supersedes_active(self, session_store):
        first = session_store.create(_recipes())
        second = session_store.create(_recipes(2))

        assert session_store.get_active().id == second.id
        assert session_store.get(first.id).status == "abandoned"

    def test_single_active_across_store_instances(self, session_store, tmp_path):
        """Two registries on one database file still keep one active session."""
        from panel.storage import SessionStore
        other = SessionStore(tmp_path / "sessions.db")

        first = session_store.create(_recipes())
        second = other.create(_recipes())

        assert session_store.get_active().id == second.id
        assert other.get(first.id).status == "abandoned"

    def test_apply_persists(self, session_store):
        session = session_store.create(_recipes())
        outcome = session_store.apply(session.id, 'accept', {'recipeIndex': 0, 'importedId': 'abc'})

        assert outcome.stats['accepted'] == 1
        stored = session_store.get(session.id)
        assert stored.entries[0].status == "accepted"
        assert stored.entries[0].imported_id == "abc"
        assert stored.current_index == 1

    def test_apply_unknown_session(self, session_store):
        with pytest.raises(NotFoundError):
            session_store.apply("missing", 'accept', {'recipeIndex': 0})

    def test_invalid_action_leaves_session_untouched(self, session_store):
        session = session_store.create(_recipes())
        with pytest.raises(InputError):
            session_store.apply(session.id, 'approve', {'recipeIndex': 0})
        assert session_store.get(session.id).stats()['pending'] == 3

    def test_completed_session_leaves_active_slot(self, session_store):
        session = session_store.create(_recipes(1))
        outcome = session_store.apply(session.id, 'accept', {'recipeIndex': 0})
        assert outcome.is_complete is True
        assert session_store.get_active() is None

    def test_abandon(self, session_store):
        session = session_store.create(_recipes())
        abandoned = session_store.abandon(session.id)
        assert abandoned.status == "abandoned"
        assert session_store.get_active() is None

    def test_concurrent_actions_are_not_lost(self, session_store):
        session = session_store.create(_recipes(8))
        errors = []

        def accept(index):
            try:
                session_store.apply(session.id, 'accept', {'recipeIndex': index})
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=accept, args=(i,)) for i in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        stored = session_store.get(session.id)
        assert stored.stats()['accepted'] == 8
        assert stored.status == "completed"


# =============================================================================
# RECIPE STORE
# =============================================================================

@pytest.mark.creates_data
class TestRecipeStore:

    def test_insert_and_get(self, recipe_store):
        recipe_id = recipe_store.insert(ParsedRecipe(title="Gazpacho", tags=["verano"]))
        stored = recipe_store.get(recipe_id)
        assert stored['id'] == recipe_id
        assert stored['title'] == "Gazpacho"
        assert stored['tags'] == ["verano"]
        assert recipe_store.count() == 1

    def test_get_unknown(self, recipe_store):
        assert recipe_store.get("missing") is None

    @pytest.mark.parametrize("call", [lambda store: store.get("any"), lambda store: store.count()])
    def test_connection_closed_when_query_fails(self, recipe_store, call):
        conn = MagicMock()
        conn.execute.side_effect = sqlite3.OperationalError("database is locked")

        with patch.object(recipe_store, '_get_db', return_value=conn):
            with pytest.raises(sqlite3.OperationalError):
                call(recipe_store)

        conn.close.assert_called_once()


# =============================================================================
# IMAGE STORE
# =============================================================================

@pytest.mark.creates_data
class TestImageStore:

    def test_upload_returns_public_url(self, image_store):
        url = image_store.upload("1700000000000-abc123.jpg", b"jpegbytes", "image/jpeg")
        assert url == "/images/1700000000000-abc123.jpg"
        assert (image_store.root / "1700000000000-abc123.jpg").read_bytes() == b"jpegbytes"

    def test_existing_file_is_not_overwritten(self, image_store):
        image_store.upload("same.png", b"first", "image/png")
        url = image_store.upload("same.png", b"second", "image/png")
        assert url == "/images/same.png"
        assert (image_store.root / "same.png").read_bytes() == b"first"

    @pytest.mark.parametrize("name", ["../escape.jpg", "nested/file.jpg", "", ".hidden"])
    def test_rejects_path_like_names(self, image_store, name):
        with pytest.raises(InputError):
            image_store.upload(name, b"x", "image/jpeg")

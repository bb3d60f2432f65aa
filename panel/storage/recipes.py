"""Recipe document store (SQLite)."""
import json
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from errors import StorageError
from recipe_models import ParsedRecipe


class RecipeStore:
    """Insert-only store for imported recipes; ids are generated UUIDs."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_db(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.db_path), timeout=30)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        conn = self._get_db()
        try:
            conn.execute('''
                CREATE TABLE IF NOT EXISTS recipes (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    document TEXT NOT NULL,
                    created_at TEXT NOT NULL
                )
            ''')
            conn.commit()
        finally:
            conn.close()

    def insert(self, recipe: ParsedRecipe) -> str:
        """
        Persist a recipe and return its generated id.

        Raises:
            StorageError: If the write fails
        """
        recipe_id = str(uuid.uuid4())
        document = json.dumps(recipe.to_dict(), ensure_ascii=False)
        conn = self._get_db()
        try:
            conn.execute(
                'INSERT INTO recipes (id, title, document, created_at) VALUES (?, ?, ?, ?)',
                (recipe_id, recipe.title, document, datetime.now().isoformat())
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed to save recipe: {e}", operation='insert_recipe',
                               details={'title': recipe.title})
        finally:
            conn.close()
        return recipe_id

    def get(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        """Get a stored recipe document by id (with its id added)."""
        conn = self._get_db()
        try:
            row = conn.execute('SELECT * FROM recipes WHERE id = ?', (recipe_id,)).fetchone()
        finally:
            conn.close()
        if not row:
            return None
        document = json.loads(row['document'])
        document['id'] = row['id']
        return document

    def count(self) -> int:
        conn = self._get_db()
        try:
            return conn.execute('SELECT COUNT(*) FROM recipes').fetchone()[0]
        finally:
            conn.close()

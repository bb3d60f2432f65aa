"""Import session registry with SQLite persistence.

Single-writer: every mutation runs under one process-wide lock and one
``BEGIN IMMEDIATE`` transaction, so creating a session supersedes the previous
active one and inserts the new one atomically, and each review action is a
read-apply-write unit against one snapshot.
"""
import json
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from errors import NotFoundError, StorageError
from import_session import ABANDONED, ACTIVE, ActionOutcome, ImportSession, apply_action, new_session
from recipe_models import ParsedRecipe
from tools.logging_utils import get_logger

logger = get_logger(__name__)

_SCHEMA = '''
    CREATE TABLE IF NOT EXISTS import_sessions (
        id TEXT PRIMARY KEY,
        source TEXT NOT NULL DEFAULT 'copymethat',
        total_recipes INTEGER NOT NULL DEFAULT 0,
        current_index INTEGER NOT NULL DEFAULT 0,
        status TEXT NOT NULL DEFAULT 'active',
        recipes TEXT NOT NULL DEFAULT '[]',
        image_mapping TEXT NOT NULL DEFAULT '{}',
        created_at TEXT NOT NULL,
        updated_at TEXT NOT NULL
    )
'''

# At most one active row, enforced by the database as well
_INDEXES = [
    "CREATE UNIQUE INDEX IF NOT EXISTS idx_import_sessions_one_active "
    "ON import_sessions(status) WHERE status = 'active'",
    "CREATE INDEX IF NOT EXISTS idx_import_sessions_created ON import_sessions(created_at DESC)",
]


def _rollback(conn: sqlite3.Connection):
    if conn.in_transaction:
        conn.execute('ROLLBACK')


class SessionStore:
    """Persisted ImportSession registry."""

    def __init__(self, db_path: Union[str, Path]):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()
        self._init_db()

    def _get_db(self) -> sqlite3.Connection:
        """Get database connection (autocommit; transactions are explicit)."""
        conn = sqlite3.connect(str(self.db_path), timeout=30, isolation_level=None)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_db(self):
        conn = self._get_db()
        try:
            conn.execute(_SCHEMA)
            for statement in _INDEXES:
                conn.execute(statement)
        finally:
            conn.close()

    @staticmethod
    def _row_to_session(row: sqlite3.Row) -> ImportSession:
        return ImportSession.from_dict({
            'id': row['id'],
            'source': row['source'],
            'current_index': row['current_index'],
            'status': row['status'],
            'recipes': json.loads(row['recipes']),
            'image_mapping': json.loads(row['image_mapping']),
            'created_at': row['created_at'],
            'updated_at': row['updated_at'],
        })

    @staticmethod
    def _row_values(session: ImportSession) -> Dict[str, Any]:
        data = session.to_dict()
        return {
            'id': session.id,
            'source': session.source,
            'total_recipes': session.total_recipes,
            'current_index': session.current_index,
            'status': session.status,
            'recipes': json.dumps(data['recipes'], ensure_ascii=False),
            'image_mapping': json.dumps(data['image_mapping'], ensure_ascii=False),
            'created_at': session.created_at,
            'updated_at': session.updated_at,
        }

    def create(self, recipes: List[ParsedRecipe], source: str = 'copymethat') -> ImportSession:
        """
        Start a new session, abandoning every other active session.

        Supersede and insert commit together; no reader ever sees two active
        sessions or none in between.
        """
        session = new_session(recipes, source)
        values = self._row_values(session)

        with self._lock:
            conn = self._get_db()
            try:
                conn.execute('BEGIN IMMEDIATE')
                superseded = conn.execute(
                    'UPDATE import_sessions SET status = ?, updated_at = ? WHERE status = ?',
                    (ABANDONED, datetime.now().isoformat(), ACTIVE),
                ).rowcount
                conn.execute(
                    'INSERT INTO import_sessions (id, source, total_recipes, current_index, status, '
                    'recipes, image_mapping, created_at, updated_at) '
                    'VALUES (:id, :source, :total_recipes, :current_index, :status, '
                    ':recipes, :image_mapping, :created_at, :updated_at)',
                    values,
                )
                conn.execute('COMMIT')
            except sqlite3.Error as e:
                _rollback(conn)
                raise StorageError(f"Failed to create session: {e}", operation='create_session')
            finally:
                conn.close()

        if superseded:
            logger.info(f"Abandoned {superseded} active session(s) superseded by {session.id}")
        logger.info(f"Created import session {session.id} with {session.total_recipes} recipes")
        return session

    def get(self, session_id: str) -> Optional[ImportSession]:
        """Get session by ID."""
        conn = self._get_db()
        try:
            row = conn.execute('SELECT * FROM import_sessions WHERE id = ?', (session_id,)).fetchone()
        finally:
            conn.close()
        return self._row_to_session(row) if row else None

    def get_active(self) -> Optional[ImportSession]:
        """Most recent active session, if any."""
        conn = self._get_db()
        try:
            row = conn.execute(
                'SELECT * FROM import_sessions WHERE status = ? ORDER BY created_at DESC LIMIT 1',
                (ACTIVE,),
            ).fetchone()
        finally:
            conn.close()
        return self._row_to_session(row) if row else None

    def apply(self, session_id: str, action: str, payload: Optional[Dict[str, Any]] = None) -> ActionOutcome:
        """
        Apply a review action to a stored session.

        Raises:
            NotFoundError: If the session does not exist
            InputError: If the action or its payload is invalid
        """
        with self._lock:
            conn = self._get_db()
            try:
                conn.execute('BEGIN IMMEDIATE')
                row = conn.execute('SELECT * FROM import_sessions WHERE id = ?', (session_id,)).fetchone()
                if row is None:
                    raise NotFoundError("Session not found", operation=action, details={'id': session_id})

                outcome = apply_action(self._row_to_session(row), action, payload)
                if outcome.changed:
                    values = self._row_values(outcome.session)
                    conn.execute(
                        'UPDATE import_sessions SET current_index = :current_index, status = :status, '
                        'recipes = :recipes, image_mapping = :image_mapping, updated_at = :updated_at '
                        'WHERE id = :id',
                        values,
                    )
                conn.execute('COMMIT')
            except sqlite3.Error as e:
                _rollback(conn)
                raise StorageError(f"Failed to update session: {e}", operation=action)
            except Exception:
                _rollback(conn)
                raise
            finally:
                conn.close()

        return outcome

    def abandon(self, session_id: str) -> ImportSession:
        """Abandon a session (no-op if it already finished)."""
        return self.apply(session_id, 'abandon').session

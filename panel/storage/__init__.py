"""SQLite and filesystem stores used by the import panel."""

from .images import ImageStore
from .recipes import RecipeStore
from .sessions import SessionStore

__all__ = ['ImageStore', 'RecipeStore', 'SessionStore']

"""
Import Session State Machine
============================

Review workflow for one bulk-import batch. Each parsed recipe becomes an entry
that starts pending and is resolved exactly once (accepted, edited or
discarded). The session itself is active until every entry is resolved or the
user completes/abandons it explicitly.

Sessions are immutable values: apply_action() returns a new session plus the
progress counts, and the session registry (panel/storage/sessions.py) writes it
back. Retried actions are harmless: anything that targets a resolved entry, an
out-of-range index, or a finished session is a silent no-op.

Stored shape (JSON):
    {id, source, total_recipes, current_index, status, image_mapping,
     created_at, updated_at,
     recipes: [{original, status, edited, imported_id}, ...]}
"""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple, Union

from errors import InputError
from recipe_models import ParsedRecipe
from tools.logging_utils import get_logger

logger = get_logger(__name__)

# Session states
ACTIVE = 'active'
COMPLETED = 'completed'
ABANDONED = 'abandoned'
SESSION_STATUSES = (ACTIVE, COMPLETED, ABANDONED)

# Entry states
PENDING = 'pending'
ACCEPTED = 'accepted'
EDITED = 'edited'
DISCARDED = 'discarded'

ACTIONS = ('accept', 'edit', 'discard', 'navigate', 'update_images', 'complete', 'abandon')
REVIEW_ACTIONS = ('accept', 'edit', 'discard')


# =============================================================================
# ENTRIES
# =============================================================================

@dataclass(frozen=True)
class PendingEntry:
    original: ParsedRecipe
    status = PENDING


@dataclass(frozen=True)
class AcceptedEntry:
    original: ParsedRecipe
    imported_id: Optional[str] = None
    status = ACCEPTED


@dataclass(frozen=True)
class EditedEntry:
    original: ParsedRecipe
    edited: ParsedRecipe
    imported_id: Optional[str] = None
    status = EDITED


@dataclass(frozen=True)
class DiscardedEntry:
    original: ParsedRecipe
    status = DISCARDED


Entry = Union[PendingEntry, AcceptedEntry, EditedEntry, DiscardedEntry]


def entry_to_dict(entry: Entry) -> Dict[str, Any]:
    edited = entry.edited.to_dict() if isinstance(entry, EditedEntry) else None
    return {
        'original': entry.original.to_dict(),
        'status': entry.status,
        'edited': edited,
        'imported_id': getattr(entry, 'imported_id', None),
    }


def entry_from_dict(data: Dict[str, Any]) -> Entry:
    """
    Rebuild an entry from its stored form.

    Raises:
        ValueError: If the status is unknown or an edited entry has no edited recipe
    """
    original = ParsedRecipe.from_dict(data.get('original'))
    status = data.get('status', PENDING)
    imported_id = data.get('imported_id')

    if status == PENDING:
        return PendingEntry(original)
    if status == ACCEPTED:
        return AcceptedEntry(original, imported_id=imported_id)
    if status == EDITED:
        if not data.get('edited'):
            raise ValueError("Edited entry has no edited recipe")
        return EditedEntry(original, ParsedRecipe.from_dict(data['edited']), imported_id=imported_id)
    if status == DISCARDED:
        return DiscardedEntry(original)
    raise ValueError(f"Unknown entry status: {status!r}")


# =============================================================================
# SESSION
# =============================================================================

def _now() -> str:
    return datetime.now().isoformat()


@dataclass(frozen=True)
class ImportSession:
    id: str
    source: str
    entries: Tuple[Entry, ...]
    current_index: int = 0
    status: str = ACTIVE
    image_mapping: Dict[str, str] = field(default_factory=dict)
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    def __post_init__(self):
        if not isinstance(self.entries, tuple):
            object.__setattr__(self, 'entries', tuple(self.entries))
        if self.status not in SESSION_STATUSES:
            raise ValueError(f"Unknown session status: {self.status!r}")
        if not 0 <= self.current_index <= len(self.entries):
            raise ValueError(
                f"current_index {self.current_index} outside 0..{len(self.entries)}"
            )

    @property
    def total_recipes(self) -> int:
        return len(self.entries)

    @property
    def is_active(self) -> bool:
        return self.status == ACTIVE

    def stats(self) -> Dict[str, int]:
        """Aggregate counts for progress display."""
        counts = {'total': len(self.entries), PENDING: 0, ACCEPTED: 0, EDITED: 0, DISCARDED: 0}
        for entry in self.entries:
            counts[entry.status] += 1
        return counts

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'source': self.source,
            'total_recipes': self.total_recipes,
            'current_index': self.current_index,
            'status': self.status,
            'recipes': [entry_to_dict(entry) for entry in self.entries],
            'image_mapping': dict(self.image_mapping),
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportSession":
        entries = [entry_from_dict(e) for e in data.get('recipes') or []]
        current_index = int(data.get('current_index') or 0)
        return cls(
            id=data['id'],
            source=data.get('source') or 'copymethat',
            entries=entries,
            current_index=min(max(current_index, 0), len(entries)),
            status=data.get('status') or ACTIVE,
            image_mapping=dict(data.get('image_mapping') or {}),
            created_at=data.get('created_at') or _now(),
            updated_at=data.get('updated_at') or _now(),
        )


def new_session(recipes: List[ParsedRecipe], source: str = 'copymethat') -> ImportSession:
    """Start a session with every recipe pending and the cursor on the first one."""
    now = _now()
    return ImportSession(
        id=str(uuid.uuid4()),
        source=source,
        entries=[PendingEntry(recipe) for recipe in recipes],
        created_at=now,
        updated_at=now,
    )


# =============================================================================
# ACTIONS
# =============================================================================

@dataclass(frozen=True)
class ActionOutcome:
    session: ImportSession
    stats: Dict[str, int]
    is_complete: bool
    changed: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            'session': self.session.to_dict(),
            'stats': self.stats,
            'isComplete': self.is_complete,
        }


def next_pending_index(entries: Tuple[Entry, ...], after: int) -> int:
    """
    First pending entry after `after`, wrapping around to the start.

    Returns len(entries) when nothing is pending.
    """
    count = len(entries)
    for offset in range(1, count + 1):
        index = (after + offset) % count
        if entries[index].status == PENDING:
            return index
    return count


def _index(payload: Dict[str, Any]) -> Optional[int]:
    value = payload.get('recipeIndex')
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _imported_id(payload: Dict[str, Any]) -> Optional[str]:
    value = payload.get('importedId')
    if value is None or value == '':
        return None
    return str(value)


def _resolve(entry: PendingEntry, action: str, payload: Dict[str, Any]) -> Entry:
    if action == 'accept':
        return AcceptedEntry(entry.original, imported_id=_imported_id(payload))
    if action == 'discard':
        return DiscardedEntry(entry.original)

    edited = payload.get('editedRecipe')
    if not isinstance(edited, ParsedRecipe):
        try:
            edited = ParsedRecipe.from_dict(edited)
        except ValueError as e:
            raise InputError(f"Invalid editedRecipe: {e}", operation='edit')
    return EditedEntry(entry.original, edited, imported_id=_imported_id(payload))


def apply_action(
    session: ImportSession,
    action: str,
    payload: Optional[Dict[str, Any]] = None,
) -> ActionOutcome:
    """
    Apply one review action and return the resulting session.

    Args:
        session: Current snapshot
        action: accept | edit | discard | navigate | update_images | complete | abandon
        payload: recipeIndex, editedRecipe, importedId, imageMapping as needed

    Returns:
        ActionOutcome; changed is False for no-ops (the stored copy needs no write)

    Raises:
        InputError: For an unknown action, an edit without editedRecipe,
            or an imageMapping that is not an object
    """
    payload = payload or {}
    if action not in ACTIONS:
        raise InputError(f"Invalid action: {action!r}", operation='apply_action')
    if action == 'edit' and payload.get('editedRecipe') is None:
        raise InputError("editedRecipe is required for edit", operation='apply_action')

    image_mapping = payload.get('imageMapping')
    if action == 'update_images' and image_mapping is not None and not isinstance(image_mapping, dict):
        raise InputError("imageMapping must be an object", operation='apply_action')

    updated = _transition(session, action, payload)
    changed = updated is not session
    if changed:
        updated = replace(updated, updated_at=_now())
        logger.debug(f"Session {session.id}: {action} -> status={updated.status}, cursor={updated.current_index}")

    return ActionOutcome(
        session=updated,
        stats=updated.stats(),
        is_complete=updated.status == COMPLETED,
        changed=changed,
    )


def _transition(session: ImportSession, action: str, payload: Dict[str, Any]) -> ImportSession:
    """Return the next session, or the same object when the action is a no-op."""
    if not session.is_active:
        return session

    if action == 'complete':
        return replace(session, status=COMPLETED)
    if action == 'abandon':
        return replace(session, status=ABANDONED)

    if action == 'update_images':
        mapping = payload.get('imageMapping')
        if not mapping:
            return session
        merged = dict(session.image_mapping)
        merged.update({str(k): str(v) for k, v in mapping.items()})
        return replace(session, image_mapping=merged)

    index = _index(payload)
    if index is None or not 0 <= index < len(session.entries):
        return session

    if action == 'navigate':
        return replace(session, current_index=index)

    entry = session.entries[index]
    if entry.status != PENDING:
        return session

    entries = list(session.entries)
    entries[index] = _resolve(entry, action, payload)
    entries = tuple(entries)

    status = session.status
    if all(e.status != PENDING for e in entries):
        status = COMPLETED

    return replace(
        session,
        entries=entries,
        current_index=next_pending_index(entries, index),
        status=status,
    )

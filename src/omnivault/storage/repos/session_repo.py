"""Session cache - last authenticated identity for instant resume.

This is a cache, not an authority: the remote auth provider decides whether
a session is actually valid.
"""

import json
import logging

from pydantic import ValidationError

from omnivault.core.types import SessionRecord
from omnivault.storage.db import KeyValueStore
from omnivault.storage.keys import SESSION_KEY
from omnivault.storage.repos.vault_repo import encode_document

logger = logging.getLogger(__name__)


class SessionRepo:
    """Repository for the cached session record."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def set(self, record: SessionRecord) -> None:
        """Cache the session record."""
        self.store.set(SESSION_KEY, encode_document(record.to_document()))

    def get(self) -> SessionRecord | None:
        """Read the cached session record, if any."""
        raw = self.store.get(SESSION_KEY)
        if raw is None:
            return None
        try:
            record = SessionRecord.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.debug("Ignoring unreadable session cache: %s", exc)
            return None
        return record if record.id else None

    def clear(self) -> None:
        """Forget the cached session."""
        self.store.remove(SESSION_KEY)

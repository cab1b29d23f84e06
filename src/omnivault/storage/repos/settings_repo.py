"""Settings repository - pure data access for user settings persistence."""

import json
import logging

from pydantic import ValidationError

from omnivault.core.types import STORED_RECORD, Identity, UserSettings
from omnivault.storage.db import KeyValueStore
from omnivault.storage.keys import vault_keys
from omnivault.storage.repos.vault_repo import encode_document

logger = logging.getLogger(__name__)


class SettingsRepo:
    """Repository for user settings data access."""

    def __init__(self, store: KeyValueStore):
        """
        Initialize settings repository.

        Args:
            store: Durable key-value medium
        """
        self.store = store

    def exists(self, identity: Identity) -> bool:
        return bool(identity) and self.store.get(vault_keys(identity).settings) is not None

    def load(self, identity: Identity) -> UserSettings:
        """Get settings for an identity, or defaults if none are stored."""
        if not identity:
            return UserSettings()

        key = vault_keys(identity).settings
        raw = self.store.get(key)
        if raw is None:
            return UserSettings()

        try:
            payload = json.loads(raw)
            if not isinstance(payload, dict):
                raise TypeError(f"expected object, got {type(payload).__name__}")
            return UserSettings.model_validate(payload, context=STORED_RECORD)
        except (json.JSONDecodeError, ValidationError, TypeError) as exc:
            logger.warning("Corrupt settings record at %s, using defaults: %s", key, exc)
            return UserSettings()

    def save(self, identity: Identity, settings: UserSettings) -> None:
        """Replace the stored settings for an identity."""
        if not identity:
            return

        self.store.set(vault_keys(identity).settings, encode_document(settings.to_document()))

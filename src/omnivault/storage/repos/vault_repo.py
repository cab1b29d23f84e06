"""Vault repository - per-identity persistence of the domain payload."""

import json
import logging
import time

from pydantic import ValidationError

from omnivault.core.types import Identity, Note, VaultData
from omnivault.storage.db import KeyValueStore
from omnivault.storage.keys import vault_keys

logger = logging.getLogger(__name__)

WELCOME_NOTE_TITLE = "Welcome to the Vault"
WELCOME_NOTE_CONTENT = (
    "<div>This is your private, secure space. "
    "Start by adding your tasks or your secret notes.</div>"
)


def default_vault_data() -> VaultData:
    """Build first-run data: empty collections and a single welcome note."""
    return VaultData(
        notes=[
            Note(
                id="1",
                title=WELCOME_NOTE_TITLE,
                content=WELCOME_NOTE_CONTENT,
                updated_at=int(time.time() * 1000),
                attachments=[],
            )
        ]
    )


def encode_document(payload: dict) -> str:
    """Serialize a document for the key-value medium."""
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":"))


class VaultRepo:
    """Repository for VaultData, replaced whole on every save."""

    def __init__(self, store: KeyValueStore):
        """
        Initialize vault repository.

        Args:
            store: Durable key-value medium
        """
        self.store = store

    def exists(self, identity: Identity) -> bool:
        """Whether any record, usable or not, is stored for the identity."""
        return bool(identity) and self.store.get(vault_keys(identity).data) is not None

    def load(self, identity: Identity) -> VaultData:
        """Load data for an identity, seeding defaults when nothing usable is stored."""
        if not identity:
            return default_vault_data()

        key = vault_keys(identity).data
        raw = self.store.get(key)
        if raw is None:
            logger.debug("No vault record for %s, seeding defaults", key)
            return default_vault_data()

        try:
            payload = json.loads(raw)
            if not isinstance(payload, dict):
                raise TypeError(f"expected object, got {type(payload).__name__}")
            return VaultData.model_validate(payload)
        except (json.JSONDecodeError, ValidationError, TypeError, ValueError) as exc:
            logger.warning("Corrupt vault record at %s, using defaults: %s", key, exc)
            return default_vault_data()

    def save(self, identity: Identity, data: VaultData) -> None:
        """Store the entire payload under the identity's key."""
        if not identity:
            return

        key = vault_keys(identity).data
        encoded = encode_document(data.to_document())
        self.store.set(key, encoded)
        logger.debug("Saved vault record %s (%d bytes)", key, len(encoded))

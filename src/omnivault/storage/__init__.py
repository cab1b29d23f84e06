"""Storage layer for OmniVault - key-value medium and repositories."""

from omnivault.storage.db import (
    KeyValueStore,
    MemoryKeyValueStore,
    SqliteKeyValueStore,
    get_store,
    set_store,
)
from omnivault.storage.keys import SESSION_KEY, VaultKeys, vault_keys
from omnivault.storage.repos import (
    SessionRepo,
    SettingsRepo,
    VaultRepo,
    default_vault_data,
)

__all__ = [
    "KeyValueStore",
    "MemoryKeyValueStore",
    "SqliteKeyValueStore",
    "get_store",
    "set_store",
    "SESSION_KEY",
    "VaultKeys",
    "vault_keys",
    "SessionRepo",
    "SettingsRepo",
    "VaultRepo",
    "default_vault_data",
]

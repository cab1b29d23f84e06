"""Storage key derivation, scoped per identity."""

from typing import NamedTuple

from omnivault.core.config import PRODUCT_NAME
from omnivault.core.types import Identity

DATA_KEY_PREFIX = f"{PRODUCT_NAME}_data_"
SETTINGS_KEY_PREFIX = f"{PRODUCT_NAME}_settings_"

# Identity-independent slot for the last authenticated session
SESSION_KEY = f"{PRODUCT_NAME}_session"


class VaultKeys(NamedTuple):
    """The pair of keys owned by one identity."""

    data: str
    settings: str


def vault_keys(identity: Identity) -> VaultKeys:
    """Derive the data and settings keys for an identity."""
    return VaultKeys(
        data=f"{DATA_KEY_PREFIX}{identity}",
        settings=f"{SETTINGS_KEY_PREFIX}{identity}",
    )

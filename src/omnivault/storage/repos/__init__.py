"""Repository classes for data access."""

from omnivault.storage.repos.session_repo import SessionRepo
from omnivault.storage.repos.settings_repo import SettingsRepo
from omnivault.storage.repos.vault_repo import VaultRepo, default_vault_data

__all__ = [
    "SessionRepo",
    "SettingsRepo",
    "VaultRepo",
    "default_vault_data",
]

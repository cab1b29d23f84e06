"""OmniVault core library - live state, persistence rules and collaborators."""

from typing import TYPE_CHECKING

from omnivault.core.errors import (
    AuthError,
    BackupFormatError,
    NotAuthenticatedError,
    StorageWriteError,
    VaultError,
)
from omnivault.core.types import (
    BackupDocument,
    LoginResult,
    SessionRecord,
    SessionStatus,
    UserSettings,
    VaultData,
)

if TYPE_CHECKING:
    from omnivault.core.backup import BackupCodec
    from omnivault.core.controller import AppController

__all__ = [
    # Core classes
    "AppController",
    "BackupCodec",
    # Types
    "BackupDocument",
    "LoginResult",
    "SessionRecord",
    "SessionStatus",
    "UserSettings",
    "VaultData",
    # Errors
    "AuthError",
    "BackupFormatError",
    "NotAuthenticatedError",
    "StorageWriteError",
    "VaultError",
]


def __getattr__(name: str):
    if name == "AppController":
        from omnivault.core.controller import AppController

        return AppController
    if name == "BackupCodec":
        from omnivault.core.backup import BackupCodec

        return BackupCodec
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

"""Error types raised by the OmniVault core."""


class VaultError(RuntimeError):
    """Base error for OmniVault failures."""


class StorageWriteError(VaultError):
    """Raised when the durable medium rejects a write."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Failed to write {key}: {reason}")
        self.key = key
        self.reason = reason


class NotAuthenticatedError(VaultError):
    """Raised when a vault operation needs an active session and there is none."""


class BackupFormatError(VaultError):
    """Raised when a backup document cannot be parsed."""


class AuthError(VaultError):
    """Base error for remote authentication failures."""


class AuthUnavailableError(AuthError):
    """Raised when the remote provider cannot be reached or is not configured."""


class AuthRejectedError(AuthError):
    """Raised when the remote provider rejects the supplied credentials."""

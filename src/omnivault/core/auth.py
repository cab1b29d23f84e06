"""Remote authentication collaborator and offline fallback identity.

This module only turns credentials into an identity. Session caching is
handled by storage.repos.session_repo.
"""

import asyncio
import base64
import logging
from typing import Any, Protocol

import httpx
from supabase import Client, create_client

from omnivault.core.config import (
    SUPABASE_ANON_KEY,
    SUPABASE_URL,
    validate_auth_environment,
)
from omnivault.core.errors import AuthRejectedError, AuthUnavailableError
from omnivault.core.types import SessionRecord

logger = logging.getLogger(__name__)

# Error text that means the provider could not be reached or is misconfigured
_UNAVAILABLE_MARKERS = ("api key", "fetch", "connect", "network", "timed out")


class AuthProvider(Protocol):
    """Remote identity provider.

    Raises AuthUnavailableError when it cannot be reached and
    AuthRejectedError when it refuses the credentials.
    """

    async def sign_up(self, email: str, password: str) -> SessionRecord:
        pass

    async def sign_in(self, email: str, password: str) -> SessionRecord:
        pass

    async def sign_out(self) -> None:
        pass

    async def get_current_user(self) -> SessionRecord | None:
        pass


def offline_identity(email: str) -> str:
    """Derive a stable local identity from an email for offline mode."""
    normalized = email.strip().lower().encode("utf-8")
    return base64.urlsafe_b64encode(normalized).decode("ascii").rstrip("=")


def offline_record(email: str) -> SessionRecord:
    """Session record for a degraded, unverified login."""
    return SessionRecord(id=offline_identity(email), email=email, offline=True)


def classify_auth_error(exc: Exception) -> AuthUnavailableError | AuthRejectedError:
    """Map a provider exception onto unavailable vs rejected."""
    if isinstance(exc, httpx.TransportError):
        return AuthUnavailableError(str(exc))
    message = str(exc).lower()
    if any(marker in message for marker in _UNAVAILABLE_MARKERS):
        return AuthUnavailableError(str(exc))
    return AuthRejectedError(str(exc))


def _record_from_user(user: Any) -> SessionRecord | None:
    if user is None or not getattr(user, "id", None):
        return None
    return SessionRecord(id=str(user.id), email=getattr(user, "email", None))


class SupabaseAuthProvider:
    """Email/password auth against a Supabase project."""

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        client: Client | None = None,
    ):
        """
        Initialize the provider.

        Args:
            url: Supabase project URL (defaults to SUPABASE_URL)
            key: Supabase anon key (defaults to SUPABASE_ANON_KEY)
            client: Pre-built client (for testing)
        """
        self.url = url or SUPABASE_URL
        self.key = key or SUPABASE_ANON_KEY
        self._client = client

    def _get_client(self) -> Client:
        if self._client is None:
            if not self.url or not self.key:
                raise AuthUnavailableError("Supabase is not configured")
            try:
                self._client = create_client(self.url, self.key)
            except Exception as exc:
                raise AuthUnavailableError(f"Failed to create Supabase client: {exc}") from exc
        return self._client

    async def _call(self, fn, *args) -> Any:
        client = self._get_client()
        try:
            return await asyncio.to_thread(fn, client, *args)
        except Exception as exc:
            raise classify_auth_error(exc) from exc

    async def sign_up(self, email: str, password: str) -> SessionRecord:
        response = await self._call(
            lambda c: c.auth.sign_up({"email": email, "password": password})
        )
        record = _record_from_user(response.user)
        if record is None:
            raise AuthRejectedError("Sign-up returned no user")
        return record

    async def sign_in(self, email: str, password: str) -> SessionRecord:
        response = await self._call(
            lambda c: c.auth.sign_in_with_password({"email": email, "password": password})
        )
        record = _record_from_user(response.user)
        if record is None:
            raise AuthRejectedError("Sign-in returned no user")
        return record

    async def sign_out(self) -> None:
        await self._call(lambda c: c.auth.sign_out())

    async def get_current_user(self) -> SessionRecord | None:
        try:
            response = await self._call(lambda c: c.auth.get_user())
        except AuthUnavailableError as exc:
            logger.debug("Could not query current user: %s", exc)
            return None
        except AuthRejectedError:
            return None
        return _record_from_user(getattr(response, "user", None))


class OfflineAuthProvider:
    """Provider used when no remote auth is configured: always unavailable."""

    async def sign_up(self, email: str, password: str) -> SessionRecord:
        raise AuthUnavailableError("Remote authentication is not configured")

    async def sign_in(self, email: str, password: str) -> SessionRecord:
        raise AuthUnavailableError("Remote authentication is not configured")

    async def sign_out(self) -> None:
        return None

    async def get_current_user(self) -> SessionRecord | None:
        return None


def get_auth_provider() -> AuthProvider:
    """Build the provider for the current environment."""
    is_valid, message = validate_auth_environment()
    if is_valid:
        return SupabaseAuthProvider()
    logger.info(message)
    return OfflineAuthProvider()

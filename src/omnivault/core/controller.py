"""The AppController - owns live vault state and keeps storage in sync."""

import asyncio
import logging
from collections.abc import Callable
from datetime import date
from typing import Any

from omnivault.core import vault_ops
from omnivault.core.auth import (
    AuthProvider,
    get_auth_provider,
    offline_record,
)
from omnivault.core.backup import BackupCodec, BackupDelivery, import_document
from omnivault.core.config import INSIGHTS_ENABLED
from omnivault.core.errors import (
    AuthError,
    AuthRejectedError,
    AuthUnavailableError,
    NotAuthenticatedError,
    StorageWriteError,
)
from omnivault.core.insights import (
    InsightProvider,
    get_insight_client,
    summarize_for_insight,
)
from omnivault.core.types import (
    BackupDocument,
    GoalType,
    Identity,
    LoginResult,
    SessionRecord,
    SessionStatus,
    UserSettings,
    VaultData,
    VaultStats,
)
from omnivault.storage.db import KeyValueStore, get_store
from omnivault.storage.repos import SessionRepo, SettingsRepo, VaultRepo

logger = logging.getLogger(__name__)


class AppController:
    """Session state machine and single writer of the live vault state.

    Every change to the live VaultData or UserSettings is persisted as a whole
    object. Changes to the number of tasks or habits schedule an insight
    refresh; only the most recent refresh may publish its text.
    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        auth_provider: AuthProvider | None = None,
        insight_provider: InsightProvider | None = None,
        delivery: BackupDelivery | None = None,
        insights_enabled: bool | None = None,
    ):
        """
        Initialize the controller with optional dependency injection.

        Args:
            store: Key-value medium (defaults to global SQLite store)
            auth_provider: Remote auth (defaults to Supabase or offline)
            insight_provider: Text generation (defaults to global Claude client)
            delivery: Where exported backups go
            insights_enabled: Whether mutations trigger insight refreshes
        """
        store = store if store is not None else get_store()
        self.vault_repo = VaultRepo(store)
        self.settings_repo = SettingsRepo(store)
        self.session_repo = SessionRepo(store)
        self.backup = BackupCodec(self.vault_repo, self.settings_repo, delivery)
        self._auth_provider = auth_provider
        self._insight_provider = insight_provider
        self.insights_enabled = (
            INSIGHTS_ENABLED if insights_enabled is None else insights_enabled
        )

        self.status = SessionStatus.LOADING
        self.session: SessionRecord | None = None
        self.data: VaultData | None = None
        self.settings = UserSettings()
        self.insight = ""

        self._insight_seq = 0
        self._insight_tasks: set[asyncio.Task] = set()

    @property
    def auth_provider(self) -> AuthProvider:
        """Get auth provider, building the default if not injected."""
        if self._auth_provider is None:
            self._auth_provider = get_auth_provider()
        return self._auth_provider

    @property
    def insight_provider(self) -> InsightProvider:
        """Get insight provider, using default if not injected."""
        if self._insight_provider is None:
            self._insight_provider = get_insight_client()
        return self._insight_provider

    @property
    def identity(self) -> Identity:
        return self.session.id if self.session else ""

    @property
    def is_authenticated(self) -> bool:
        return self.status == SessionStatus.AUTHENTICATED

    @property
    def is_offline(self) -> bool:
        return bool(self.session and self.session.offline)

    # Session lifecycle

    async def initialize(self) -> SessionStatus:
        """Resume from the session cache, then the remote provider, else log out."""
        cached = self.session_repo.get()
        if cached is not None:
            logger.debug("Resuming cached session %s...", cached.id[:6])
            self._enter(cached)
            return self.status

        try:
            record = await self.auth_provider.get_current_user()
        except AuthError as exc:
            logger.debug("Current user lookup failed: %s", exc)
            record = None

        if record is not None:
            self._enter(record)
        else:
            self.status = SessionStatus.UNAUTHENTICATED
        return self.status

    async def sign_in(self, email: str, password: str) -> LoginResult:
        """Sign in remotely, degrading to an offline identity if unreachable."""
        return await self._login(self.auth_provider.sign_in, email, password)

    async def sign_up(self, email: str, password: str) -> LoginResult:
        """Register remotely, degrading to an offline identity if unreachable."""
        return await self._login(self.auth_provider.sign_up, email, password)

    async def _login(self, method, email: str, password: str) -> LoginResult:
        if not email.strip():
            self.status = SessionStatus.UNAUTHENTICATED
            return LoginResult(error="Email is required")

        try:
            record = await method(email, password)
        except AuthUnavailableError as exc:
            logger.warning("Remote auth unavailable, entering offline mode: %s", exc)
            record = offline_record(email)
            self._enter(record)
            return LoginResult(record=record, offline=True)
        except AuthRejectedError as exc:
            logger.info("Authentication failed: %s", exc)
            self.status = SessionStatus.UNAUTHENTICATED
            return LoginResult(error=str(exc))

        self._enter(record)
        return LoginResult(record=record)

    def login_with(self, record: SessionRecord) -> None:
        """Enter an authenticated session for an already-verified identity."""
        self._enter(record)

    def _enter(self, record: SessionRecord) -> None:
        self.session = record
        try:
            self.session_repo.set(record)
        except StorageWriteError as exc:
            logger.warning("Could not cache session: %s", exc)

        self.settings = self.settings_repo.load(record.id)
        self.data = self.vault_repo.load(record.id)
        self._store_first_run_defaults(record.id)
        self.status = SessionStatus.AUTHENTICATED
        logger.info(
            "Session active for %s...%s",
            record.id[:6],
            " (offline)" if record.offline else "",
        )
        self._schedule_insight_refresh()

    def _store_first_run_defaults(self, identity: Identity) -> None:
        # Seeded values get stored once so later loads see the same ids and
        # timestamps. Existing records, even corrupt ones, are left alone.
        for repo, value in (
            (self.vault_repo, self.data),
            (self.settings_repo, self.settings),
        ):
            if repo.exists(identity):
                continue
            try:
                repo.save(identity, value)
            except StorageWriteError as exc:
                logger.warning("Could not store first-run defaults: %s", exc)

    async def logout(self) -> None:
        """End the session. Stored data is kept."""
        try:
            await self.auth_provider.sign_out()
        except AuthError as exc:
            logger.debug("Remote sign-out failed: %s", exc)

        self._cancel_insight_refreshes()
        self.session_repo.clear()
        self.session = None
        self.data = None
        self.settings = UserSettings()
        self.insight = ""
        self.status = SessionStatus.UNAUTHENTICATED

    # Live state mutation

    def _require_data(self) -> VaultData:
        if not self.is_authenticated or self.data is None:
            raise NotAuthenticatedError("No active vault session")
        return self.data

    def update_data(self, mutate: Callable[[VaultData], VaultData]) -> VaultData:
        """
        Apply a mutation to the live data and persist the whole object.

        Raises:
            NotAuthenticatedError: If there is no active session
            StorageWriteError: If the medium rejects the write. The live data
                keeps the new value either way.
        """
        before = self._require_data()
        after = mutate(before)
        if after is before:
            return after

        self.data = after
        if len(after.tasks) != len(before.tasks) or len(after.habits) != len(
            before.habits
        ):
            self._schedule_insight_refresh()
        self.vault_repo.save(self.identity, after)
        return after

    def update_settings(self, **changes: Any) -> UserSettings:
        """
        Change individual settings fields and persist when logged in.

        Raises:
            ValueError: For unknown field names
            pydantic.ValidationError: For values the field does not accept
        """
        unknown = set(changes) - set(UserSettings.model_fields)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")
        return self.replace_settings(
            UserSettings.model_validate({**self.settings.model_dump(), **changes})
        )

    def replace_settings(self, settings: UserSettings) -> UserSettings:
        self.settings = settings
        if self.is_authenticated:
            self.settings_repo.save(self.identity, settings)
        return settings

    # Insights

    def _schedule_insight_refresh(self) -> None:
        if not self.insights_enabled or self.data is None:
            return
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, insight refresh skipped")
            return

        self._insight_seq += 1
        task = loop.create_task(self._refresh_insight(self._insight_seq, self.data))
        self._insight_tasks.add(task)
        task.add_done_callback(self._insight_tasks.discard)

    async def _refresh_insight(self, seq: int, data: VaultData) -> None:
        pending, habits = summarize_for_insight(data)
        try:
            text = await self.insight_provider.generate_insight(pending, habits)
        except Exception:
            logger.warning("Insight refresh failed", exc_info=True)
            return

        if seq != self._insight_seq or not self.is_authenticated:
            logger.debug("Discarding stale insight response #%d", seq)
            return
        self.insight = text

    async def refresh_insight(self) -> str:
        """Request a fresh insight now and wait for it."""
        if self.data is not None:
            self._insight_seq += 1
            await self._refresh_insight(self._insight_seq, self.data)
        return self.insight

    async def wait_for_insights(self) -> None:
        """Wait for in-flight insight refreshes to finish."""
        if self._insight_tasks:
            await asyncio.gather(*self._insight_tasks, return_exceptions=True)

    def _cancel_insight_refreshes(self) -> None:
        self._insight_seq += 1
        for task in list(self._insight_tasks):
            task.cancel()

    async def chat(self, query: str) -> str:
        """Ask the assistant with a short summary of the vault as context."""
        context = None
        if self.data is not None:
            pending = sum(1 for t in self.data.tasks if not t.completed)
            context = f"Pending tasks: {pending}"
        return await self.insight_provider.chat(query, context)

    async def daily_quote(self) -> str:
        return await self.insight_provider.daily_quote()

    # Backup

    def export_backup(self, day: date | None = None) -> BackupDocument:
        """Export the stored data and settings of the current identity."""
        self._require_data()
        return self.backup.export(self.identity, day)

    def import_backup(self, raw: str | bytes | dict) -> VaultData:
        """
        Restore a backup into the current identity and the live session.

        Raises:
            BackupFormatError: If the document is invalid. Nothing changes.
            StorageWriteError: If the medium rejects a write. The live state
                already holds the imported values, as with update_data.
        """
        before = self._require_data()
        data, settings = import_document(raw)
        self.data = data
        self.settings = settings
        if len(data.tasks) != len(before.tasks) or len(data.habits) != len(
            before.habits
        ):
            self._schedule_insight_refresh()
        self.backup.save(self.identity, data, settings)
        return data

    # Domain operations

    def add_task(self, text: str) -> VaultData:
        return self.update_data(lambda d: vault_ops.add_task(d, text))

    def toggle_task(self, task_id: str) -> VaultData:
        return self.update_data(lambda d: vault_ops.toggle_task(d, task_id))

    def delete_task(self, task_id: str) -> VaultData:
        return self.update_data(lambda d: vault_ops.delete_task(d, task_id))

    def create_note(self, title: str | None = None, content: str | None = None) -> VaultData:
        return self.update_data(
            lambda d: vault_ops.create_note(
                d,
                title or vault_ops.NEW_NOTE_TITLE,
                content or vault_ops.NEW_NOTE_CONTENT,
            )
        )

    def update_note(
        self, note_id: str, *, title: str | None = None, content: str | None = None
    ) -> VaultData:
        return self.update_data(
            lambda d: vault_ops.update_note(d, note_id, title=title, content=content)
        )

    def attach_file(self, note_id: str, file_id: str) -> VaultData:
        return self.update_data(lambda d: vault_ops.attach_file(d, note_id, file_id))

    def lock_note(self, note_id: str, locked: bool = True) -> VaultData:
        return self.update_data(lambda d: vault_ops.set_note_lock(d, note_id, locked))

    def delete_note(self, note_id: str) -> VaultData:
        return self.update_data(lambda d: vault_ops.delete_note(d, note_id))

    def add_habit(self, name: str) -> VaultData:
        return self.update_data(lambda d: vault_ops.add_habit(d, name))

    def toggle_habit(self, habit_id: str, day: str | None = None) -> VaultData:
        return self.update_data(lambda d: vault_ops.toggle_habit(d, habit_id, day))

    def delete_habit(self, habit_id: str) -> VaultData:
        return self.update_data(lambda d: vault_ops.delete_habit(d, habit_id))

    def add_goal(self, text: str, goal_type: GoalType = GoalType.DAILY) -> VaultData:
        return self.update_data(lambda d: vault_ops.add_goal(d, text, goal_type))

    def toggle_goal(self, goal_id: str) -> VaultData:
        return self.update_data(lambda d: vault_ops.toggle_goal(d, goal_id))

    def delete_goal(self, goal_id: str) -> VaultData:
        return self.update_data(lambda d: vault_ops.delete_goal(d, goal_id))

    def add_file(self, name: str, mime_type: str, payload: bytes) -> VaultData:
        return self.update_data(
            lambda d: vault_ops.add_file(d, name, mime_type, payload)
        )

    def delete_file(self, file_id: str) -> VaultData:
        return self.update_data(lambda d: vault_ops.delete_file(d, file_id))

    def add_voice_note(
        self, audio: bytes, title: str = "", duration: float = 0
    ) -> VaultData:
        return self.update_data(
            lambda d: vault_ops.add_voice_note(d, audio, title, duration)
        )

    def delete_voice_note(self, voice_note_id: str) -> VaultData:
        return self.update_data(
            lambda d: vault_ops.delete_voice_note(d, voice_note_id)
        )

    def stats(self) -> VaultStats:
        return vault_ops.vault_stats(self._require_data())

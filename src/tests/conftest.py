"""Shared test fixtures and configuration."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from omnivault.core.controller import AppController
from omnivault.core.types import (
    Goal,
    GoalType,
    Habit,
    Note,
    SessionRecord,
    Task,
    Theme,
    UserSettings,
    VaultData,
    VaultFile,
    VoiceNote,
)
from omnivault.storage.db import MemoryKeyValueStore, SqliteKeyValueStore
from omnivault.storage.repos import SessionRepo, SettingsRepo, VaultRepo


@pytest.fixture
def store():
    """In-memory key-value medium."""
    return MemoryKeyValueStore()


@pytest.fixture
def sqlite_store(tmp_path):
    """SQLite key-value medium in a temp directory."""
    kv = SqliteKeyValueStore(db_path=tmp_path / "test.db")
    yield kv
    kv.close()


@pytest.fixture
def vault_repo(store):
    return VaultRepo(store)


@pytest.fixture
def settings_repo(store):
    return SettingsRepo(store)


@pytest.fixture
def session_repo(store):
    return SessionRepo(store)


@pytest.fixture
def sample_data():
    """A vault with one of everything."""
    return VaultData(
        tasks=[
            Task(id="100", text="Rotate keys", completed=False, created_at=1700000000000),
            Task(id="101", text="Audit logs", completed=True, created_at=1700000001000),
        ],
        notes=[
            Note(
                id="200",
                title="Plans",
                content="<div>Phase one</div>",
                updated_at=1700000002000,
                attachments=["400"],
                is_locked=False,
            )
        ],
        habits=[
            Habit(
                id="300",
                name="Run",
                completed_days=["2024-01-01", "2024-01-03"],
                streak=2,
            )
        ],
        files=[
            VaultFile(
                id="400",
                name="plan.txt",
                type="text/plain",
                size=5,
                data="data:text/plain;base64,aGVsbG8=",
                created_at=1700000003000,
            )
        ],
        goals=[
            Goal(id="500", text="Ship it", type=GoalType.WEEKLY, created_at=1700000004000)
        ],
        voice_notes=[
            VoiceNote(
                id="600",
                title="Log #1",
                audio_data="data:audio/webm;base64,AAAA",
                duration=3.5,
                created_at=1700000005000,
            )
        ],
        points=40,
    )


@pytest.fixture
def sample_settings():
    """Non-default user settings."""
    return UserSettings(user_name="Nadia", theme=Theme.GOLD, language="en")


@pytest.fixture
def mock_insights():
    """Insight provider stub returning fixed text."""
    provider = MagicMock()
    provider.generate_insight = AsyncMock(return_value="Stay sharp, agent.")
    provider.chat = AsyncMock(return_value="Here is your answer.")
    provider.daily_quote = AsyncMock(return_value="Focus wins. - Someone")
    return provider


@pytest.fixture
def mock_auth():
    """Auth provider stub that accepts any credentials."""
    provider = MagicMock()
    provider.sign_in = AsyncMock(
        side_effect=lambda email, password: SessionRecord(id="user-123456789", email=email)
    )
    provider.sign_up = AsyncMock(
        side_effect=lambda email, password: SessionRecord(id="user-987654321", email=email)
    )
    provider.sign_out = AsyncMock(return_value=None)
    provider.get_current_user = AsyncMock(return_value=None)
    return provider


@pytest.fixture
def make_controller(store, mock_auth, mock_insights):
    """Factory for controllers sharing the test store and stubs."""

    def _make_controller(**kwargs) -> AppController:
        kwargs.setdefault("store", store)
        kwargs.setdefault("auth_provider", mock_auth)
        kwargs.setdefault("insight_provider", mock_insights)
        kwargs.setdefault("insights_enabled", True)
        return AppController(**kwargs)

    return _make_controller

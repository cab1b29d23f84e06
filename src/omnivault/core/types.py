"""Shared types and data structures for OmniVault."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, StrEnum
from typing import Any

from pydantic import BaseModel, Field, ValidationInfo, field_validator

# Opaque key scoping all persisted data to one account. Empty means "no persistence".
Identity = str

# Validation context for records read back from storage or backups
STORED_RECORD = {"lenient": True}

__all__ = [
    "BackupDocument",
    "FontSize",
    "FontStyle",
    "Goal",
    "GoalType",
    "Habit",
    "Identity",
    "Language",
    "STORED_RECORD",
    "LoginResult",
    "Note",
    "SessionRecord",
    "SessionStatus",
    "Task",
    "Theme",
    "UserSettings",
    "VaultData",
    "VaultFile",
    "VaultModel",
    "VaultStats",
    "VoiceNote",
]


class Theme(StrEnum):
    """Dashboard color themes."""

    NEON = "neon"
    ARCTIC = "arctic"
    MIDNIGHT = "midnight"
    SEPIA = "sepia"
    GOLD = "gold"


class FontSize(StrEnum):
    """Base font size."""

    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


class FontStyle(StrEnum):
    """Font family preset."""

    MODERN = "modern"
    MONO = "mono"
    CLASSIC = "classic"


class Language(StrEnum):
    """Interface language."""

    EN = "en"
    AR = "ar"
    FR = "fr"


class GoalType(StrEnum):
    """Goal cadence, which also decides the points it is worth."""

    DAILY = "daily"
    WEEKLY = "weekly"


class SessionStatus(Enum):
    """Lifecycle of the controller's session."""

    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class VaultModel(BaseModel, frozen=True, populate_by_name=True):
    """Base for persisted models; field aliases are the stored JSON names."""

    def to_document(self) -> dict[str, Any]:
        """Convert to a JSON-ready dict using the persisted field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class Task(VaultModel):
    """A to-do item."""

    id: str
    text: str = ""
    completed: bool = False
    created_at: int = Field(default=0, alias="createdAt")


class Note(VaultModel):
    """A rich-text note. Attachments are weak references to VaultFile ids."""

    id: str
    title: str = ""
    content: str = ""
    updated_at: int = Field(default=0, alias="updatedAt")
    attachments: list[str] | None = None
    is_locked: bool | None = Field(default=None, alias="isLocked")


class Habit(VaultModel):
    """A tracked habit with the ISO dates it was completed on."""

    id: str
    name: str = ""
    completed_days: list[str] = Field(default_factory=list, alias="completedDays")
    streak: int = 0


class Goal(VaultModel):
    """A daily or weekly goal worth points when completed."""

    id: str
    text: str = ""
    type: GoalType = GoalType.DAILY
    completed: bool = False
    created_at: int = Field(default=0, alias="createdAt")


class VaultFile(VaultModel):
    """A file stored inline with the vault document."""

    id: str
    name: str = ""
    type: str = "application/octet-stream"
    size: int = 0
    data: str = ""
    created_at: int = Field(default=0, alias="createdAt")


class VoiceNote(VaultModel):
    """A recorded audio memo stored inline."""

    id: str
    title: str = ""
    audio_data: str = Field(default="", alias="audioData")
    duration: float = 0
    created_at: int = Field(default=0, alias="createdAt")


class VaultData(VaultModel):
    """The full domain payload for one identity."""

    tasks: list[Task] = Field(default_factory=list)
    notes: list[Note] = Field(default_factory=list)
    habits: list[Habit] = Field(default_factory=list)
    files: list[VaultFile] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    voice_notes: list[VoiceNote] = Field(default_factory=list, alias="voiceNotes")
    points: int = 0

    @field_validator("points", mode="before")
    @classmethod
    def _clamp_points(cls, value: Any) -> int:
        if value is None:
            return 0
        return max(0, int(value))


class UserSettings(VaultModel):
    """User preferences."""

    user_name: str = Field(default="Agent", alias="userName")
    theme: Theme = Theme.NEON
    font_size: FontSize = Field(default=FontSize.MEDIUM, alias="fontSize")
    font_style: FontStyle = Field(default=FontStyle.MODERN, alias="fontStyle")
    language: Language = Language.AR

    @field_validator("theme", "font_size", "font_style", "language", mode="before")
    @classmethod
    def _fallback_unknown(cls, value: Any, info: ValidationInfo) -> Any:
        # Only stored records are lenient; direct input must be a known value
        if not (info.context and info.context.get("lenient")):
            return value
        field = cls.model_fields[info.field_name]
        try:
            return field.annotation(value)
        except (ValueError, TypeError):
            return field.default


class BackupDocument(VaultModel):
    """Combined export of VaultData and UserSettings for one identity."""

    data: VaultData
    settings: UserSettings


class SessionRecord(VaultModel):
    """Minimal identity-bearing record kept in the session cache."""

    id: Identity
    email: str | None = None
    offline: bool = False


@dataclass(frozen=True)
class LoginResult:
    """Outcome of a sign-in or sign-up attempt."""

    record: SessionRecord | None = None
    offline: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.record is not None


@dataclass(frozen=True)
class VaultStats:
    """Aggregate figures for the analytics view."""

    total_tasks: int
    completed_tasks: int
    completion_rate: float
    max_streak: int
    completed_goals: int
    points: int
    stored_bytes: int

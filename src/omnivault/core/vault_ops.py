"""Domain mutations over VaultData.

Every function returns a new VaultData and leaves its input untouched, so the
controller can persist the whole object after each change.
"""

import base64
import logging
import time
from collections.abc import Iterable
from datetime import datetime, timezone

from omnivault.core.config import DAILY_GOAL_POINTS, WEEKLY_GOAL_POINTS
from omnivault.core.types import (
    Goal,
    GoalType,
    Habit,
    Note,
    Task,
    VaultData,
    VaultFile,
    VaultStats,
    VoiceNote,
)

logger = logging.getLogger(__name__)

NEW_NOTE_TITLE = "New Classified Intel"
NEW_NOTE_CONTENT = "<div>...</div>"


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return int(time.time() * 1000)


def today() -> str:
    """Today's ISO calendar date (UTC)."""
    return datetime.now(timezone.utc).date().isoformat()


def new_id(existing: Iterable[str], now: int | None = None) -> str:
    """Timestamp id, bumped past any id already taken."""
    taken = set(existing)
    candidate = now if now is not None else now_ms()
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def _all_ids(data: VaultData) -> set[str]:
    ids: set[str] = set()
    for items in (
        data.tasks,
        data.notes,
        data.habits,
        data.files,
        data.goals,
        data.voice_notes,
    ):
        ids.update(item.id for item in items)
    return ids


def to_data_url(payload: bytes, mime_type: str) -> str:
    """Encode binary content as a base64 data URL."""
    encoded = base64.b64encode(payload).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


def from_data_url(data_url: str) -> bytes:
    """Decode a base64 data URL (or bare base64) back to bytes."""
    _, _, encoded = data_url.rpartition(",")
    return base64.b64decode(encoded)


# Tasks


def add_task(data: VaultData, text: str) -> VaultData:
    if not text.strip():
        return data
    now = now_ms()
    task = Task(id=new_id(_all_ids(data), now), text=text, created_at=now)
    return data.model_copy(update={"tasks": [task, *data.tasks]})


def toggle_task(data: VaultData, task_id: str) -> VaultData:
    tasks = [
        t.model_copy(update={"completed": not t.completed}) if t.id == task_id else t
        for t in data.tasks
    ]
    return data.model_copy(update={"tasks": tasks})


def delete_task(data: VaultData, task_id: str) -> VaultData:
    return data.model_copy(
        update={"tasks": [t for t in data.tasks if t.id != task_id]}
    )


# Notes


def create_note(
    data: VaultData,
    title: str = NEW_NOTE_TITLE,
    content: str = NEW_NOTE_CONTENT,
) -> VaultData:
    now = now_ms()
    note = Note(
        id=new_id(_all_ids(data), now),
        title=title,
        content=content,
        updated_at=now,
        attachments=[],
    )
    return data.model_copy(update={"notes": [note, *data.notes]})


def update_note(
    data: VaultData,
    note_id: str,
    *,
    title: str | None = None,
    content: str | None = None,
) -> VaultData:
    """Edit a note's title and/or content. Locked notes are left as they are."""
    changes: dict[str, object] = {}
    if title is not None:
        changes["title"] = title
    if content is not None:
        changes["content"] = content
    if not changes:
        return data
    changes["updated_at"] = now_ms()

    notes = []
    for note in data.notes:
        if note.id == note_id:
            if note.is_locked:
                logger.debug("Note %s is locked, edit ignored", note_id)
            else:
                note = note.model_copy(update=changes)
        notes.append(note)
    return data.model_copy(update={"notes": notes})


def attach_file(data: VaultData, note_id: str, file_id: str) -> VaultData:
    notes = []
    for note in data.notes:
        current = note.attachments or []
        if note.id == note_id and file_id not in current:
            note = note.model_copy(update={"attachments": [*current, file_id]})
        notes.append(note)
    return data.model_copy(update={"notes": notes})


def set_note_lock(data: VaultData, note_id: str, locked: bool) -> VaultData:
    notes = [
        n.model_copy(update={"is_locked": locked}) if n.id == note_id else n
        for n in data.notes
    ]
    return data.model_copy(update={"notes": notes})


def delete_note(data: VaultData, note_id: str) -> VaultData:
    return data.model_copy(
        update={"notes": [n for n in data.notes if n.id != note_id]}
    )


def resolve_attachments(data: VaultData, note: Note) -> list[VaultFile]:
    """Files referenced by a note, skipping references to deleted files."""
    by_id = {f.id: f for f in data.files}
    return [by_id[ref] for ref in note.attachments or [] if ref in by_id]


# Habits


def add_habit(data: VaultData, name: str) -> VaultData:
    if not name.strip():
        return data
    habit = Habit(id=new_id(_all_ids(data)), name=name)
    return data.model_copy(update={"habits": [*data.habits, habit]})


def toggle_habit(data: VaultData, habit_id: str, day: str | None = None) -> VaultData:
    """Flip completion of a habit for a day (today by default).

    The streak is the number of completed days, recomputed on every toggle.
    """
    day = day or today()
    habits = []
    for habit in data.habits:
        if habit.id == habit_id:
            if day in habit.completed_days:
                days = [d for d in habit.completed_days if d != day]
            else:
                days = [*habit.completed_days, day]
            habit = habit.model_copy(update={"completed_days": days, "streak": len(days)})
        habits.append(habit)
    return data.model_copy(update={"habits": habits})


def delete_habit(data: VaultData, habit_id: str) -> VaultData:
    return data.model_copy(
        update={"habits": [h for h in data.habits if h.id != habit_id]}
    )


# Goals


def goal_points(goal_type: GoalType) -> int:
    """Points a goal is worth when completed."""
    return WEEKLY_GOAL_POINTS if goal_type == GoalType.WEEKLY else DAILY_GOAL_POINTS


def add_goal(
    data: VaultData, text: str, goal_type: GoalType = GoalType.DAILY
) -> VaultData:
    if not text.strip():
        return data
    now = now_ms()
    goal = Goal(
        id=new_id(_all_ids(data), now),
        text=text,
        type=GoalType(goal_type),
        created_at=now,
    )
    return data.model_copy(update={"goals": [goal, *data.goals]})


def toggle_goal(data: VaultData, goal_id: str) -> VaultData:
    """Flip a goal's completion and adjust points, never going below zero."""
    goal = next((g for g in data.goals if g.id == goal_id), None)
    if goal is None:
        return data

    completed = not goal.completed
    delta = goal_points(goal.type)
    points = data.points + (delta if completed else -delta)
    goals = [
        g.model_copy(update={"completed": completed}) if g.id == goal_id else g
        for g in data.goals
    ]
    return data.model_copy(update={"goals": goals, "points": max(0, points)})


def delete_goal(data: VaultData, goal_id: str) -> VaultData:
    return data.model_copy(
        update={"goals": [g for g in data.goals if g.id != goal_id]}
    )


# Files


def add_file(data: VaultData, name: str, mime_type: str, payload: bytes) -> VaultData:
    now = now_ms()
    vault_file = VaultFile(
        id=new_id(_all_ids(data), now),
        name=name,
        type=mime_type,
        size=len(payload),
        data=to_data_url(payload, mime_type),
        created_at=now,
    )
    return data.model_copy(update={"files": [vault_file, *data.files]})


def delete_file(data: VaultData, file_id: str) -> VaultData:
    # Note attachments referencing the file are left in place
    return data.model_copy(
        update={"files": [f for f in data.files if f.id != file_id]}
    )


# Voice notes


def add_voice_note(
    data: VaultData,
    audio: bytes,
    title: str = "",
    duration: float = 0,
    mime_type: str = "audio/webm",
) -> VaultData:
    now = now_ms()
    voice_note = VoiceNote(
        id=new_id(_all_ids(data), now),
        title=title or f"Log #{len(data.voice_notes) + 1}",
        audio_data=to_data_url(audio, mime_type),
        duration=duration,
        created_at=now,
    )
    return data.model_copy(update={"voice_notes": [voice_note, *data.voice_notes]})


def delete_voice_note(data: VaultData, voice_note_id: str) -> VaultData:
    return data.model_copy(
        update={"voice_notes": [v for v in data.voice_notes if v.id != voice_note_id]}
    )


# Analytics


def vault_stats(data: VaultData) -> VaultStats:
    total = len(data.tasks)
    completed = sum(1 for t in data.tasks if t.completed)
    return VaultStats(
        total_tasks=total,
        completed_tasks=completed,
        completion_rate=(completed / total) * 100 if total else 0.0,
        max_streak=max((h.streak for h in data.habits), default=0),
        completed_goals=sum(1 for g in data.goals if g.completed),
        points=data.points,
        stored_bytes=sum(f.size for f in data.files),
    )

"""CLI application for OmniVault using Rich and Typer."""

import asyncio
import logging
import mimetypes
from collections.abc import Awaitable, Callable
from datetime import date, datetime
from pathlib import Path
from typing import Optional, TypeVar

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from omnivault.core.backup import DirectoryDelivery, backup_filename
from omnivault.core.config import setup_logging
from omnivault.core.controller import AppController
from omnivault.core.errors import VaultError
from omnivault.core.types import FontSize, FontStyle, GoalType, Language, Theme

T = TypeVar("T")

app = typer.Typer(
    name="omnivault",
    help="OmniVault CLI - Your Personal Productivity Vault",
    no_args_is_help=True,
)
task_app = typer.Typer(help="Manage tasks")
note_app = typer.Typer(help="Manage notes")
habit_app = typer.Typer(help="Track habits")
goal_app = typer.Typer(help="Daily and weekly goals")
file_app = typer.Typer(help="Files stored in the vault")
voice_app = typer.Typer(help="Voice notes")
settings_app = typer.Typer(help="View/modify settings")

app.add_typer(task_app, name="task")
app.add_typer(note_app, name="note")
app.add_typer(habit_app, name="habit")
app.add_typer(goal_app, name="goal")
app.add_typer(file_app, name="file")
app.add_typer(voice_app, name="voice")
app.add_typer(settings_app, name="settings")

console = Console()


def build_controller(insights_enabled: bool = False) -> AppController:
    """Controller wired to the default store, with backups written to disk."""
    return AppController(delivery=DirectoryDelivery(), insights_enabled=insights_enabled)


def _run(coro: Awaitable[T]) -> T:
    """Run a coroutine, turning vault errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except VaultError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


async def _open_session(insights_enabled: bool = False) -> AppController:
    controller = build_controller(insights_enabled)
    await controller.initialize()
    if not controller.is_authenticated:
        console.print("[red]Not logged in. Run 'omnivault login' first.[/red]")
        raise typer.Exit(1)
    return controller


def _with_session(action: Callable[[AppController], T]) -> T:
    """Open the cached session and apply a synchronous action to it."""

    async def _inner() -> T:
        controller = await _open_session()
        return action(controller)

    return _run(_inner())


def _require_text(text: str) -> None:
    if not text.strip():
        console.print("[red]Nothing to add.[/red]")
        raise typer.Exit(1)


def _short(ts: int) -> str:
    return datetime.fromtimestamp(ts / 1000).strftime("%Y-%m-%d %H:%M") if ts else ""


# Session


def _login(email: str, password: str, register: bool) -> None:
    async def _inner():
        controller = build_controller()
        await controller.initialize()
        if register:
            return await controller.sign_up(email, password)
        return await controller.sign_in(email, password)

    result = _run(_inner())
    if not result.ok:
        console.print(f"[red]Authentication failed: {result.error}[/red]")
        raise typer.Exit(1)
    if result.offline:
        console.print("[yellow]Offline mode active: session is not verified remotely.[/yellow]")
    console.print(f"[green]Logged in as {result.record.email or result.record.id}[/green]")


@app.command()
def login(
    email: str = typer.Option(..., "--email", "-e", prompt=True),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True),
):
    """Sign in and open your vault."""
    _login(email, password, register=False)


@app.command()
def signup(
    email: str = typer.Option(..., "--email", "-e", prompt=True),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True
    ),
):
    """Create an account and open your vault."""
    _login(email, password, register=True)


@app.command()
def logout():
    """End the current session. Vault data stays on this device."""

    async def _inner():
        controller = build_controller()
        await controller.initialize()
        await controller.logout()

    _run(_inner())
    console.print("[dim]Logged out.[/dim]")


@app.command()
def whoami():
    """Show the active session."""
    session = _with_session(lambda c: c.session)
    mode = "offline" if session.offline else "verified"
    console.print(f"{session.email or '-'} [dim]({session.id[:6]}..., {mode})[/dim]")


@app.command()
def dashboard():
    """Overview: points, counts and an AI briefing."""

    async def _inner():
        controller = await _open_session()
        await controller.refresh_insight()
        return controller

    controller = _run(_inner())
    data = controller.data
    table = Table(show_header=False, box=None)
    table.add_column("Item", style="cyan")
    table.add_column("Value")
    table.add_row("Agent", controller.settings.user_name)
    table.add_row("Points", str(data.points))
    table.add_row("Tasks", str(len(data.tasks)))
    table.add_row("Notes", str(len(data.notes)))
    table.add_row("Habits", str(len(data.habits)))
    table.add_row("Goals", str(len(data.goals)))
    table.add_row("Files", str(len(data.files)))
    console.print(Panel(table, title="OmniVault", border_style="green"))
    if controller.insight:
        console.print(Panel(f'"{controller.insight}"', title="Vault AI", border_style="blue"))


@app.command()
def stats():
    """Task completion and habit analytics."""
    result = _with_session(lambda c: c.stats())
    table = Table(title="Stats", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")
    table.add_row("Tasks completed", f"{result.completed_tasks} / {result.total_tasks}")
    table.add_row("Completion rate", f"{result.completion_rate:.0f}%")
    table.add_row("Best streak", str(result.max_streak))
    table.add_row("Goals completed", str(result.completed_goals))
    table.add_row("Points", str(result.points))
    table.add_row("Stored bytes", str(result.stored_bytes))
    console.print(table)


# Tasks


@task_app.command("add")
def task_add(text: str):
    _require_text(text)
    data = _with_session(lambda c: c.add_task(text))
    console.print(f"[green]Task added ({data.tasks[0].id})[/green]")


@task_app.command("done")
def task_done(task_id: str):
    _with_session(lambda c: c.toggle_task(task_id))
    console.print("[green]Task toggled[/green]")


@task_app.command("rm")
def task_rm(task_id: str):
    _with_session(lambda c: c.delete_task(task_id))
    console.print("[yellow]Task deleted[/yellow]")


@task_app.command("list")
def task_list():
    data = _with_session(lambda c: c.data)
    if not data.tasks:
        console.print("[dim]No tasks yet.[/dim]")
        return
    table = Table(title="Tasks", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Task")
    table.add_column("Status")
    for task in data.tasks:
        status = "[green]done[/green]" if task.completed else ""
        table.add_row(task.id, task.text, status)
    console.print(table)


# Notes


@note_app.command("add")
def note_add(
    title: str,
    content: Optional[str] = typer.Option(None, "--content", "-c"),
):
    data = _with_session(lambda c: c.create_note(title, content))
    console.print(f"[green]Note created ({data.notes[0].id})[/green]")


@note_app.command("edit")
def note_edit(
    note_id: str,
    title: Optional[str] = typer.Option(None, "--title", "-t"),
    content: Optional[str] = typer.Option(None, "--content", "-c"),
):
    _with_session(lambda c: c.update_note(note_id, title=title, content=content))
    console.print("[green]Note saved[/green]")


@note_app.command("lock")
def note_lock(note_id: str, unlock: bool = typer.Option(False, "--unlock")):
    _with_session(lambda c: c.lock_note(note_id, not unlock))
    console.print("[green]Note unlocked[/green]" if unlock else "[green]Note locked[/green]")


@note_app.command("attach")
def note_attach(note_id: str, file_id: str):
    _with_session(lambda c: c.attach_file(note_id, file_id))
    console.print("[green]File attached[/green]")


@note_app.command("rm")
def note_rm(note_id: str):
    _with_session(lambda c: c.delete_note(note_id))
    console.print("[yellow]Note deleted[/yellow]")


@note_app.command("list")
def note_list():
    data = _with_session(lambda c: c.data)
    known_files = {f.id for f in data.files}
    table = Table(title="Notes", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Updated")
    table.add_column("Attachments")
    for note in data.notes:
        refs = note.attachments or []
        missing = sum(1 for ref in refs if ref not in known_files)
        attached = str(len(refs)) + (f" ({missing} missing)" if missing else "")
        title = ("(locked) " if note.is_locked else "") + note.title
        table.add_row(note.id, title, _short(note.updated_at), attached)
    console.print(table)


# Habits


@habit_app.command("add")
def habit_add(name: str):
    _require_text(name)
    data = _with_session(lambda c: c.add_habit(name))
    console.print(f"[green]Habit added ({data.habits[-1].id})[/green]")


@habit_app.command("toggle")
def habit_toggle(habit_id: str):
    _with_session(lambda c: c.toggle_habit(habit_id))
    console.print("[green]Habit toggled for today[/green]")


@habit_app.command("list")
def habit_list():
    data = _with_session(lambda c: c.data)
    table = Table(title="Habits", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Habit")
    table.add_column("Streak")
    for habit in data.habits:
        table.add_row(habit.id, habit.name, str(habit.streak))
    console.print(table)


# Goals


@goal_app.command("add")
def goal_add(text: str, weekly: bool = typer.Option(False, "--weekly", "-w")):
    _require_text(text)
    goal_type = GoalType.WEEKLY if weekly else GoalType.DAILY
    data = _with_session(lambda c: c.add_goal(text, goal_type))
    console.print(f"[green]Goal added ({data.goals[0].id})[/green]")


@goal_app.command("toggle")
def goal_toggle(goal_id: str):
    data = _with_session(lambda c: c.toggle_goal(goal_id))
    console.print(f"[green]Goal toggled. Points: {data.points}[/green]")


@goal_app.command("rm")
def goal_rm(goal_id: str):
    _with_session(lambda c: c.delete_goal(goal_id))
    console.print("[yellow]Goal deleted[/yellow]")


@goal_app.command("list")
def goal_list():
    data = _with_session(lambda c: c.data)
    table = Table(title=f"Goals ({data.points} points)", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Goal")
    table.add_column("Type")
    table.add_column("Status")
    for goal in data.goals:
        status = "[green]done[/green]" if goal.completed else ""
        table.add_row(goal.id, goal.text, goal.type.value, status)
    console.print(table)


# Files


@file_app.command("add")
def file_add(path: Path = typer.Argument(..., exists=True, dir_okay=False)):
    mime_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    payload = path.read_bytes()
    data = _with_session(lambda c: c.add_file(path.name, mime_type, payload))
    console.print(f"[green]Stored {path.name} ({data.files[0].id})[/green]")


@file_app.command("rm")
def file_rm(file_id: str):
    _with_session(lambda c: c.delete_file(file_id))
    console.print("[yellow]File deleted[/yellow]")


@file_app.command("list")
def file_list():
    data = _with_session(lambda c: c.data)
    table = Table(title="Files", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Size")
    for vault_file in data.files:
        table.add_row(vault_file.id, vault_file.name, vault_file.type, str(vault_file.size))
    console.print(table)


# Voice notes


@voice_app.command("add")
def voice_add(
    path: Path = typer.Argument(..., exists=True, dir_okay=False),
    title: str = typer.Option("", "--title", "-t"),
    duration: float = typer.Option(0, "--duration", "-d"),
):
    audio = path.read_bytes()
    data = _with_session(lambda c: c.add_voice_note(audio, title, duration))
    console.print(f"[green]Voice note saved ({data.voice_notes[0].title})[/green]")


@voice_app.command("rm")
def voice_rm(voice_note_id: str):
    _with_session(lambda c: c.delete_voice_note(voice_note_id))
    console.print("[yellow]Voice note deleted[/yellow]")


@voice_app.command("list")
def voice_list():
    data = _with_session(lambda c: c.data)
    table = Table(title="Voice Notes", show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Title")
    table.add_column("Recorded")
    for voice_note in data.voice_notes:
        table.add_row(voice_note.id, voice_note.title, _short(voice_note.created_at))
    console.print(table)


# Settings


@settings_app.command("show")
def settings_show():
    current = _with_session(lambda c: c.settings)
    table = Table(title="Settings", show_header=True)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("Name", current.user_name)
    table.add_row("Theme", current.theme.value)
    table.add_row("Font Size", current.font_size.value)
    table.add_row("Font Style", current.font_style.value)
    table.add_row("Language", current.language.value)
    console.print(table)


@settings_app.command("set")
def settings_set(
    name: Optional[str] = typer.Option(None, "--name"),
    theme: Optional[Theme] = typer.Option(None, "--theme"),
    font_size: Optional[FontSize] = typer.Option(None, "--font-size"),
    font_style: Optional[FontStyle] = typer.Option(None, "--font-style"),
    language: Optional[Language] = typer.Option(None, "--language"),
):
    changes = {
        key: value
        for key, value in {
            "user_name": name,
            "theme": theme,
            "font_size": font_size,
            "font_style": font_style,
            "language": language,
        }.items()
        if value is not None
    }
    if not changes:
        console.print("[red]Nothing to change.[/red]")
        raise typer.Exit(1)
    _with_session(lambda c: c.update_settings(**changes))
    console.print("[green]Settings saved[/green]")


# Backup


@app.command("export")
def export_backup(
    directory: Optional[Path] = typer.Option(None, "--dir", help="Output directory"),
):
    """Write a JSON backup of your vault and settings."""

    day = date.today()

    def _export(controller: AppController):
        delivery = DirectoryDelivery(directory)
        controller.backup.delivery = delivery
        controller.export_backup(day)
        return delivery.directory / backup_filename(controller.identity, day)

    path = _with_session(_export)
    console.print(f"[green]Backup written to {path}[/green]")


@app.command("import")
def import_backup(path: Path = typer.Argument(..., exists=True, dir_okay=False)):
    """Restore a JSON backup into the current vault, replacing its contents."""
    raw = path.read_text(encoding="utf-8")
    data = _with_session(lambda c: c.import_backup(raw))
    console.print(
        f"[green]Restored {len(data.tasks)} tasks and {len(data.notes)} notes[/green]"
    )


# Assistant


@app.command()
def chat(query: str):
    """Ask the vault assistant a question."""

    async def _inner():
        controller = await _open_session()
        return await controller.chat(query)

    console.print(Panel(_run(_inner()), title="OmniAI", border_style="green"))


@app.command()
def quote():
    """Print a motivational quote of the day."""

    async def _inner():
        return await build_controller().daily_quote()

    console.print(f"[italic]{_run(_inner())}[/italic]")


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", "-d", help="Enable debug logging"),
):
    """OmniVault CLI - Your Personal Productivity Vault."""
    if debug:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(name)s %(levelname)s: %(message)s",
            datefmt="%H:%M:%S",
        )
    else:
        setup_logging()


def run_cli():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    run_cli()

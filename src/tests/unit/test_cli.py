"""Tests for omnivault.interfaces.cli.app module."""

import json
from datetime import date

import pytest
from typer.testing import CliRunner

import omnivault.interfaces.cli.app as cli
from omnivault.core.controller import AppController
from omnivault.core.errors import AuthRejectedError, AuthUnavailableError
from omnivault.core.types import SessionRecord, Theme
from omnivault.storage.repos import SessionRepo, SettingsRepo, VaultRepo

runner = CliRunner()


@pytest.fixture
def cli_store(monkeypatch, store, mock_auth, mock_insights):
    """Route every CLI command to a controller on the shared test store."""

    def _build(insights_enabled: bool = False) -> AppController:
        return AppController(
            store=store,
            auth_provider=mock_auth,
            insight_provider=mock_insights,
            insights_enabled=insights_enabled,
        )

    monkeypatch.setattr(cli, "build_controller", _build)
    return store


@pytest.fixture
def logged_in(cli_store):
    SessionRepo(cli_store).set(SessionRecord(id="user-123456789", email="agent@vault.io"))
    return cli_store


def _invoke(*args):
    return runner.invoke(cli.app, list(args))


class TestSessionCommands:
    """Tests for login, logout and whoami."""

    def test_login_caches_session(self, cli_store):
        result = _invoke("login", "-e", "agent@vault.io", "-p", "pw")

        assert result.exit_code == 0
        assert "Logged in as agent@vault.io" in result.stdout
        assert SessionRepo(cli_store).get().id == "user-123456789"

    def test_login_rejected(self, cli_store, mock_auth):
        mock_auth.sign_in.side_effect = AuthRejectedError("Invalid login credentials")

        result = _invoke("login", "-e", "agent@vault.io", "-p", "bad")

        assert result.exit_code == 1
        assert "Authentication failed" in result.stdout

    def test_login_offline_warns(self, cli_store, mock_auth):
        mock_auth.sign_in.side_effect = AuthUnavailableError("down")

        result = _invoke("login", "-e", "agent@vault.io", "-p", "pw")

        assert result.exit_code == 0
        assert "Offline mode" in result.stdout

    def test_whoami(self, logged_in):
        result = _invoke("whoami")

        assert result.exit_code == 0
        assert "agent@vault.io" in result.stdout

    def test_logout(self, logged_in):
        result = _invoke("logout")

        assert result.exit_code == 0
        assert SessionRepo(logged_in).get() is None

    def test_commands_require_login(self, cli_store):
        result = _invoke("task", "list")

        assert result.exit_code == 1
        assert "Not logged in" in result.stdout


class TestVaultCommands:
    """Tests for the domain subcommands."""

    def test_task_add_and_list(self, logged_in):
        assert _invoke("task", "add", "Review perimeter").exit_code == 0

        result = _invoke("task", "list")

        assert "Review perimeter" in result.stdout
        assert VaultRepo(logged_in).load("user-123456789").tasks[0].text == "Review perimeter"

    @pytest.mark.parametrize("group", ["task", "habit", "goal"])
    def test_blank_add_is_refused(self, logged_in, group):
        """Blank text adds nothing and does not report an id."""
        _invoke("task", "add", "existing")
        before = VaultRepo(logged_in).load("user-123456789")

        result = _invoke(group, "add", "   ")

        assert result.exit_code == 1
        assert "Nothing to add" in result.stdout
        assert "added" not in result.stdout
        assert VaultRepo(logged_in).load("user-123456789") == before

    def test_goal_toggle_reports_points(self, logged_in):
        _invoke("goal", "add", "Ship", "--weekly")
        goal_id = VaultRepo(logged_in).load("user-123456789").goals[0].id

        result = _invoke("goal", "toggle", goal_id)

        assert "Points: 50" in result.stdout

    def test_note_lock_shows_in_list(self, logged_in):
        note_id = VaultRepo(logged_in).load("user-123456789").notes[0].id
        _invoke("note", "lock", note_id)

        result = _invoke("note", "list")

        assert "(locked)" in result.stdout

    def test_file_add(self, logged_in, tmp_path):
        path = tmp_path / "plan.txt"
        path.write_text("hello")

        result = _invoke("file", "add", str(path))

        assert result.exit_code == 0
        stored = VaultRepo(logged_in).load("user-123456789").files[0]
        assert stored.name == "plan.txt"
        assert stored.size == 5

    def test_habit_add_and_toggle(self, logged_in):
        _invoke("habit", "add", "Run")
        habit_id = VaultRepo(logged_in).load("user-123456789").habits[0].id

        _invoke("habit", "toggle", habit_id)

        assert VaultRepo(logged_in).load("user-123456789").habits[0].streak == 1

    def test_stats(self, logged_in):
        _invoke("task", "add", "one")

        result = _invoke("stats")

        assert result.exit_code == 0
        assert "0 / 1" in result.stdout


class TestSettingsCommands:
    """Tests for settings show/set."""

    def test_set_theme(self, logged_in):
        result = _invoke("settings", "set", "--theme", "gold", "--name", "Nadia")

        assert result.exit_code == 0
        stored = SettingsRepo(logged_in).load("user-123456789")
        assert stored.theme == Theme.GOLD
        assert stored.user_name == "Nadia"

    def test_set_nothing(self, logged_in):
        assert _invoke("settings", "set").exit_code == 1

    def test_show(self, logged_in):
        result = _invoke("settings", "show")

        assert "neon" in result.stdout


class TestBackupCommands:
    """Tests for export and import."""

    def test_export_writes_file(self, logged_in, tmp_path):
        _invoke("task", "add", "backup me")

        result = _invoke("export", "--dir", str(tmp_path))

        assert result.exit_code == 0
        path = tmp_path / f"omnivault_backup_user-1_{date.today().isoformat()}.json"
        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["data"]["tasks"][0]["text"] == "backup me"
        assert "settings" in document

    def test_import_restores(self, logged_in, tmp_path, sample_data):
        path = tmp_path / "backup.json"
        path.write_text(json.dumps({"data": sample_data.to_document()}))

        result = _invoke("import", str(path))

        assert result.exit_code == 0
        assert "Restored 2 tasks" in result.stdout
        assert VaultRepo(logged_in).load("user-123456789") == sample_data

    def test_import_invalid_file(self, logged_in, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text("not json")

        result = _invoke("import", str(path))

        assert result.exit_code == 1
        assert "Error" in result.stdout


class TestAssistantCommands:
    """Tests for chat and quote."""

    def test_chat(self, logged_in, mock_insights):
        result = _invoke("chat", "status?")

        assert "Here is your answer." in result.stdout
        mock_insights.chat.assert_awaited_once()

    def test_quote(self, cli_store):
        result = _invoke("quote")

        assert "Focus wins." in result.stdout

    def test_dashboard(self, logged_in):
        result = _invoke("dashboard")

        assert result.exit_code == 0
        assert "Stay sharp, agent." in result.stdout

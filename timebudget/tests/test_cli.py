"""Tests for the Typer CLI."""

import json

from timebudget.cli.main import app
from timebudget.projects.ledger import create_budget_injection, create_recurring_budget
from timebudget.timetracker.entries import create_time_entry


def _log(conn, entry_date, seconds=3600):
    create_time_entry(conn, user_id=1, project_id=1, entry_date=entry_date,
                      duration_seconds=seconds, admin_override=True)


class TestTopLevel:
    def test_version(self, cli_runner):
        import timebudget

        result = cli_runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert timebudget.__version__ in result.output

    def test_migrate(self, cli_runner, monkeypatch, tmp_path):
        monkeypatch.setenv("TIMEBUDGET_DB", str(tmp_path / "cli.db"))
        result = cli_runner.invoke(app, ["migrate"])
        assert result.exit_code == 0
        assert (tmp_path / "cli.db").exists()

    def test_sub_apps_registered(self, cli_runner):
        result = cli_runner.invoke(app, ["--help"])
        for name in ("report", "ledger", "timetracker"):
            assert name in result.output


class TestReportCommands:
    def test_breakdown_json(self, cli_runner, mock_db, seed_user, seed_project):
        _log(mock_db, "2024-03-04")
        result = cli_runner.invoke(app, ["report", "breakdown", "1", "-y", "2024", "-m", "3", "-f", "json"])
        assert result.exit_code == 0
        body = json.loads(result.output)
        assert body["monthData"]["totalSpend"] == 25.0

    def test_breakdown_human(self, cli_runner, mock_db, seed_user, seed_project):
        _log(mock_db, "2024-03-04")
        result = cli_runner.invoke(app, ["report", "breakdown", "1", "-y", "2024", "-m", "3"])
        assert result.exit_code == 0
        assert "Apollo - 2024-03" in result.output
        assert "Engineering" in result.output
        assert "Ada Lovelace" in result.output

    def test_breakdown_bad_month(self, cli_runner, mock_db, seed_project):
        result = cli_runner.invoke(app, ["report", "breakdown", "1", "-y", "2024", "-m", "13"])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_lifetime(self, cli_runner, mock_db, seed_project):
        create_budget_injection(mock_db, project_id=1, injection_date="2024-01-01", amount=500)
        result = cli_runner.invoke(app, ["report", "lifetime", "1", "-f", "json"])
        assert result.exit_code == 0
        assert json.loads(result.output)["totalBudget"] == 500.0


class TestLedgerCommands:
    def test_injections(self, cli_runner, mock_db, seed_project):
        create_budget_injection(mock_db, project_id=1, injection_date="2024-01-01", amount=500,
                                description="Seed money")
        result = cli_runner.invoke(app, ["ledger", "injections", "1"])
        assert result.exit_code == 0
        assert "Seed money" in result.output
        assert "Lifetime budget: 500.00" in result.output

    def test_injections_empty(self, cli_runner, mock_db, seed_project):
        result = cli_runner.invoke(app, ["ledger", "injections", "1"])
        assert "No budget injections." in result.output

    def test_recurring(self, cli_runner, mock_db, seed_project):
        create_recurring_budget(mock_db, project_id=1, amount="300", frequency="quarterly",
                                start_date="2024-01-01")
        result = cli_runner.invoke(app, ["ledger", "recurring", "1"])
        assert result.exit_code == 0
        assert "100.00/month" in result.output
        assert "active" in result.output


class TestTimetrackerCommands:
    def test_generate_summaries(self, cli_runner, mock_db, seed_user, seed_project):
        _log(mock_db, "2024-01-10")
        result = cli_runner.invoke(app, ["timetracker", "generate-summaries", "--as-of", "2024-02-15"])
        assert result.exit_code == 0
        assert "1 new row(s)" in result.output

        again = cli_runner.invoke(app, ["timetracker", "generate-summaries", "--as-of", "2024-02-15"])
        assert "0 new row(s)" in again.output

    def test_generate_summaries_bad_date(self, cli_runner, mock_db):
        result = cli_runner.invoke(app, ["timetracker", "generate-summaries", "--as-of", "soon"])
        assert result.exit_code == 1

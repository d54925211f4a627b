"""
Smoke Tests for CLI Commands.

These tests verify that CLI commands run without errors and produce output.
They don't validate correctness deeply - just that commands work.

Usage:
    pytest tests/smoke/test_cli_commands.py -v
    pytest tests/smoke/test_cli_commands.py -v -m smoke
"""

import pytest
from rich.console import Console
from typer.testing import CliRunner

from src.cli import lesson_cli
from src.cli.lesson_cli import app
from tests.fakes import evaluation_response, plan_response

# Mark all tests in this module as smoke tests
pytestmark = pytest.mark.smoke

runner = CliRunner()


@pytest.fixture(autouse=True)
def cli_workflow(workflow, monkeypatch):
    """Point the CLI at the in-memory workflow instead of the configured database."""
    monkeypatch.setattr(lesson_cli, "configure_logging", lambda **kwargs: None)
    monkeypatch.setattr(lesson_cli, "console", Console(width=200))
    lesson_cli.state.workflow = workflow
    yield workflow
    lesson_cli.state.workflow = None


def invoke(*args: str):
    return runner.invoke(app, ["--user", "user-1", *args])


@pytest.fixture
def plan_view(cli_workflow, fake_gateway):
    fake_gateway.queue(plan_response(3))
    return cli_workflow.create_plan("user-1", "Linear Algebra", num_challenges=3)


class TestCLIHelp:
    def test_main_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("generate", "plans", "show", "submit", "recompute", "serve"):
            assert command in result.output


class TestPlanCommands:
    def test_plans_empty(self):
        result = invoke("plans")
        assert result.exit_code == 0
        assert "No plans yet" in result.output

    def test_generate(self, fake_gateway):
        fake_gateway.queue(plan_response(3))
        result = invoke("generate", "Linear Algebra", "--count", "3", "--difficulty", "intermediate")
        assert result.exit_code == 0, result.output
        assert "Linear Algebra" in result.output
        assert "Challenge 1" in result.output

    def test_generate_wrong_count(self, fake_gateway):
        fake_gateway.queue(plan_response(2))
        result = invoke("generate", "Linear Algebra", "--count", "3")
        assert result.exit_code == 1
        assert "Error" in result.output

    def test_plans_lists_created_plan(self, plan_view):
        result = invoke("plans")
        assert result.exit_code == 0
        assert "Linear Algebra" in result.output

    def test_show(self, plan_view):
        result = invoke("show", plan_view.plan.id)
        assert result.exit_code == 0
        assert "Challenge 3" in result.output

    def test_show_other_user(self, plan_view):
        result = runner.invoke(app, ["--user", "someone-else", "show", plan_view.plan.id])
        assert result.exit_code == 1
        assert "Plan not found" in result.output

    def test_archive(self, plan_view):
        result = invoke("archive", plan_view.plan.id)
        assert result.exit_code == 0
        assert "Archived" in result.output

    def test_recompute_nothing_to_do(self, plan_view):
        result = invoke("recompute", plan_view.plan.id)
        assert result.exit_code == 0
        assert "Nothing generated" in result.output


class TestChallengeCommands:
    def test_start(self, plan_view):
        result = invoke("start", plan_view.challenges[0].id)
        assert result.exit_code == 0
        assert "Success criteria" in result.output

    def test_submit_text(self, plan_view, fake_gateway):
        fake_gateway.queue(evaluation_response(True, 90, "Well reasoned."))
        result = invoke("submit", plan_view.challenges[0].id, "--text", "My answer")
        assert result.exit_code == 0, result.output
        assert "PASSED" in result.output
        assert "Well reasoned." in result.output

    def test_submit_file(self, plan_view, fake_gateway, tmp_path):
        answer = tmp_path / "answer.md"
        answer.write_text("A matrix is a linear map.", encoding="utf-8")
        fake_gateway.queue(evaluation_response(False, 30, "Too brief."))

        result = invoke("submit", plan_view.challenges[0].id, "--file", str(answer))
        assert result.exit_code == 0, result.output
        assert "NOT YET" in result.output

    def test_submit_blank(self, plan_view):
        result = invoke("submit", plan_view.challenges[0].id)
        assert result.exit_code == 1
        assert "Submission content is required" in result.output

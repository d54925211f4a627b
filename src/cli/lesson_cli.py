"""
OpenLesson CLI - adaptive challenges from the terminal.

Usage:
    openlesson generate "Linear Algebra" --count 3   # Create a plan
    openlesson plans                                 # List your plans
    openlesson show PLAN_ID                          # Challenges + progress
    openlesson submit CHALLENGE_ID --file answer.md  # Get graded
    openlesson recompute PLAN_ID                     # Adapt upcoming work
    openlesson serve                                 # Run the HTTP API
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, NoReturn

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config import get_settings
from src.core.logs import configure_logging
from src.db.database import init_db
from src.engine.errors import LessonEngineError
from src.engine.models import ChallengeStatus, Difficulty, PlanStatus
from src.lessons.workflow import LessonWorkflow, PlanView

# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="openlesson",
    help="OpenLesson - AI-generated challenges that adapt to you",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()

STATUS_STYLES = {
    ChallengeStatus.PENDING: "dim",
    ChallengeStatus.IN_PROGRESS: "yellow",
    ChallengeStatus.PASSED: "green",
    ChallengeStatus.FAILED: "red",
}


class CliState:
    user_id: str = "local"
    workflow: LessonWorkflow | None = None


state = CliState()


def get_workflow() -> LessonWorkflow:
    if state.workflow is None:
        init_db()
        state.workflow = LessonWorkflow.from_settings()
    return state.workflow


def fail(exc: Exception) -> NoReturn:
    console.print(f"[bold red]Error:[/] {exc}")
    raise typer.Exit(code=1)


@app.callback()
def main_callback(
    user: Annotated[
        str | None, typer.Option("--user", "-u", help="User identifier to act as")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show engine logs")] = False,
) -> None:
    settings = get_settings()
    state.user_id = user or settings.cli_user_id
    configure_logging(level="DEBUG" if verbose else "WARNING")


# =============================================================================
# Rendering
# =============================================================================


def render_plan(view: PlanView) -> None:
    plan = view.plan
    console.print(
        Panel(
            f"[bold cyan]{plan.topic}[/]\n{plan.description}\n\n"
            f"Status: {plan.status.value}  |  "
            f"Difficulty: {plan.metadata.difficulty.value}  |  "
            f"Progress: {view.progress}%",
            title=f"Plan {plan.id}",
            border_style="cyan",
        )
    )

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Status")
    table.add_column("ID", style="dim")
    for challenge in view.challenges:
        style = STATUS_STYLES.get(challenge.status, "")
        table.add_row(
            str(challenge.order_index + 1),
            challenge.title,
            f"[{style}]{challenge.status.value}[/]",
            challenge.id,
        )
    console.print(table)


# =============================================================================
# Plan Commands
# =============================================================================


@app.command()
def generate(
    topic: Annotated[str, typer.Argument(help="What you want to learn")],
    context: Annotated[
        str | None, typer.Option("--context", "-c", help="Background or goals")
    ] = None,
    difficulty: Annotated[
        Difficulty, typer.Option("--difficulty", "-d", help="Starting level")
    ] = Difficulty.BEGINNER,
    count: Annotated[int, typer.Option("--count", "-n", help="Challenges (3-10)")] = 5,
) -> None:
    """Generate a new learning plan."""
    workflow = get_workflow()
    with console.status("[cyan]Generating plan...[/]"):
        try:
            view = workflow.create_plan(state.user_id, topic, context, difficulty, count)
        except LessonEngineError as e:
            fail(e)
    render_plan(view)


@app.command()
def plans(
    status: Annotated[
        PlanStatus | None, typer.Option("--status", "-s", help="Filter by status")
    ] = None,
) -> None:
    """List your plans."""
    views = get_workflow().list_plans(state.user_id, status)
    if not views:
        console.print("[dim]No plans yet. Try: openlesson generate \"Topic\"[/]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Topic")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Challenges", justify="right")
    table.add_column("ID", style="dim")
    for view in views:
        table.add_row(
            view.plan.topic,
            view.plan.status.value,
            f"{view.progress}%",
            str(len(view.challenges)),
            view.plan.id,
        )
    console.print(table)


@app.command()
def show(plan_id: Annotated[str, typer.Argument(help="Plan ID")]) -> None:
    """Show a plan and its challenges."""
    try:
        view = get_workflow().get_plan(state.user_id, plan_id)
    except LessonEngineError as e:
        fail(e)
    render_plan(view)


@app.command()
def archive(plan_id: Annotated[str, typer.Argument(help="Plan ID")]) -> None:
    """Archive a plan."""
    try:
        plan = get_workflow().archive_plan(state.user_id, plan_id)
    except LessonEngineError as e:
        fail(e)
    console.print(f"[green]Archived[/] {plan.topic}")


@app.command()
def recompute(plan_id: Annotated[str, typer.Argument(help="Plan ID")]) -> None:
    """Add adapted challenges if the plan is running low."""
    with console.status("[cyan]Recomputing...[/]"):
        try:
            outcome = get_workflow().recompute(state.user_id, plan_id)
        except LessonEngineError as e:
            fail(e)

    if not outcome.new_challenges:
        reason = outcome.result.reason or "model returned no challenges"
        console.print(f"[yellow]Nothing generated[/] ({reason})")
        return
    console.print(
        f"[green]Added {len(outcome.new_challenges)} challenges[/] "
        f"(average score {round(outcome.result.average_score or 0)}%)"
    )
    for challenge in outcome.new_challenges:
        console.print(f"  {challenge.order_index + 1}. {challenge.title}")


# =============================================================================
# Challenge Commands
# =============================================================================


@app.command()
def start(challenge_id: Annotated[str, typer.Argument(help="Challenge ID")]) -> None:
    """Open a challenge and mark it in progress."""
    try:
        challenge = get_workflow().start_challenge(state.user_id, challenge_id)
    except LessonEngineError as e:
        fail(e)

    body = f"{challenge.description}\n\n[bold]Success criteria:[/] {challenge.success_criteria}"
    if challenge.hints:
        body += "\n\n[bold]Hints:[/]\n" + "\n".join(f"  • {h}" for h in challenge.hints)
    console.print(Panel(body, title=challenge.title, border_style="yellow"))


@app.command()
def submit(
    challenge_id: Annotated[str, typer.Argument(help="Challenge ID")],
    text: Annotated[str | None, typer.Option("--text", "-t", help="Answer text")] = None,
    file: Annotated[
        Path | None,
        typer.Option("--file", "-f", exists=True, dir_okay=False, help="Read answer from file"),
    ] = None,
) -> None:
    """Submit an answer and get graded."""
    content = file.read_text(encoding="utf-8") if file else (text or "")
    with console.status("[cyan]Evaluating...[/]"):
        try:
            outcome = get_workflow().submit(state.user_id, challenge_id, content)
        except LessonEngineError as e:
            fail(e)

    evaluation = outcome.evaluation
    verdict = "[bold green]PASSED[/]" if evaluation.passed else "[bold red]NOT YET[/]"
    console.print(
        Panel(
            f"{verdict}  Score: {evaluation.score}/100\n\n{evaluation.feedback}",
            title="Evaluation",
            border_style="green" if evaluation.passed else "red",
        )
    )
    if outcome.plan_status == PlanStatus.COMPLETED:
        console.print("[bold green]Plan completed![/]")
    if outcome.new_challenges:
        console.print(f"[cyan]{len(outcome.new_challenges)} new challenges added to your plan[/]")


# =============================================================================
# Server
# =============================================================================


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Bind address")] = None,
    port: Annotated[int | None, typer.Option(help="Port")] = None,
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "src.api.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_level=settings.log_level.lower(),
    )


# =============================================================================
# Entry Point
# =============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()

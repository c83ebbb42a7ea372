"""studylens CLI: dashboards, session recording and housekeeping."""

import json
import logging
import sys
from datetime import timedelta
from pathlib import Path
from typing import Annotated, Any

import typer
import yaml

from studylens.application.config import resolve_config
from studylens.application.factory import (
    build_analytics_service,
    build_progress_service,
    build_scoring_engine,
)
from studylens.application.serialization import load_answers, to_jsonable
from studylens.application.utils.timeutil import utcnow
from studylens.domain.exceptions import StudylensError
from studylens.domain.models import StudyMode
from studylens.domain.report import AnalyticsReport

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="studylens: learning analytics for flashcard study sessions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage studylens configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.WARNING,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for studylens."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    if verbose >= 2:
        logging.getLogger("studylens").setLevel(logging.DEBUG)
    elif verbose == 1:
        logging.getLogger("studylens").setLevel(logging.INFO)


def _fail(e: Exception) -> typer.Exit:
    typer.secho(f"Error: {e}", fg="red", err=True)
    return typer.Exit(1)


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def dashboard(
    user: Annotated[str, typer.Argument(help="User to report on.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Generate the analytics dashboard for a user."""
    try:
        service = build_analytics_service(resolve_config())
        report = service.generate_dashboard(user)
    except (StudylensError, ValueError) as e:
        raise _fail(e) from e

    if json_output:
        typer.echo(json.dumps(to_jsonable(report), indent=2))
        return
    _print_report(report)


def _print_report(report: AnalyticsReport) -> None:
    s = report.summary
    typer.secho(f"Dashboard for {report.user_id}", bold=True)
    typer.echo(f"Level: {s.level.value} ({s.total_score} points)")
    typer.echo(
        f"Sessions: {s.sessions_completed}  Sets: {s.sets_completed}  "
        f"Cards: {s.cards_studied}  Study time: {s.total_study_time} min"
    )
    typer.echo(f"Accuracy: {s.overall_accuracy:.0%}  Streak: {s.current_streak}")

    if report.insights:
        typer.secho("\nInsights", bold=True)
        for insight in report.insights:
            color = {"high": "red", "medium": "yellow"}.get(insight.severity.value, "green")
            typer.secho(f"  [{insight.severity.value}] {insight.title}", fg=color)
            typer.echo(f"    {insight.description}")

    if report.recommendations:
        typer.secho("\nRecommendations", bold=True)
        for rec in report.recommendations:
            typer.echo(f"  [{rec.priority.value}] {rec.title}: {rec.description}")

    if report.trends:
        typer.secho("\nTrends", bold=True)
        for trend in report.trends:
            typer.echo(f"  {trend.period.value} {trend.metric}: {trend.trend.value}")

    schedule = report.predictions.optimal_scheduling
    typer.secho("\nNext session", bold=True)
    typer.echo(
        f"  {schedule.next_study_session.isoformat()} for "
        f"{schedule.recommended_duration} min ({schedule.reasoning})"
    )


def _read_answers_file(path: Path) -> Any:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise StudylensError(f"Could not read answers file {path}: {e}") from e
    if isinstance(data, dict):
        data = data.get("answers")
    return data


@app.command()
def record(
    user: Annotated[str, typer.Argument(help="User who studied.")],
    answers_file: Annotated[
        Path,
        typer.Argument(
            help="YAML or JSON list of answers (card_id, is_correct, response_seconds).",
            exists=True,
            dir_okay=False,
        ),
    ],
    set_id: Annotated[str, typer.Option("--set-id", help="Study set that was studied.")],
    mode: Annotated[StudyMode, typer.Option(help="Study mode.")] = StudyMode.FLASHCARD,
    duration: Annotated[
        float, typer.Option(help="Session length in minutes, ending now.", min=0)
    ] = 0.0,
):
    """Record a completed study session from an answers file."""
    now = utcnow()
    try:
        answers = load_answers(_read_answers_file(answers_file))
        config = resolve_config()
        scoring = build_scoring_engine(config)
        service = build_progress_service(config)

        session = scoring.create_session(
            set_id, mode, user_id=user, now=now - timedelta(minutes=duration)
        )
        result = service.record_session(user, session, answers, now=now)
    except (StudylensError, ValueError) as e:
        raise _fail(e) from e

    typer.secho(
        f"Recorded {result.session.cards_studied} answers: +{result.points_earned} points "
        f"(accuracy {result.accuracy:.0%}, best streak {result.streak})",
        fg="green",
    )
    if result.leveled_up:
        typer.secho(
            f"Level up! {result.level_before.value} -> {result.level_after.value}",
            fg="cyan",
            bold=True,
        )


@app.command()
def level(
    score: Annotated[int, typer.Argument(help="Total score.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the level and progress for a total score."""
    try:
        progress = build_scoring_engine(resolve_config()).level_progress(score)
    except (StudylensError, ValueError) as e:
        raise _fail(e) from e

    if json_output:
        typer.echo(json.dumps(to_jsonable(progress), indent=2))
        return

    typer.echo(f"Level: {progress.current_level.value}")
    if progress.next_level is None:
        typer.echo("Top level reached.")
    else:
        typer.echo(
            f"Progress: {progress.progress_percent}% "
            f"({progress.points_to_next} points to {progress.next_level.value})"
        )


@app.command()
def prune(
    user: Annotated[str, typer.Argument(help="User whose history to prune.")],
    days: Annotated[
        int | None, typer.Option(help="Keep outcomes reviewed within this many days.", min=1)
    ] = None,
):
    """Delete card outcomes older than the retention window."""
    try:
        removed = build_progress_service(resolve_config()).apply_retention(user, days=days)
    except (StudylensError, ValueError) as e:
        raise _fail(e) from e
    typer.echo(f"Removed {removed} card outcomes.")


@app.command()
def serve(
    host: Annotated[str, typer.Option(help="Interface to bind.")] = "127.0.0.1",
    port: Annotated[int, typer.Option(help="Port to listen on.")] = 8777,
    reload: Annotated[bool, typer.Option("--reload", help="Reload on code changes.")] = False,
):
    """Run the HTTP server."""
    import uvicorn

    uvicorn.run("studylens.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    try:
        config = resolve_config()
    except ValueError as e:
        raise _fail(e) from e
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


if __name__ == "__main__":
    app()

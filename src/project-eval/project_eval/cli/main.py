"""CLI entrypoint for project-eval — typer app driving the evaluation engine."""

import asyncio
import sys
from collections.abc import Callable
from pathlib import Path
from typing import cast

import structlog
import typer
from rich.console import Console

from project_eval.archive.infrastructure.observer import StructlogArchiveObserver
from project_eval.archive.infrastructure.zip_inspector import ZipArchiveInspector
from project_eval.cli.output.report import detection_view, run_view, submission_view
from project_eval.config.domain.config import EngineConfig
from project_eval.config.infrastructure.observer import StructlogConfigObserver
from project_eval.config.infrastructure.yaml_loader import YamlConfigLoader
from project_eval.core.errors import ProjectEvalError
from project_eval.detection.domain.detector import detect
from project_eval.evaluation.application.service import EvaluationService
from project_eval.evaluation.domain.run import TriggerKind
from project_eval.evaluation.infrastructure.archive_store import FileArchiveStore
from project_eval.evaluation.infrastructure.file_repository import (
    JsonlRunRepository,
    JsonSubmissionRepository,
)
from project_eval.evaluation.infrastructure.observer import StructlogEvaluationObserver
from project_eval.sandbox.application.runner import SandboxRunner
from project_eval.sandbox.domain.observer import SandboxObserver
from project_eval.sandbox.infrastructure.composite_observer import (
    CompositeSandboxObserver,
)
from project_eval.sandbox.infrastructure.docker_sandbox import DockerSandboxProvider
from project_eval.sandbox.infrastructure.observer import StructlogSandboxObserver
from project_eval.sandbox.infrastructure.progress_observer import (
    ProgressSandboxObserver,
)
from project_eval.workspace.infrastructure.materializer import WorkspaceMaterializer
from project_eval.workspace.infrastructure.observer import StructlogWorkspaceObserver

app = typer.Typer(add_completion=False, help="Evaluate learner project archives.")

_console = Console()

_CONFIG_OPTION = typer.Option(
    None, "--config", "-c", help="Path to engine config YAML (defaults apply if omitted)"
)
_LOG_FORMAT_OPTION = typer.Option(
    "console", "--log-format", help="Log format: 'console' or 'json'"
)


def _configure_structlog(log_format: str) -> None:
    """Configure structlog based on the requested format."""
    if log_format == "console":
        renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer()
    elif log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        typer.echo(f"Invalid log format: {log_format!r}. Must be 'console' or 'json'.")
        raise typer.Exit(code=1)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(0),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
    )


def _load_config(config_path: Path | None) -> EngineConfig:
    if config_path is None:
        return EngineConfig()
    return YamlConfigLoader(observer=StructlogConfigObserver()).load(path=config_path)


def _build_service(config: EngineConfig, log_format: str) -> EvaluationService:
    root = config.storage.root
    sandbox_observers: list[SandboxObserver] = [StructlogSandboxObserver()]
    if log_format != "json":
        sandbox_observers.append(ProgressSandboxObserver())
    sandbox_observer = CompositeSandboxObserver(observers=sandbox_observers)

    return EvaluationService(
        config=config,
        submissions=JsonSubmissionRepository(root=root),
        runs=JsonlRunRepository(root=root),
        archives=FileArchiveStore(root=root),
        inspector=ZipArchiveInspector(
            limits=config.archive, observer=StructlogArchiveObserver()
        ),
        materializer=WorkspaceMaterializer(
            limits=config.archive,
            sandbox=config.sandbox,
            observer=StructlogWorkspaceObserver(),
        ),
        sandbox_runner=SandboxRunner(
            provider=DockerSandboxProvider(
                config=config.sandbox, observer=sandbox_observer
            ),
            config=config.sandbox,
            observer=sandbox_observer,
        ),
        observer=StructlogEvaluationObserver(),
    )


def _read_archive(archive_path: Path) -> bytes:
    try:
        return archive_path.read_bytes()
    except OSError as exc:
        typer.echo(f"Failed to read archive file {archive_path}: {exc}")
        raise typer.Exit(code=1) from exc


def _guarded(action: Callable[[], None]) -> None:
    """Run a command body, mapping errors to messages and exit code 1."""
    try:
        action()
    except typer.Exit:
        raise
    except KeyboardInterrupt:
        typer.echo("Interrupted.")
        sys.exit(1)
    except ProjectEvalError as exc:
        typer.echo(str(exc))
        sys.exit(1)
    except Exception as exc:  # noqa: BLE001
        typer.echo(f"Unexpected error: {exc}\nPlease report this bug.")
        sys.exit(1)


@app.command()
def register(
    submission_id: str = typer.Argument(..., help="Submission identifier"),
    assessment_id: str = typer.Option(..., "--assessment", help="Assessment identifier"),
    organization_id: str = typer.Option(
        ..., "--organization", help="Organization identifier"
    ),
    learner_id: str = typer.Option(..., "--learner", help="Learner identifier"),
    config_path: Path | None = _CONFIG_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Create a submission record."""

    def action() -> None:
        _configure_structlog(log_format=log_format)
        service = _build_service(config=_load_config(config_path), log_format=log_format)
        submission = service.register_submission(
            submission_id=submission_id,
            assessment_id=assessment_id,
            organization_id=organization_id,
            learner_id=learner_id,
        )
        _console.print(
            f"Submission [cyan]{submission.submission_id}[/cyan] is {submission.status}"
        )

    _guarded(action)


@app.command()
def submit(
    submission_id: str = typer.Argument(..., help="Submission identifier"),
    archive_path: Path = typer.Argument(..., help="Path to the project ZIP archive"),
    config_path: Path | None = _CONFIG_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Upload a ZIP archive for a submission and print its detection report."""

    def action() -> None:
        _configure_structlog(log_format=log_format)
        service = _build_service(config=_load_config(config_path), log_format=log_format)
        report = service.submit_archive(
            submission_id=submission_id, data=_read_archive(archive_path)
        )
        _console.print(detection_view(report))

    _guarded(action)


@app.command(name="detect")
def detect_command(
    archive_path: Path = typer.Argument(..., help="Path to the project ZIP archive"),
    config_path: Path | None = _CONFIG_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Classify a local ZIP archive without storing anything."""

    def action() -> None:
        _configure_structlog(log_format=log_format)
        config = _load_config(config_path)
        inspector = ZipArchiveInspector(
            limits=config.archive, observer=StructlogArchiveObserver()
        )
        inspection = inspector.inspect(_read_archive(archive_path))
        report = detect(entries=inspection.entries, manifests=inspection.manifests)
        _console.print(detection_view(report))

    _guarded(action)


@app.command()
def run(
    submission_id: str = typer.Argument(..., help="Submission identifier"),
    trigger: str = typer.Option(
        "manual", "--trigger", help="manual, learner_submit, rerun, or system"
    ),
    show_output: bool = typer.Option(
        False, "--show-output", help="Print the tail of the test output"
    ),
    config_path: Path | None = _CONFIG_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Request an evaluation run for a submission and print the result."""

    def action() -> None:
        if trigger not in ("manual", "learner_submit", "rerun", "system"):
            typer.echo(f"Invalid trigger: {trigger!r}.")
            raise typer.Exit(code=1)
        _configure_structlog(log_format=log_format)
        service = _build_service(config=_load_config(config_path), log_format=log_format)
        trigger_kind = cast(TriggerKind, trigger)
        evaluation_run = asyncio.run(
            service.request_run(submission_id=submission_id, trigger=trigger_kind)
        )
        _console.print(run_view(evaluation_run, show_output=show_output))
        if evaluation_run.status == "failed":
            raise typer.Exit(code=2)

    _guarded(action)


@app.command()
def show(
    submission_id: str = typer.Argument(..., help="Submission identifier"),
    config_path: Path | None = _CONFIG_OPTION,
    log_format: str = _LOG_FORMAT_OPTION,
) -> None:
    """Print a submission, its detection report, and its run history."""

    def action() -> None:
        _configure_structlog(log_format=log_format)
        service = _build_service(config=_load_config(config_path), log_format=log_format)
        submission = service.get_submission(submission_id)
        _console.print(
            submission_view(submission, service.list_runs(submission_id))
        )

    _guarded(action)


if __name__ == "__main__":
    app()

"""Rich renderables for detection reports, runs, and submission history."""

from rich.console import Group, RenderableType
from rich.table import Table
from rich.text import Text

from project_eval.detection.domain.report import DetectionReport
from project_eval.evaluation.domain.run import EvaluationRun
from project_eval.evaluation.domain.submission import Submission

_MAX_ERROR_CHARS = 120
_OUTPUT_TAIL_LINES = 20


def score_style(score: int | None) -> str:
    if score is None:
        return "dim"
    if score >= 80:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"


def format_duration(duration_ms: int) -> str:
    """Format milliseconds as '1m 23.4s' or '5.2s'."""
    minutes, seconds = divmod(duration_ms / 1000, 60)
    if minutes >= 1:
        return f"{int(minutes)}m {seconds:.1f}s"
    return f"{seconds:.1f}s"


def tail(text: str, lines: int = _OUTPUT_TAIL_LINES) -> str:
    return "\n".join(text.rstrip().splitlines()[-lines:])


def _mark(passed: bool) -> Text:
    return Text("✓", style="green") if passed else Text("✗", style="red")


def detection_view(report: DetectionReport) -> RenderableType:
    """Render a detection report as a heading line, check table and tally line."""
    heading = Text.assemble(
        "Detected ",
        (report.detected_framework, "bold"),
        f" ({report.confidence} confidence)",
    )
    table = Table()
    table.add_column("", width=1)
    table.add_column("Check")
    table.add_column("Detail", style="dim")
    for check in report.checks:
        table.add_row(_mark(check.passed), check.name, check.detail or "")
    tally = Text(
        f"{report.checks_passed}/{report.checks_total} checks passed"
        f" · {report.entry_count} entries"
        + (f" · project root {report.root_prefix}" if report.root_prefix else ""),
        style="dim",
    )
    return Group(heading, table, tally)


def run_view(run: EvaluationRun, show_output: bool = False) -> RenderableType:
    """Render one run: header line, per-test (or per-check) table, optional output tail."""
    style = score_style(run.score)
    header = Text.assemble(
        ("Run ", "bold"),
        (run.run_id[:8], "cyan"),
        f"  {run.kind} · {run.status} · ",
        (f"{run.score}/{run.max_score}", style),
        f"  ({format_duration(run.duration_ms)})",
    )
    parts: list[RenderableType] = [header, Text(run.summary.message, style="dim")]

    if run.result.tests:
        table = Table(show_header=True, header_style="bold")
        table.add_column("", width=1)
        table.add_column("Test")
        table.add_column("Error", style="red")
        for test in run.result.tests:
            error = (test.error or "").splitlines()[0] if test.error else ""
            table.add_row(_mark(test.passed), test.name, error[:_MAX_ERROR_CHARS])
        parts.append(table)
    elif run.result.checks:
        table = Table(show_header=True, header_style="bold")
        table.add_column("", width=1)
        table.add_column("Check")
        for check in run.result.checks:
            table.add_row(_mark(check.passed), check.name)
        parts.append(table)

    if show_output and run.result.raw_output:
        parts.append(Text("Output (tail):", style="bold"))
        parts.append(Text(tail(run.result.raw_output), style="dim"))
    return Group(*parts)


def submission_view(submission: Submission, runs: list[EvaluationRun]) -> RenderableType:
    header = Text.assemble(
        ("Submission ", "bold"),
        (submission.submission_id, "cyan"),
        f"  status {submission.status}  latest score ",
        (
            str(submission.latest_score) if submission.latest_score is not None else "-",
            score_style(submission.latest_score),
        ),
    )
    table = Table(title="Runs", title_justify="left")
    table.add_column("#", justify="right")
    table.add_column("Run")
    table.add_column("Kind")
    table.add_column("Trigger")
    table.add_column("Status")
    table.add_column("Score", justify="right")
    table.add_column("Created")
    for index, run in enumerate(runs, start=1):
        marker = " *" if run.run_id == submission.latest_run_id else ""
        table.add_row(
            str(index),
            run.run_id[:8] + marker,
            run.kind,
            run.trigger,
            run.status,
            Text(str(run.score), style=score_style(run.score)),
            run.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        )
    parts: list[RenderableType] = [header]
    if submission.detection is not None:
        parts.append(detection_view(submission.detection))
    parts.append(table)
    return Group(*parts)

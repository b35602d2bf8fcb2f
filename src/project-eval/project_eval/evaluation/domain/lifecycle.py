"""Submission lifecycle rules — eligibility and status derivation. Pure functions."""

from project_eval.detection.domain.report import DetectionReport, Framework
from project_eval.evaluation.domain.run import EvaluationRun, RunKind
from project_eval.evaluation.domain.submission import SubmissionStatus


def decide_run_kind(
    detection: DetectionReport,
    supported_framework: Framework,
    archive_available: bool,
) -> RunKind:
    """Full sandbox execution only for the supported framework with a retrievable archive."""
    if detection.detected_framework == supported_framework and archive_available:
        return "sandbox_execution"
    return "preflight"


def status_after(run: EvaluationRun) -> SubmissionStatus:
    if run.status == "queued":
        return "evaluation_queued"
    if run.kind == "preflight":
        return "preflight_completed"
    return "evaluation_completed" if run.success else "evaluation_failed"

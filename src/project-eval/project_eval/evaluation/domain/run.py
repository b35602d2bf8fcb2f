"""EvaluationRun — one append-only execution attempt and its embedded result."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field, model_validator

from project_eval.detection.domain.report import DetectionCheck, Framework
from project_eval.scoring.domain.result import ParserKind, TestCaseResult
from project_eval.scoring.domain.score import MAX_SCORE

type RunKind = Literal["preflight", "sandbox_execution"]
type RunStatus = Literal["queued", "completed", "failed"]
type TriggerKind = Literal["manual", "learner_submit", "rerun", "system"]
type FailureType = Literal[
    "timeout",
    "infrastructure",
    "archive_rejected",
    "install_failed",
    "parse_error",
    "assertion_failure",
]
type SummaryState = Literal["completed", "failed", "preflight_complete"]


class RunDiagnostics(BaseModel, frozen=True):
    failure_type: FailureType | None = None
    parser: ParserKind = "none"
    app_ready: bool | None = None
    timed_out: bool = False
    reason: str | None = None


class RunResult(BaseModel, frozen=True):
    """Per-test outcomes plus the free-form process output they came from."""

    tests: list[TestCaseResult] = Field(default_factory=list)
    checks: list[DetectionCheck] = Field(default_factory=list)
    exit_code: int | None = None
    raw_output: str = ""
    install_output: str = ""
    app_log: str | None = None
    diagnostics: RunDiagnostics = Field(default_factory=RunDiagnostics)


class RunSummary(BaseModel, frozen=True):
    """The compact view of a run that dashboards display."""

    state: SummaryState
    score: int = Field(ge=0, le=MAX_SCORE)
    max_score: int = MAX_SCORE
    tests_passed: int | None = None
    tests_total: int | None = None
    checks_passed: int | None = None
    checks_total: int | None = None
    message: str


class EvaluationRun(BaseModel, frozen=True):
    run_id: str = Field(min_length=1)
    submission_id: str = Field(min_length=1)
    kind: RunKind
    status: RunStatus
    trigger: TriggerKind = "manual"
    framework: Framework
    score: int | None = Field(default=None, ge=0, le=MAX_SCORE)
    max_score: int = MAX_SCORE
    success: bool = False
    result: RunResult = Field(default_factory=RunResult)
    summary: RunSummary
    created_at: datetime
    completed_at: datetime | None = None
    duration_ms: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _terminal_runs_are_scored(self) -> "EvaluationRun":
        if self.status != "queued" and self.score is None:
            raise ValueError("a terminal run must carry a score")
        if self.success and self.status != "completed":
            raise ValueError("only a completed run can be successful")
        return self

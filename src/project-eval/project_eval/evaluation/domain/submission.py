"""Submission — one learner's attempt at one assessment."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from project_eval.detection.domain.report import DetectionReport
from project_eval.evaluation.domain.run import RunSummary

type SourceKind = Literal["zip_upload", "repository_reference"]
type SubmissionStatus = Literal[
    "submitted",
    "preflight_completed",
    "evaluation_queued",
    "evaluation_completed",
    "evaluation_failed",
]

# Identifiers double as file names in the storage layout.
ID_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9._-]{0,127}$"


class Submission(BaseModel, frozen=True):
    """Mutated only by replacement: every transition saves a new copy.

    latest_run_id always names the most recently created run, even when that
    run failed and an earlier one scored higher.
    """

    submission_id: str = Field(pattern=ID_PATTERN)
    assessment_id: str = Field(min_length=1)
    organization_id: str = Field(min_length=1)
    learner_id: str = Field(min_length=1)
    source_kind: SourceKind = "zip_upload"
    source_locator: str | None = None
    detection: DetectionReport | None = None
    status: SubmissionStatus = "submitted"
    latest_run_id: str | None = None
    latest_score: int | None = Field(default=None, ge=0, le=100)
    latest_summary: RunSummary | None = None
    created_at: datetime
    updated_at: datetime

"""Observer port for the evaluation domain — defines events in domain language."""

from typing import Protocol


class EvaluationObserver(Protocol):
    def submission_registered(self, submission_id: str, assessment_id: str) -> None: ...

    def archive_submitted(
        self, submission_id: str, framework: str, confidence: str, locator: str
    ) -> None: ...

    def archive_submission_rejected(self, submission_id: str, reason: str) -> None: ...

    def run_started(
        self, submission_id: str, run_id: str, kind: str, trigger: str
    ) -> None: ...

    def run_completed(
        self,
        submission_id: str,
        run_id: str,
        kind: str,
        status: str,
        score: int,
        success: bool,
        duration_ms: int,
    ) -> None: ...

    def run_infrastructure_failed(
        self, submission_id: str, run_id: str, reason: str
    ) -> None: ...

    def run_report_fallback_used(
        self, submission_id: str, run_id: str, parser: str
    ) -> None: ...

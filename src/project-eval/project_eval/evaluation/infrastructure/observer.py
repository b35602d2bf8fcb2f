"""Structlog implementation of the EvaluationObserver port."""

import structlog


class StructlogEvaluationObserver:
    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def submission_registered(self, submission_id: str, assessment_id: str) -> None:
        self._log.info(
            "evaluation.submission.registered",
            submission_id=submission_id,
            assessment_id=assessment_id,
        )

    def archive_submitted(
        self, submission_id: str, framework: str, confidence: str, locator: str
    ) -> None:
        self._log.info(
            "evaluation.archive.submitted",
            submission_id=submission_id,
            framework=framework,
            confidence=confidence,
            locator=locator,
        )

    def archive_submission_rejected(self, submission_id: str, reason: str) -> None:
        self._log.error(
            "evaluation.archive.rejected", submission_id=submission_id, reason=reason
        )

    def run_started(
        self, submission_id: str, run_id: str, kind: str, trigger: str
    ) -> None:
        self._log.info(
            "evaluation.run.started",
            submission_id=submission_id,
            run_id=run_id,
            kind=kind,
            trigger=trigger,
        )

    def run_completed(
        self,
        submission_id: str,
        run_id: str,
        kind: str,
        status: str,
        score: int,
        success: bool,
        duration_ms: int,
    ) -> None:
        self._log.info(
            "evaluation.run.completed",
            submission_id=submission_id,
            run_id=run_id,
            kind=kind,
            status=status,
            score=score,
            success=success,
            duration_ms=duration_ms,
        )

    def run_infrastructure_failed(
        self, submission_id: str, run_id: str, reason: str
    ) -> None:
        self._log.error(
            "evaluation.run.infrastructure_failed",
            submission_id=submission_id,
            run_id=run_id,
            reason=reason,
        )

    def run_report_fallback_used(
        self, submission_id: str, run_id: str, parser: str
    ) -> None:
        self._log.warning(
            "evaluation.run.report_fallback",
            submission_id=submission_id,
            run_id=run_id,
            parser=parser,
        )

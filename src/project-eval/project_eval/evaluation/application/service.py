"""EvaluationService — owns the submission lifecycle and its append-only run history."""

import asyncio
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from project_eval.archive.infrastructure.errors import (
    ArchiveTooLargeError,
    MalformedArchiveError,
)
from project_eval.archive.infrastructure.zip_inspector import ZipArchiveInspector
from project_eval.config.domain.config import EngineConfig
from project_eval.detection.domain.detector import detect
from project_eval.detection.domain.report import DetectionReport, Framework
from project_eval.evaluation.domain.lifecycle import decide_run_kind, status_after
from project_eval.evaluation.domain.observer import EvaluationObserver
from project_eval.evaluation.domain.repository import (
    ArchiveStore,
    RunRepository,
    SubmissionRepository,
)
from project_eval.evaluation.domain.run import (
    EvaluationRun,
    FailureType,
    RunDiagnostics,
    RunResult,
    RunSummary,
    TriggerKind,
)
from project_eval.evaluation.domain.submission import SourceKind, Submission
from project_eval.evaluation.infrastructure.errors import (
    SubmissionNotFoundError,
    SubmissionNotReadyError,
)
from project_eval.sandbox.application.runner import SandboxRunner
from project_eval.sandbox.domain.outcome import RunOutcome
from project_eval.sandbox.infrastructure.errors import SandboxUnavailableError
from project_eval.scoring.domain.normalizer import normalize
from project_eval.scoring.domain.result import NormalizedResult
from project_eval.scoring.domain.score import is_successful, percentage
from project_eval.workspace.infrastructure.materializer import WorkspaceMaterializer


def _now() -> datetime:
    return datetime.now(UTC)


def _elapsed_ms(started_at: float) -> int:
    return int((time.monotonic() - started_at) * 1000)


class EvaluationService:
    """Accepts archives, decides what kind of run a submission gets, and records it.

    Runs are created terminal: the work happens inside request_run() and only
    the finished record is persisted. Requests for the same submission are
    serialized; different submissions may run concurrently.
    """

    def __init__(
        self,
        config: EngineConfig,
        submissions: SubmissionRepository,
        runs: RunRepository,
        archives: ArchiveStore,
        inspector: ZipArchiveInspector,
        materializer: WorkspaceMaterializer,
        sandbox_runner: SandboxRunner,
        observer: EvaluationObserver,
    ) -> None:
        self._config = config
        self._submissions = submissions
        self._runs = runs
        self._archives = archives
        self._inspector = inspector
        self._materializer = materializer
        self._sandbox_runner = sandbox_runner
        self._observer = observer
        self._locks: dict[str, asyncio.Lock] = {}
        self._lock_holders: dict[str, int] = {}

    def register_submission(
        self,
        submission_id: str,
        assessment_id: str,
        organization_id: str,
        learner_id: str,
        source_kind: SourceKind = "zip_upload",
        source_locator: str | None = None,
    ) -> Submission:
        """Create the submission record. Registering an existing id returns it unchanged."""
        existing = self._submissions.get(submission_id)
        if existing is not None:
            return existing

        now = _now()
        submission = Submission(
            submission_id=submission_id,
            assessment_id=assessment_id,
            organization_id=organization_id,
            learner_id=learner_id,
            source_kind=source_kind,
            source_locator=source_locator,
            created_at=now,
            updated_at=now,
        )
        self._submissions.save(submission)
        self._observer.submission_registered(
            submission_id=submission_id, assessment_id=assessment_id
        )
        return submission

    def submit_archive(self, submission_id: str, data: bytes) -> DetectionReport:
        """Store a new archive for the submission and attach a fresh detection report.

        Raises:
            SubmissionNotFoundError: if the submission was never registered.
            MalformedArchiveError, ArchiveTooLargeError: if the archive is rejected;
                the submission is left submitted with no detection report.
        """
        submission = self._require(submission_id)
        try:
            inspection = self._inspector.inspect(data)
        except (MalformedArchiveError, ArchiveTooLargeError) as exc:
            self._submissions.save(
                submission.model_copy(
                    update={
                        "status": "submitted",
                        "detection": None,
                        "source_locator": None,
                        "updated_at": _now(),
                    }
                )
            )
            self._observer.archive_submission_rejected(
                submission_id=submission_id, reason=str(exc)
            )
            raise

        report = detect(entries=inspection.entries, manifests=inspection.manifests)
        locator = self._archives.put(submission_id=submission_id, data=data)
        self._submissions.save(
            submission.model_copy(
                update={
                    "source_kind": "zip_upload",
                    "source_locator": locator,
                    "detection": report,
                    "status": "submitted",
                    "updated_at": _now(),
                }
            )
        )
        self._observer.archive_submitted(
            submission_id=submission_id,
            framework=report.detected_framework,
            confidence=report.confidence,
            locator=locator,
        )
        return report

    async def request_run(
        self, submission_id: str, trigger: TriggerKind = "manual"
    ) -> EvaluationRun:
        """Create, execute, and persist one run for the submission.

        Raises:
            SubmissionNotFoundError: if the submission does not exist.
            SubmissionNotReadyError: if no archive has been analyzed yet.
            WorkspaceWriteError: after recording the run as failed. Any other
                unexpected error is recorded the same way and re-raised.
        """
        async with self._submission_lock(submission_id):
            submission = self._require(submission_id)
            detection = submission.detection
            if detection is None:
                raise SubmissionNotReadyError(submission_id)

            data = (
                self._archives.get(submission.source_locator)
                if submission.source_locator
                else None
            )
            kind = decide_run_kind(
                detection=detection,
                supported_framework=self._config.evaluation.supported_framework,
                archive_available=data is not None,
            )
            run_id = str(uuid.uuid4())
            self._observer.run_started(
                submission_id=submission_id, run_id=run_id, kind=kind, trigger=trigger
            )

            if kind == "preflight" or data is None:
                run = self._preflight_run(
                    submission=submission,
                    detection=detection,
                    run_id=run_id,
                    trigger=trigger,
                )
                self._record(run)
                return run

            self._submissions.save(
                submission.model_copy(
                    update={
                        "status": "evaluation_queued",
                        "latest_run_id": run_id,
                        "updated_at": _now(),
                    }
                )
            )
            return await self._sandbox_run(
                submission=submission,
                framework=detection.detected_framework,
                data=data,
                run_id=run_id,
                trigger=trigger,
            )

    def get_submission(self, submission_id: str) -> Submission:
        return self._require(submission_id)

    def list_runs(self, submission_id: str) -> list[EvaluationRun]:
        """Return the submission's runs in creation order."""
        self._require(submission_id)
        return self._runs.list_for_submission(submission_id)

    async def _sandbox_run(
        self,
        submission: Submission,
        framework: Framework,
        data: bytes,
        run_id: str,
        trigger: TriggerKind,
    ) -> EvaluationRun:
        created_at = _now()
        started_at = time.monotonic()
        outcome: RunOutcome | None = None

        def failed(failure_type: FailureType, reason: str) -> EvaluationRun:
            self._observer.run_infrastructure_failed(
                submission_id=submission.submission_id, run_id=run_id, reason=reason
            )
            return self._failed_run(
                submission=submission,
                framework=framework,
                run_id=run_id,
                trigger=trigger,
                failure_type=failure_type,
                reason=reason,
                created_at=created_at,
                duration_ms=_elapsed_ms(started_at),
            )

        try:
            async with self._materializer.acquire(
                data=data, framework=framework, flow=self._config.evaluation.flow
            ) as workspace:
                outcome = await self._sandbox_runner.run(
                    run_id=run_id, workspace=workspace, framework=framework
                )
        except SandboxUnavailableError as exc:
            run = failed("infrastructure", str(exc))
        except (MalformedArchiveError, ArchiveTooLargeError) as exc:
            run = failed("archive_rejected", str(exc))
        except Exception as exc:
            # A queued submission must never outlive its run.
            if outcome is None:
                run = failed("infrastructure", str(exc) or type(exc).__name__)
            else:
                run = self._scored_run(
                    submission=submission,
                    framework=framework,
                    run_id=run_id,
                    trigger=trigger,
                    outcome=outcome,
                    created_at=created_at,
                )
            self._record(run)
            raise
        else:
            run = self._scored_run(
                submission=submission,
                framework=framework,
                run_id=run_id,
                trigger=trigger,
                outcome=outcome,
                created_at=created_at,
            )

        self._record(run)
        return run

    def _scored_run(
        self,
        submission: Submission,
        framework: Framework,
        run_id: str,
        trigger: TriggerKind,
        outcome: RunOutcome,
        created_at: datetime,
    ) -> EvaluationRun:
        result = normalize(
            report_artifact=outcome.report_artifact, raw_output=outcome.raw_output
        )
        if result.parser == "raw_output":
            self._observer.run_report_fallback_used(
                submission_id=submission.submission_id,
                run_id=run_id,
                parser=result.parser,
            )
        success = is_successful(exit_code=outcome.exit_code, result=result)
        failure_type = _classify_failure(outcome=outcome, result=result, success=success)
        status = "completed" if success else "failed"

        return EvaluationRun(
            run_id=run_id,
            submission_id=submission.submission_id,
            kind="sandbox_execution",
            status=status,
            trigger=trigger,
            framework=framework,
            score=result.score,
            success=success,
            result=RunResult(
                tests=result.tests,
                exit_code=outcome.exit_code,
                raw_output=outcome.raw_output,
                install_output=outcome.install_output,
                app_log=outcome.app_log or None,
                diagnostics=RunDiagnostics(
                    failure_type=failure_type,
                    parser=result.parser,
                    app_ready=outcome.app_ready,
                    timed_out=outcome.timed_out,
                ),
            ),
            summary=RunSummary(
                state=status,
                score=result.score,
                tests_passed=result.passed,
                tests_total=result.total,
                message=_sandbox_message(result=result, failure_type=failure_type),
            ),
            created_at=created_at,
            completed_at=_now(),
            duration_ms=outcome.duration_ms,
        )

    def _failed_run(
        self,
        submission: Submission,
        framework: Framework,
        run_id: str,
        trigger: TriggerKind,
        failure_type: FailureType,
        reason: str,
        created_at: datetime,
        duration_ms: int,
    ) -> EvaluationRun:
        return EvaluationRun(
            run_id=run_id,
            submission_id=submission.submission_id,
            kind="sandbox_execution",
            status="failed",
            trigger=trigger,
            framework=framework,
            score=0,
            success=False,
            result=RunResult(
                raw_output=reason,
                diagnostics=RunDiagnostics(failure_type=failure_type, reason=reason),
            ),
            summary=RunSummary(state="failed", score=0, message=reason),
            created_at=created_at,
            completed_at=_now(),
            duration_ms=duration_ms,
        )

    def _preflight_run(
        self,
        submission: Submission,
        detection: DetectionReport,
        run_id: str,
        trigger: TriggerKind,
    ) -> EvaluationRun:
        now = _now()
        score = percentage(passed=detection.checks_passed, total=detection.checks_total)
        supported = self._config.evaluation.supported_framework
        if detection.detected_framework == supported:
            reason = "stored archive is no longer retrievable"
        else:
            reason = (
                f"detected {detection.detected_framework}; only {supported}"
                " projects are executed"
            )
        return EvaluationRun(
            run_id=run_id,
            submission_id=submission.submission_id,
            kind="preflight",
            status="completed",
            trigger=trigger,
            framework=detection.detected_framework,
            score=score,
            success=False,
            result=RunResult(checks=detection.checks),
            summary=RunSummary(
                state="preflight_complete",
                score=score,
                checks_passed=detection.checks_passed,
                checks_total=detection.checks_total,
                message=(
                    f"Preflight: {detection.checks_passed} of {detection.checks_total}"
                    f" checks passed ({reason})"
                ),
            ),
            created_at=now,
            completed_at=now,
        )

    def _record(self, run: EvaluationRun) -> None:
        self._runs.append(run)
        # Re-read so an upload that landed while the run executed is kept.
        submission = self._require(run.submission_id)
        self._submissions.save(
            submission.model_copy(
                update={
                    "status": status_after(run),
                    "latest_run_id": run.run_id,
                    "latest_score": run.score,
                    "latest_summary": run.summary,
                    "updated_at": _now(),
                }
            )
        )
        self._observer.run_completed(
            submission_id=submission.submission_id,
            run_id=run.run_id,
            kind=run.kind,
            status=run.status,
            score=run.score or 0,
            success=run.success,
            duration_ms=run.duration_ms,
        )

    @asynccontextmanager
    async def _submission_lock(self, submission_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(submission_id, asyncio.Lock())
        self._lock_holders[submission_id] = self._lock_holders.get(submission_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_holders[submission_id] -= 1
            if not self._lock_holders[submission_id]:
                del self._lock_holders[submission_id]
                del self._locks[submission_id]

    def _require(self, submission_id: str) -> Submission:
        submission = self._submissions.get(submission_id)
        if submission is None:
            raise SubmissionNotFoundError(submission_id)
        return submission


def _classify_failure(
    outcome: RunOutcome, result: NormalizedResult, success: bool
) -> FailureType | None:
    if success:
        return None
    if outcome.timed_out:
        return "timeout"
    if outcome.install_exit_code not in (None, 0):
        return "install_failed"
    if result.total == 0:
        return "parse_error"
    return "assertion_failure"


def _sandbox_message(result: NormalizedResult, failure_type: FailureType | None) -> str:
    counts = f"{result.passed} of {result.total} tests passed"
    match failure_type:
        case None:
            return counts
        case "timeout":
            return f"Run timed out; {counts}"
        case "install_failed":
            return "Dependency installation failed"
        case "parse_error":
            return "No test results were produced"
        case _:
            return counts

"""Persistence ports for submissions, runs, and stored archives."""

from typing import Protocol

from project_eval.evaluation.domain.run import EvaluationRun
from project_eval.evaluation.domain.submission import Submission


class SubmissionRepository(Protocol):
    def get(self, submission_id: str) -> Submission | None: ...

    def save(self, submission: Submission) -> None: ...


class RunRepository(Protocol):
    """Append-only run history. Runs are returned in creation order."""

    def append(self, run: EvaluationRun) -> None: ...

    def list_for_submission(self, submission_id: str) -> list[EvaluationRun]: ...


class ArchiveStore(Protocol):
    def put(self, submission_id: str, data: bytes) -> str:
        """Store archive bytes durably and return a locator for get()."""
        ...

    def get(self, locator: str) -> bytes | None:
        """Return the stored bytes, or None if the archive is no longer retrievable."""
        ...

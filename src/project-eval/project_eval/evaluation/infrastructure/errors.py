"""Error types raised by evaluation infrastructure and the evaluation service."""

from project_eval.core.errors import ProjectEvalError


class SubmissionNotFoundError(ProjectEvalError):
    def __init__(self, submission_id: str) -> None:
        self.submission_id = submission_id
        super().__init__(f"Failed to find submission {submission_id!r}")


class SubmissionNotReadyError(ProjectEvalError):
    """Raised when a run is requested before any archive has been analyzed."""

    def __init__(self, submission_id: str) -> None:
        self.submission_id = submission_id
        super().__init__(
            f"Failed to start run for submission {submission_id!r}:"
            " no archive has been analyzed yet"
        )


class StorageError(ProjectEvalError):
    """Raised when submission, run, or archive storage cannot be read or written."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to access storage: {reason}", retriable=True)

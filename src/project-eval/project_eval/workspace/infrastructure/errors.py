"""Error types raised by workspace infrastructure."""

from project_eval.core.errors import ProjectEvalError


class WorkspaceWriteError(ProjectEvalError):
    """Raised when the ephemeral workspace cannot be created, written, or removed."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to prepare workspace: {reason}", retriable=True)

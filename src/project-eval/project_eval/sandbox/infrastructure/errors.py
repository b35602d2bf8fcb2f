"""Error types raised by sandbox infrastructure."""

from project_eval.core.errors import ProjectEvalError


class SandboxUnavailableError(ProjectEvalError):
    """Raised when the execution substrate (container runtime) cannot be used."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"Failed to reach sandbox runtime: {reason}", retriable=True)

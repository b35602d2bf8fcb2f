"""Base exception class for all project-eval-specific errors."""


class ProjectEvalError(Exception):
    """Base class for all project-eval errors."""

    def __init__(self, message: str, retriable: bool = False) -> None:
        super().__init__(message)
        self.retriable = retriable

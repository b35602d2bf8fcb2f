"""Error types raised by archive infrastructure."""

from project_eval.core.errors import ProjectEvalError


class MalformedArchiveError(ProjectEvalError):
    """Raised when the uploaded bytes are not a readable ZIP archive."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to read archive: {reason}")


class UnsafeArchivePathError(MalformedArchiveError):
    """Raised when an entry would be written outside the extraction root."""

    def __init__(self, entry: str) -> None:
        self.entry = entry
        super().__init__(f"entry escapes the archive root: {entry!r}")


class ArchiveTooLargeError(ProjectEvalError):
    """Raised when an archive exceeds the configured entry or size ceilings."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Failed to read archive: limit exceeded: {reason}")

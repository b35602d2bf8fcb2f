"""Observer port for the archive domain — defines events in domain language."""

from typing import Protocol


class ArchiveObserver(Protocol):
    def archive_inspected(
        self, entry_count: int, manifest_count: int, root_prefix: str
    ) -> None: ...

    def archive_rejected(self, reason: str) -> None: ...

    def archive_manifest_skipped(self, path: str, reason: str) -> None: ...

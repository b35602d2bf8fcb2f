"""Structlog implementation of the ArchiveObserver port."""

import structlog


class StructlogArchiveObserver:
    """Delegates archive domain events to structlog."""

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def archive_inspected(
        self, entry_count: int, manifest_count: int, root_prefix: str
    ) -> None:
        self._log.info(
            "archive.inspected",
            entry_count=entry_count,
            manifest_count=manifest_count,
            root_prefix=root_prefix,
        )

    def archive_rejected(self, reason: str) -> None:
        self._log.error("archive.rejected", reason=reason)

    def archive_manifest_skipped(self, path: str, reason: str) -> None:
        self._log.warning("archive.manifest_skipped", path=path, reason=reason)

"""Structlog implementation of the WorkspaceObserver port."""

import structlog


class StructlogWorkspaceObserver:
    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def workspace_materialized(
        self, root: str, file_count: int, total_bytes: int
    ) -> None:
        self._log.info(
            "workspace.materialized",
            root=root,
            file_count=file_count,
            total_bytes=total_bytes,
        )

    def workspace_released(self, root: str) -> None:
        self._log.info("workspace.released", root=root)

    def workspace_cleanup_failed(self, root: str, reason: str) -> None:
        self._log.error("workspace.cleanup_failed", root=root, reason=reason)

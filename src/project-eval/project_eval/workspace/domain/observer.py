"""Observer port for the workspace domain — defines events in domain language."""

from typing import Protocol


class WorkspaceObserver(Protocol):
    def workspace_materialized(
        self, root: str, file_count: int, total_bytes: int
    ) -> None: ...

    def workspace_released(self, root: str) -> None: ...

    def workspace_cleanup_failed(self, root: str, reason: str) -> None: ...

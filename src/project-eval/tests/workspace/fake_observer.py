"""FakeWorkspaceObserver — records workspace domain events for assertion in tests."""

from dataclasses import dataclass


@dataclass(frozen=True)
class WorkspaceMaterializedEvent:
    root: str
    file_count: int
    total_bytes: int


@dataclass(frozen=True)
class WorkspaceCleanupFailedEvent:
    root: str
    reason: str


class FakeWorkspaceObserver:
    def __init__(self) -> None:
        self.materialized: list[WorkspaceMaterializedEvent] = []
        self.released: list[str] = []
        self.cleanup_failed: list[WorkspaceCleanupFailedEvent] = []

    def workspace_materialized(
        self, root: str, file_count: int, total_bytes: int
    ) -> None:
        self.materialized.append(
            WorkspaceMaterializedEvent(
                root=root, file_count=file_count, total_bytes=total_bytes
            )
        )

    def workspace_released(self, root: str) -> None:
        self.released.append(root)

    def workspace_cleanup_failed(self, root: str, reason: str) -> None:
        self.cleanup_failed.append(WorkspaceCleanupFailedEvent(root=root, reason=reason))

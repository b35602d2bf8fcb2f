"""Observer port for the sandbox domain — defines events in domain language."""

from typing import Protocol


class SandboxObserver(Protocol):
    def sandbox_launched(self, run_id: str, framework: str) -> None: ...

    def sandbox_step_completed(self, run_id: str, step: str, exit_code: int) -> None: ...

    def sandbox_install_failed(self, run_id: str, exit_code: int) -> None: ...

    def sandbox_app_ready(self, run_id: str, attempts: int) -> None: ...

    def sandbox_readiness_exhausted(self, run_id: str, attempts: int) -> None: ...

    def sandbox_timed_out(self, run_id: str, timeout_seconds: float) -> None: ...

    def sandbox_destroyed(self, run_id: str, duration_ms: int) -> None: ...

    def sandbox_cleanup_degraded(self, run_id: str, reason: str) -> None: ...

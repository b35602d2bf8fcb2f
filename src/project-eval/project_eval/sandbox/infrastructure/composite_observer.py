"""CompositeSandboxObserver — fans out all events to a list of observers."""

from project_eval.sandbox.domain.observer import SandboxObserver


class CompositeSandboxObserver:
    """Delegates every observer event to each observer in order.

    Does NOT inherit from SandboxObserver (structural typing via Protocol).
    """

    def __init__(self, observers: list[SandboxObserver]) -> None:
        self._observers = observers

    def sandbox_launched(self, run_id: str, framework: str) -> None:
        for obs in self._observers:
            obs.sandbox_launched(run_id=run_id, framework=framework)

    def sandbox_step_completed(self, run_id: str, step: str, exit_code: int) -> None:
        for obs in self._observers:
            obs.sandbox_step_completed(run_id=run_id, step=step, exit_code=exit_code)

    def sandbox_install_failed(self, run_id: str, exit_code: int) -> None:
        for obs in self._observers:
            obs.sandbox_install_failed(run_id=run_id, exit_code=exit_code)

    def sandbox_app_ready(self, run_id: str, attempts: int) -> None:
        for obs in self._observers:
            obs.sandbox_app_ready(run_id=run_id, attempts=attempts)

    def sandbox_readiness_exhausted(self, run_id: str, attempts: int) -> None:
        for obs in self._observers:
            obs.sandbox_readiness_exhausted(run_id=run_id, attempts=attempts)

    def sandbox_timed_out(self, run_id: str, timeout_seconds: float) -> None:
        for obs in self._observers:
            obs.sandbox_timed_out(run_id=run_id, timeout_seconds=timeout_seconds)

    def sandbox_destroyed(self, run_id: str, duration_ms: int) -> None:
        for obs in self._observers:
            obs.sandbox_destroyed(run_id=run_id, duration_ms=duration_ms)

    def sandbox_cleanup_degraded(self, run_id: str, reason: str) -> None:
        for obs in self._observers:
            obs.sandbox_cleanup_degraded(run_id=run_id, reason=reason)

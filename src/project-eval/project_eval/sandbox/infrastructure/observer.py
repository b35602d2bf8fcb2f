"""Structlog implementation of the SandboxObserver port."""

import structlog


class StructlogSandboxObserver:
    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def sandbox_launched(self, run_id: str, framework: str) -> None:
        self._log.info("sandbox.launched", run_id=run_id, framework=framework)

    def sandbox_step_completed(self, run_id: str, step: str, exit_code: int) -> None:
        self._log.info(
            "sandbox.step.completed", run_id=run_id, step=step, exit_code=exit_code
        )

    def sandbox_install_failed(self, run_id: str, exit_code: int) -> None:
        self._log.warning("sandbox.install.failed", run_id=run_id, exit_code=exit_code)

    def sandbox_app_ready(self, run_id: str, attempts: int) -> None:
        self._log.info("sandbox.readiness.ready", run_id=run_id, attempts=attempts)

    def sandbox_readiness_exhausted(self, run_id: str, attempts: int) -> None:
        self._log.warning(
            "sandbox.readiness.exhausted", run_id=run_id, attempts=attempts
        )

    def sandbox_timed_out(self, run_id: str, timeout_seconds: float) -> None:
        self._log.error(
            "sandbox.timed_out", run_id=run_id, timeout_seconds=timeout_seconds
        )

    def sandbox_destroyed(self, run_id: str, duration_ms: int) -> None:
        self._log.info("sandbox.destroyed", run_id=run_id, duration_ms=duration_ms)

    def sandbox_cleanup_degraded(self, run_id: str, reason: str) -> None:
        self._log.warning("sandbox.cleanup.degraded", run_id=run_id, reason=reason)

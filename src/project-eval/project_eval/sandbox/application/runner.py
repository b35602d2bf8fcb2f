"""SandboxRunner — drives one install → boot → test sequence under a hard deadline."""

import asyncio
import time

from project_eval.config.domain.sandbox import SandboxConfig
from project_eval.detection.domain.report import Framework
from project_eval.sandbox.domain.observer import SandboxObserver
from project_eval.sandbox.domain.outcome import TIMEOUT_EXIT_CODE, RunOutcome
from project_eval.sandbox.domain.sandbox import Sandbox, SandboxProvider, SandboxSpec
from project_eval.workspace.domain.workspace import Workspace


class _Progress:
    """Mutable record of how far a run got; survives cancellation by the deadline."""

    def __init__(self) -> None:
        self.install_exit_code: int | None = None
        self.test_exit_code: int | None = None
        self.app_ready = False


class SandboxRunner:
    """Runs the generated test suite against a learner project inside a sandbox.

    Only an unreachable execution substrate is raised (SandboxUnavailableError);
    failed installs, crashed servers, failing tests and timeouts all come back
    as a RunOutcome with a non-zero exit code. The sandbox is destroyed on every
    exit path.
    """

    def __init__(
        self,
        provider: SandboxProvider,
        config: SandboxConfig,
        observer: SandboxObserver,
    ) -> None:
        self._provider = provider
        self._config = config
        self._observer = observer

    async def run(
        self, run_id: str, workspace: Workspace, framework: Framework
    ) -> RunOutcome:
        spec = SandboxSpec(run_id=run_id, workspace=workspace, framework=framework)
        started_at = time.monotonic()
        sandbox = await self._provider.launch(spec)
        self._observer.sandbox_launched(run_id=run_id, framework=framework)

        progress = _Progress()
        timed_out = False
        try:
            try:
                async with asyncio.timeout(self._config.wall_clock_timeout_seconds):
                    await self._execute(sandbox=sandbox, run_id=run_id, progress=progress)
            except TimeoutError:
                timed_out = True
                self._observer.sandbox_timed_out(
                    run_id=run_id,
                    timeout_seconds=self._config.wall_clock_timeout_seconds,
                )

            install_output = await sandbox.output("install")
            app_log = await sandbox.output("app")
            test_output = await sandbox.output("test")
            report = await sandbox.report()
        finally:
            await sandbox.destroy()
            self._observer.sandbox_destroyed(
                run_id=run_id, duration_ms=_elapsed_ms(started_at)
            )

        if timed_out:
            exit_code = TIMEOUT_EXIT_CODE
        elif progress.test_exit_code is not None:
            exit_code = progress.test_exit_code
        else:
            exit_code = progress.install_exit_code or TIMEOUT_EXIT_CODE

        return RunOutcome(
            exit_code=exit_code,
            duration_ms=_elapsed_ms(started_at),
            raw_output=test_output if progress.test_exit_code is not None else install_output,
            install_output=install_output,
            app_log=app_log,
            report_artifact=report,
            install_exit_code=progress.install_exit_code,
            timed_out=timed_out,
            app_ready=progress.app_ready,
        )

    async def _execute(self, sandbox: Sandbox, run_id: str, progress: _Progress) -> None:
        progress.install_exit_code = await sandbox.install()
        self._observer.sandbox_step_completed(
            run_id=run_id, step="install", exit_code=progress.install_exit_code
        )
        if progress.install_exit_code != 0:
            self._observer.sandbox_install_failed(
                run_id=run_id, exit_code=progress.install_exit_code
            )
            return

        await sandbox.start_app()
        try:
            progress.app_ready = await self._wait_until_ready(sandbox=sandbox, run_id=run_id)
            # An unready app still gets tested; its assertions fail on their own.
            progress.test_exit_code = await sandbox.run_tests()
            self._observer.sandbox_step_completed(
                run_id=run_id, step="test", exit_code=progress.test_exit_code
            )
        finally:
            await sandbox.stop_app()

    async def _wait_until_ready(self, sandbox: Sandbox, run_id: str) -> bool:
        max_attempts = self._config.readiness_max_attempts
        for attempt in range(1, max_attempts + 1):
            if await sandbox.probe():
                self._observer.sandbox_app_ready(run_id=run_id, attempts=attempt)
                return True
            if attempt < max_attempts:
                await asyncio.sleep(self._config.readiness_interval_seconds)
        self._observer.sandbox_readiness_exhausted(run_id=run_id, attempts=max_attempts)
        return False


def _elapsed_ms(started_at: float) -> int:
    return int((time.monotonic() - started_at) * 1000)

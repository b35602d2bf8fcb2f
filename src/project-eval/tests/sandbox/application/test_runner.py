"""Tests for SandboxRunner using FakeSandboxProvider."""

from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from project_eval.config.domain.sandbox import SandboxConfig
from project_eval.sandbox.application.runner import SandboxRunner
from project_eval.sandbox.domain.outcome import TIMEOUT_EXIT_CODE
from project_eval.sandbox.infrastructure.errors import SandboxUnavailableError
from project_eval.workspace.domain.workspace import Workspace
from tests.sandbox.fake_observer import FakeSandboxObserver
from tests.sandbox.fake_sandbox import FakeSandbox, FakeSandboxProvider

_SLEEP = "project_eval.sandbox.application.runner.asyncio.sleep"


def _workspace() -> Workspace:
    return Workspace(root=Path("/tmp/ws"), project_dir=Path("/tmp/ws"))


def _runner(
    provider: FakeSandboxProvider,
    observer: FakeSandboxObserver | None = None,
    **config: object,
) -> SandboxRunner:
    return SandboxRunner(
        provider=provider,
        config=SandboxConfig.model_validate(config),
        observer=observer if observer is not None else FakeSandboxObserver(),
    )


class TestSuccessfulRun:
    async def test_full_sequence_and_outcome(self) -> None:
        sandbox = FakeSandbox(
            test_exit_code=0,
            outputs={"install": "added 120 packages", "test": "3 passed", "app": "ready"},
            report='{"suites": []}',
        )
        provider = FakeSandboxProvider(sandbox=sandbox)
        observer = FakeSandboxObserver()

        outcome = await _runner(provider, observer).run(
            run_id="run-1", workspace=_workspace(), framework="react_vite"
        )

        assert sandbox.calls == [
            "install",
            "start_app",
            "probe",
            "run_tests",
            "stop_app",
            "destroy",
        ]
        assert outcome.exit_code == 0
        assert outcome.raw_output == "3 passed"
        assert outcome.install_output == "added 120 packages"
        assert outcome.app_log == "ready"
        assert outcome.report_artifact == '{"suites": []}'
        assert outcome.app_ready is True
        assert outcome.timed_out is False
        assert provider.launched[0].framework == "react_vite"
        assert observer.launched == ["run-1"]
        assert observer.destroyed == ["run-1"]

    async def test_failing_tests_are_an_outcome_not_an_error(self) -> None:
        provider = FakeSandboxProvider(sandbox=FakeSandbox(test_exit_code=1))

        outcome = await _runner(provider).run(
            run_id="run-1", workspace=_workspace(), framework="angular"
        )

        assert outcome.exit_code == 1


class TestReadiness:
    """Readiness polling is bounded and never blocks the test step."""

    async def test_polls_until_ready(self) -> None:
        sandbox = FakeSandbox(probe_results=[False, False, True])
        observer = FakeSandboxObserver()

        with patch(_SLEEP, new_callable=AsyncMock) as mock_sleep:
            outcome = await _runner(
                FakeSandboxProvider(sandbox=sandbox),
                observer,
                readiness_interval_seconds=3.0,
            ).run(run_id="r", workspace=_workspace(), framework="nextjs")

        assert sandbox.probe_count == 3
        assert mock_sleep.await_count == 2
        mock_sleep.assert_awaited_with(3.0)
        assert observer.ready[0].attempts == 3
        assert outcome.app_ready is True

    async def test_exhausted_readiness_still_runs_tests(self) -> None:
        sandbox = FakeSandbox(probe_results=[], test_exit_code=1)
        observer = FakeSandboxObserver()

        with patch(_SLEEP, new_callable=AsyncMock) as mock_sleep:
            outcome = await _runner(
                FakeSandboxProvider(sandbox=sandbox),
                observer,
                readiness_max_attempts=4,
            ).run(run_id="r", workspace=_workspace(), framework="react_vite")

        assert sandbox.probe_count == 4
        assert mock_sleep.await_count == 3
        assert "run_tests" in sandbox.calls
        assert observer.exhausted[0].attempts == 4
        assert outcome.app_ready is False
        assert outcome.exit_code == 1


class TestInstallFailure:
    async def test_install_failure_skips_app_and_tests(self) -> None:
        sandbox = FakeSandbox(
            install_exit_code=1, outputs={"install": "npm ERR! missing script"}
        )
        observer = FakeSandboxObserver()

        outcome = await _runner(FakeSandboxProvider(sandbox=sandbox), observer).run(
            run_id="r", workspace=_workspace(), framework="react_vite"
        )

        assert sandbox.calls == ["install", "destroy"]
        assert outcome.exit_code == 1
        assert outcome.install_exit_code == 1
        assert outcome.raw_output == "npm ERR! missing script"
        assert observer.install_failed == [1]


class TestDeadline:
    async def test_hung_tests_time_out_and_sandbox_destroyed(self) -> None:
        sandbox = FakeSandbox(hang_on="test", outputs={"test": "partial output"})
        observer = FakeSandboxObserver()

        outcome = await _runner(
            FakeSandboxProvider(sandbox=sandbox),
            observer,
            wall_clock_timeout_seconds=0.05,
        ).run(run_id="r", workspace=_workspace(), framework="react_vite")

        assert outcome.timed_out is True
        assert outcome.exit_code == TIMEOUT_EXIT_CODE
        assert "stop_app" in sandbox.calls
        assert sandbox.destroyed is True
        assert observer.timed_out[0].timeout_seconds == 0.05

    async def test_hung_install_times_out(self) -> None:
        sandbox = FakeSandbox(hang_on="install", outputs={"install": "fetching"})

        outcome = await _runner(
            FakeSandboxProvider(sandbox=sandbox), wall_clock_timeout_seconds=0.05
        ).run(run_id="r", workspace=_workspace(), framework="angular")

        assert outcome.exit_code == TIMEOUT_EXIT_CODE
        assert outcome.raw_output == "fetching"
        assert sandbox.calls == ["install", "destroy"]


class TestLaunchFailure:
    async def test_unavailable_runtime_propagates(self) -> None:
        provider = FakeSandboxProvider(error=SandboxUnavailableError("daemon down"))
        observer = FakeSandboxObserver()

        with pytest.raises(SandboxUnavailableError, match="daemon down"):
            await _runner(provider, observer).run(
                run_id="r", workspace=_workspace(), framework="react_vite"
            )

        assert observer.launched == []
        assert observer.destroyed == []

"""ProgressSandboxObserver — renders sandbox step progress to stderr with Rich."""

import sys

from rich.console import Console

_STEP_LABELS = {
    "install": "Installing dependencies",
    "test": "Running browser tests",
}


class ProgressSandboxObserver:
    """Prints one line per sandbox milestone; other events are no-ops.

    Pass ``disabled=True`` to suppress all terminal output (useful in tests).
    """

    def __init__(self, disabled: bool = False, console: Console | None = None) -> None:
        self._disabled = disabled
        self._console = console or Console(file=sys.stderr)

    def _print(self, message: str) -> None:
        if not self._disabled:
            self._console.print(message)

    def sandbox_launched(self, run_id: str, framework: str) -> None:
        self._print(f"[cyan]●[/cyan] Sandbox started for [bold]{framework}[/bold] project")

    def sandbox_step_completed(self, run_id: str, step: str, exit_code: int) -> None:
        label = _STEP_LABELS.get(step, step)
        if exit_code == 0:
            self._print(f"[green]✓[/green] {label}")
        else:
            self._print(f"[red]✗[/red] {label} [dim](exit {exit_code})[/dim]")

    def sandbox_install_failed(self, run_id: str, exit_code: int) -> None:
        pass

    def sandbox_app_ready(self, run_id: str, attempts: int) -> None:
        self._print(f"[green]✓[/green] Application ready [dim]({attempts} probes)[/dim]")

    def sandbox_readiness_exhausted(self, run_id: str, attempts: int) -> None:
        self._print(
            f"[yellow]![/yellow] Application not ready after {attempts} probes;"
            " running tests anyway"
        )

    def sandbox_timed_out(self, run_id: str, timeout_seconds: float) -> None:
        self._print(f"[red]✗[/red] Timed out after {timeout_seconds:.0f}s")

    def sandbox_destroyed(self, run_id: str, duration_ms: int) -> None:
        self._print(f"[dim]Sandbox removed after {duration_ms / 1000:.1f}s[/dim]")

    def sandbox_cleanup_degraded(self, run_id: str, reason: str) -> None:
        pass

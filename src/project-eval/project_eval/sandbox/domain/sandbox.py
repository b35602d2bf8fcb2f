"""Sandbox and SandboxProvider protocols — the narrow seam around the execution substrate.

SandboxRunner owns deadlines, readiness polling, and teardown; implementations
only know how to perform one step at a time inside an isolated environment.
"""

from typing import Literal, Protocol

from pydantic import BaseModel, Field

from project_eval.detection.domain.report import Framework
from project_eval.workspace.domain.workspace import Workspace

type SandboxStep = Literal["install", "app", "test"]


class SandboxSpec(BaseModel, frozen=True):
    run_id: str = Field(min_length=1)
    workspace: Workspace
    framework: Framework


class Sandbox(Protocol):
    """One launched, isolated environment bound to a single workspace."""

    async def install(self) -> int:
        """Install declared dependencies and return the exit code."""
        ...

    async def start_app(self) -> None:
        """Start the application server in the background on the configured port."""
        ...

    async def probe(self) -> bool:
        """Return True if anything answers HTTP on the application port."""
        ...

    async def run_tests(self) -> int:
        """Run the generated test spec and return the exit code."""
        ...

    async def stop_app(self) -> None: ...

    async def output(self, step: SandboxStep) -> str:
        """Return whatever output the step has produced so far ("" if none)."""
        ...

    async def report(self) -> str | None: ...

    async def destroy(self) -> None:
        """Forcibly kill every process in the sandbox and release it."""
        ...


class SandboxProvider(Protocol):
    async def launch(self, spec: SandboxSpec) -> Sandbox:
        """
        Launch an isolated environment for spec.

        Raises:
            SandboxUnavailableError: if the execution substrate cannot be reached.
        """
        ...

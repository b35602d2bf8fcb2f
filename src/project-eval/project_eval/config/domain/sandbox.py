"""Sandbox execution configuration model.

Resource caps are static configuration; nothing here is ever taken from the
submitted project.
"""

from pathlib import Path

from pydantic import BaseModel, Field


class SandboxConfig(BaseModel, frozen=True):
    image: str = Field(default="project-eval/playwright-runner:latest", min_length=1)
    cpu_cores: float = Field(default=1.0, gt=0)
    memory_mb: int = Field(default=1024, ge=128)
    pids_limit: int = Field(default=512, ge=16)
    network_mode: str = Field(default="bridge", min_length=1)
    user: str | None = None
    environment: dict[str, str] = Field(
        default_factory=lambda: {
            "CI": "1",
            "NODE_PATH": "/usr/local/lib/node_modules",
        }
    )
    app_port: int = Field(default=4173, ge=1024, le=65535)
    wall_clock_timeout_seconds: float = Field(default=600.0, gt=0)
    readiness_interval_seconds: float = Field(default=2.0, gt=0)
    readiness_max_attempts: int = Field(default=45, ge=1)
    test_timeout_ms: int = Field(default=30_000, ge=1000)
    install_command: str = Field(
        default="npm install --no-audit --no-fund --loglevel=error", min_length=1
    )
    start_command: str = Field(
        default="npm run dev -- --host 127.0.0.1 --port {port} --strictPort",
        min_length=1,
    )
    test_command: str = Field(
        default="playwright test --config {config}", min_length=1
    )
    workspace_base_dir: Path | None = None

    @property
    def readiness_budget_seconds(self) -> float:
        return self.readiness_interval_seconds * self.readiness_max_attempts

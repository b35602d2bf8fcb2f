"""Workspace — an ephemeral directory holding one run's extracted project."""

from pathlib import Path, PurePosixPath

from pydantic import BaseModel

# Injected artifacts, relative to the project directory. The sandbox mounts the
# project directory, so these paths are valid on both sides of the mount.
ARTIFACT_DIR = PurePosixPath(".project-eval")
SPEC_FILE = ARTIFACT_DIR / "evaluation.spec.cjs"
RUN_CONFIG_FILE = ARTIFACT_DIR / "playwright.config.cjs"
REPORT_FILE = ARTIFACT_DIR / "report.json"
LOG_DIR = ARTIFACT_DIR / "logs"


class Workspace(BaseModel, frozen=True):
    """root is the directory to delete; project_dir is where the project lives inside it."""

    root: Path
    project_dir: Path

    @property
    def spec_path(self) -> Path:
        return self.project_dir / SPEC_FILE

    @property
    def run_config_path(self) -> Path:
        return self.project_dir / RUN_CONFIG_FILE

    @property
    def report_path(self) -> Path:
        return self.project_dir / REPORT_FILE

    @property
    def log_dir(self) -> Path:
        return self.project_dir / LOG_DIR

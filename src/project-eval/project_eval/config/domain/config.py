"""Top-level EngineConfig aggregate — the root configuration object."""

from pydantic import BaseModel, Field

from project_eval.config.domain.archive import ArchiveLimits
from project_eval.config.domain.evaluation import EvaluationConfig
from project_eval.config.domain.sandbox import SandboxConfig
from project_eval.config.domain.storage import StorageConfig


class EngineConfig(BaseModel, frozen=True):
    """Root configuration aggregate for the evaluation engine.

    Every section has defaults, so an empty config file is valid.
    """

    name: str = Field(default="project-eval", min_length=1)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    archive: ArchiveLimits = Field(default_factory=ArchiveLimits)
    sandbox: SandboxConfig = Field(default_factory=SandboxConfig)
    evaluation: EvaluationConfig = Field(default_factory=EvaluationConfig)

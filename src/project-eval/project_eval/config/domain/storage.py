"""Storage configuration model."""

from pathlib import Path

from pydantic import BaseModel


class StorageConfig(BaseModel, frozen=True):
    root: Path = Path("./.project-eval")

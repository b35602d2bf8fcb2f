"""Archive limit configuration — hard ceilings against zip-bomb style input."""

from pydantic import BaseModel, Field


class ArchiveLimits(BaseModel, frozen=True):
    max_entries: int = Field(default=10_000, ge=1)
    max_manifest_bytes: int = Field(default=1024 * 1024, ge=1)
    max_manifest_total_bytes: int = Field(default=4 * 1024 * 1024, ge=1)
    max_total_bytes: int = Field(default=200 * 1024 * 1024, ge=1)

"""ArchiveInspection — lightweight metadata read from a ZIP without extracting it."""

from pydantic import BaseModel, Field


class ArchiveInspection(BaseModel, frozen=True):
    """Immutable result of inspecting an archive.

    entries holds every file entry name (directories and OS metadata excluded).
    manifests maps project-root-relative paths of allow-listed manifest files to
    their decoded text; files that are not valid UTF-8 (or not valid JSON, for
    .json files) are omitted.
    """

    entries: list[str]
    root_prefix: str = ""
    manifests: dict[str, str] = Field(default_factory=dict)
    declared_size_bytes: int = Field(default=0, ge=0)

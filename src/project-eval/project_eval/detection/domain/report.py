"""DetectionReport — the typed classification of a submitted project."""

from typing import Literal

from pydantic import BaseModel, Field

type Framework = Literal["angular", "nextjs", "react_vite", "vue_vite", "unknown"]
type Confidence = Literal["high", "medium", "low"]


class DetectionCheck(BaseModel, frozen=True):
    """One named structural signal and whether the archive exhibits it."""

    name: str = Field(min_length=1)
    passed: bool
    detail: str | None = None


class DetectionReport(BaseModel, frozen=True):
    """Immutable report attached to a submission after each archive upload.

    Confidence is "high" only when the framework's decisive structural marker
    is present; dependency evidence alone never yields more than "medium".
    """

    detected_framework: Framework
    confidence: Confidence
    checks: list[DetectionCheck]
    entry_count: int = Field(ge=0)
    top_level_entries: list[str]
    root_prefix: str = ""

    @property
    def checks_passed(self) -> int:
        return sum(1 for check in self.checks if check.passed)

    @property
    def checks_total(self) -> int:
        return len(self.checks)

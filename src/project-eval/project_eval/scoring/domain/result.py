"""Normalized test results — the flat shape every run is scored from."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

type ParserKind = Literal["report_artifact", "raw_output", "none"]


class TestCaseResult(BaseModel, frozen=True):
    name: str
    passed: bool
    error: str | None = None


class NormalizedResult(BaseModel, frozen=True):
    """Flat pass/fail list plus its derived counts and 0-100 score.

    parser records which path produced the tests: the structured report
    artifact, the degraded raw-output scan, or neither.
    """

    tests: list[TestCaseResult]
    passed: int = Field(ge=0)
    total: int = Field(ge=0)
    score: int = Field(ge=0, le=100)
    parser: ParserKind

    @model_validator(mode="after")
    def _counts_match_tests(self) -> "NormalizedResult":
        if self.total != len(self.tests):
            raise ValueError("total must equal the number of tests")
        if self.passed != sum(1 for t in self.tests if t.passed):
            raise ValueError("passed must equal the number of passing tests")
        return self

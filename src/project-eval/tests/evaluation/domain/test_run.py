"""Tests for EvaluationRun invariants."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from project_eval.evaluation.domain.run import EvaluationRun, RunSummary


def _run(**overrides: object) -> EvaluationRun:
    fields: dict[str, object] = {
        "run_id": "run-1",
        "submission_id": "sub-1",
        "kind": "sandbox_execution",
        "status": "completed",
        "framework": "react_vite",
        "score": 100,
        "success": True,
        "summary": RunSummary(state="completed", score=100, message="3 of 3 tests passed"),
        "created_at": datetime(2024, 1, 15, tzinfo=UTC),
    }
    fields.update(overrides)
    return EvaluationRun.model_validate(fields)


class TestEvaluationRun:
    def test_valid_run(self) -> None:
        run = _run()
        assert run.max_score == 100
        assert run.trigger == "manual"

    def test_terminal_run_requires_score(self) -> None:
        with pytest.raises(ValidationError, match="must carry a score"):
            _run(status="failed", score=None, success=False)

    def test_queued_run_may_be_unscored(self) -> None:
        assert _run(status="queued", score=None, success=False).score is None

    def test_failed_run_cannot_be_successful(self) -> None:
        with pytest.raises(ValidationError, match="only a completed run"):
            _run(status="failed", success=True)

    @pytest.mark.parametrize("score", [-1, 101])
    def test_score_bounds(self, score: int) -> None:
        with pytest.raises(ValidationError):
            _run(score=score)

    def test_round_trips_through_json(self) -> None:
        run = _run()
        assert EvaluationRun.model_validate_json(run.model_dump_json()) == run

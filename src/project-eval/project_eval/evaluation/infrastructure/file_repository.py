"""File-backed repositories: one JSON document per submission, one JSONL log per run history.

Submission documents are replaced atomically (write to a temp file, then
os.replace). Run histories are append-only; lines are never rewritten.
"""

import os
import re
import tempfile
from pathlib import Path

from pydantic import ValidationError

from project_eval.evaluation.domain.run import EvaluationRun
from project_eval.evaluation.domain.submission import ID_PATTERN, Submission
from project_eval.evaluation.infrastructure.errors import StorageError

_ID = re.compile(ID_PATTERN)


class JsonSubmissionRepository:
    def __init__(self, root: Path) -> None:
        self._dir = root / "submissions"

    def get(self, submission_id: str) -> Submission | None:
        if not _ID.match(submission_id):
            return None
        path = self._dir / f"{submission_id}.json"
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"cannot read {path}: {exc}") from exc
        try:
            return Submission.model_validate_json(text)
        except ValidationError as exc:
            raise StorageError(f"corrupt submission record {path}: {exc}") from exc

    def save(self, submission: Submission) -> None:
        path = self._dir / f"{submission.submission_id}.json"
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self._dir, prefix=".tmp-", suffix=".json")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(submission.model_dump_json(indent=2))
                os.replace(tmp_name, path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as exc:
            raise StorageError(f"cannot write {path}: {exc}") from exc


class JsonlRunRepository:
    def __init__(self, root: Path) -> None:
        self._dir = root / "runs"

    def append(self, run: EvaluationRun) -> None:
        path = self._dir / f"{run.submission_id}.jsonl"
        try:
            self._dir.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as fh:
                fh.write(run.model_dump_json() + "\n")
        except OSError as exc:
            raise StorageError(f"cannot append to {path}: {exc}") from exc

    def list_for_submission(self, submission_id: str) -> list[EvaluationRun]:
        if not _ID.match(submission_id):
            return []
        path = self._dir / f"{submission_id}.jsonl"
        try:
            lines = path.read_text(encoding="utf-8").splitlines()
        except FileNotFoundError:
            return []
        except OSError as exc:
            raise StorageError(f"cannot read {path}: {exc}") from exc

        runs: list[EvaluationRun] = []
        for line_number, line in enumerate(lines, start=1):
            if not line.strip():
                continue
            try:
                runs.append(EvaluationRun.model_validate_json(line))
            except ValidationError as exc:
                raise StorageError(
                    f"corrupt run record at {path}:{line_number}: {exc}"
                ) from exc
        return runs

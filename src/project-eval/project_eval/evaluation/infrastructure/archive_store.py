"""FileArchiveStore — content-addressed archive blobs under the storage root."""

import hashlib
from pathlib import Path

from project_eval.evaluation.infrastructure.errors import StorageError


class FileArchiveStore:
    """Stores archives at archives/<submission_id>/<sha256>.zip.

    Locators are absolute paths; get() refuses locators outside the store.
    """

    def __init__(self, root: Path) -> None:
        self._dir = (root / "archives").resolve()

    def put(self, submission_id: str, data: bytes) -> str:
        digest = hashlib.sha256(data).hexdigest()
        path = self._dir / submission_id / f"{digest}.zip"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            if not path.exists():
                tmp = path.with_suffix(".zip.tmp")
                tmp.write_bytes(data)
                tmp.replace(path)
        except OSError as exc:
            raise StorageError(f"cannot store archive {path}: {exc}") from exc
        return str(path)

    def get(self, locator: str) -> bytes | None:
        path = Path(locator).resolve()
        if not path.is_relative_to(self._dir):
            return None
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StorageError(f"cannot read archive {path}: {exc}") from exc

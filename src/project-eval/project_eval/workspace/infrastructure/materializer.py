"""WorkspaceMaterializer — unpacks an archive into an ephemeral directory.

The directory is exclusively owned by one run. acquire() is the scoped form:
the workspace is removed on every exit path, including cancellation.
"""

import asyncio
import os
import shutil
import tempfile
import zipfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from project_eval.archive.domain.layout import project_root_prefix
from project_eval.archive.infrastructure.errors import (
    ArchiveTooLargeError,
    MalformedArchiveError,
    UnsafeArchivePathError,
)
from project_eval.archive.infrastructure.zip_inspector import (
    ZIP_READ_ERRORS,
    file_members,
    open_archive,
)
from project_eval.config.domain.archive import ArchiveLimits
from project_eval.config.domain.sandbox import SandboxConfig
from project_eval.detection.domain.report import Framework
from project_eval.workspace.domain.flow import EvaluationFlow
from project_eval.workspace.domain.observer import WorkspaceObserver
from project_eval.workspace.domain.renderer import render_run_config, render_test_spec
from project_eval.workspace.domain.workspace import Workspace
from project_eval.workspace.infrastructure.errors import WorkspaceWriteError

_CHUNK_SIZE = 64 * 1024
_WORKSPACE_PREFIX = "project-eval-"

# The sandbox may run as a different uid than the host process.
_DIR_MODE = 0o777
_FILE_MODE = 0o666

# A file and a directory claiming the same path.
_PATH_CONFLICTS = (FileExistsError, NotADirectoryError, IsADirectoryError)


class WorkspaceMaterializer:
    def __init__(
        self,
        limits: ArchiveLimits,
        sandbox: SandboxConfig,
        observer: WorkspaceObserver,
    ) -> None:
        self._limits = limits
        self._sandbox = sandbox
        self._observer = observer

    def materialize(
        self, data: bytes, framework: Framework, flow: EvaluationFlow
    ) -> Workspace:
        """Extract data into a fresh directory and inject the evaluation artifacts.

        The caller owns the returned workspace and must release() it. On failure
        nothing is left behind.

        Raises:
            MalformedArchiveError: if data is unreadable, an entry is unsafe, or
                two entries claim the same path as both file and directory.
            ArchiveTooLargeError: if extraction exceeds the configured byte ceiling.
            WorkspaceWriteError: if the directory cannot be created or written.
        """
        root = self._create_root()
        try:
            workspace, file_count, total_bytes = self._populate(
                root=root, data=data, framework=framework, flow=flow
            )
        except BaseException:
            shutil.rmtree(root, ignore_errors=True)
            raise

        self._observer.workspace_materialized(
            root=str(root), file_count=file_count, total_bytes=total_bytes
        )
        return workspace

    def release(self, workspace: Workspace) -> None:
        """Remove the workspace directory tree. A missing directory is not an error."""
        root = workspace.root
        if not root.exists():
            self._observer.workspace_released(root=str(root))
            return
        try:
            shutil.rmtree(root)
        except OSError as exc:
            self._observer.workspace_cleanup_failed(root=str(root), reason=str(exc))
            raise WorkspaceWriteError(f"cannot remove {root}: {exc}") from exc
        self._observer.workspace_released(root=str(root))

    @asynccontextmanager
    async def acquire(
        self, data: bytes, framework: Framework, flow: EvaluationFlow
    ) -> AsyncIterator[Workspace]:
        """Materialize off the event loop and release on every exit path."""
        workspace = await asyncio.to_thread(self.materialize, data, framework, flow)
        try:
            yield workspace
        finally:
            await asyncio.to_thread(self.release, workspace)

    def _create_root(self) -> Path:
        base_dir = self._sandbox.workspace_base_dir
        try:
            if base_dir is not None:
                base_dir.mkdir(parents=True, exist_ok=True)
            root = Path(tempfile.mkdtemp(prefix=_WORKSPACE_PREFIX, dir=base_dir))
        except OSError as exc:
            raise WorkspaceWriteError(f"cannot create workspace directory: {exc}") from exc
        return root.resolve()

    def _populate(
        self, root: Path, data: bytes, framework: Framework, flow: EvaluationFlow
    ) -> tuple[Workspace, int, int]:
        with open_archive(data) as archive:
            members = file_members(archive, self._limits)
            prefix = project_root_prefix([info.filename for info in members])
            total_bytes = 0
            extracted: set[str] = set()
            for info in members:
                # first entry wins, matching what inspection read
                if info.filename in extracted:
                    continue
                extracted.add(info.filename)
                total_bytes += self._extract(archive, info, root, total_bytes)

        workspace = Workspace(root=root, project_dir=root / prefix)
        try:
            self._write_artifacts(workspace=workspace, framework=framework, flow=flow)
            _open_permissions(root)
        except _PATH_CONFLICTS as exc:
            raise MalformedArchiveError(
                f"archive entries collide with evaluation files: {exc}"
            ) from exc
        except OSError as exc:
            raise WorkspaceWriteError(str(exc)) from exc
        return workspace, len(extracted), total_bytes

    def _extract(
        self,
        archive: zipfile.ZipFile,
        info: zipfile.ZipInfo,
        root: Path,
        written_so_far: int,
    ) -> int:
        """Copy one member below root and return the number of bytes written."""
        target = (root / info.filename).resolve()
        if not target.is_relative_to(root):
            raise UnsafeArchivePathError(info.filename)

        limit = self._limits.max_total_bytes
        written = 0
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("wb") as dst:
                try:
                    src = archive.open(info)
                except ZIP_READ_ERRORS as exc:
                    raise MalformedArchiveError(
                        f"cannot read {info.filename}: {exc or type(exc).__name__}"
                    ) from exc
                with src:
                    while chunk := _read_chunk(src, info.filename):
                        written += len(chunk)
                        if written_so_far + written > limit:
                            raise ArchiveTooLargeError(
                                f"extracted content exceeds {limit} bytes"
                            )
                        dst.write(chunk)
        except _PATH_CONFLICTS as exc:
            raise MalformedArchiveError(
                f"{info.filename} collides with another archive entry"
            ) from exc
        except OSError as exc:
            raise WorkspaceWriteError(f"cannot write {info.filename}: {exc}") from exc
        return written

    def _write_artifacts(
        self, workspace: Workspace, framework: Framework, flow: EvaluationFlow
    ) -> None:
        workspace.spec_path.parent.mkdir(parents=True, exist_ok=True)
        workspace.spec_path.write_text(
            render_test_spec(flow=flow, framework=framework), encoding="utf-8"
        )
        workspace.run_config_path.write_text(
            render_run_config(
                port=self._sandbox.app_port,
                test_timeout_ms=self._sandbox.test_timeout_ms,
            ),
            encoding="utf-8",
        )
        workspace.log_dir.mkdir(parents=True, exist_ok=True)


def _read_chunk(src: zipfile.ZipExtFile, name: str) -> bytes:
    try:
        return src.read(_CHUNK_SIZE)
    except ZIP_READ_ERRORS as exc:
        raise MalformedArchiveError(
            f"cannot read {name}: {exc or type(exc).__name__}"
        ) from exc


def _open_permissions(root: Path) -> None:
    os.chmod(root, _DIR_MODE)
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames:
            os.chmod(os.path.join(dirpath, name), _DIR_MODE)
        for name in filenames:
            os.chmod(os.path.join(dirpath, name), _FILE_MODE)

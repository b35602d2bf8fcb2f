"""ZipArchiveInspector — reads entry names and manifest files from in-memory ZIP bytes.

Nothing is written to disk. Entry count and manifest sizes are capped so that a
zip-bomb style upload fails fast with ArchiveTooLargeError.
"""

import io
import json
import zipfile
import zlib

from project_eval.archive.domain.inspection import ArchiveInspection
from project_eval.archive.domain.layout import (
    is_ignored,
    is_manifest_path,
    is_unsafe,
    project_root_prefix,
    relative_to_root,
)
from project_eval.archive.domain.observer import ArchiveObserver
from project_eval.archive.infrastructure.errors import (
    ArchiveTooLargeError,
    MalformedArchiveError,
    UnsafeArchivePathError,
)
from project_eval.config.domain.archive import ArchiveLimits
from project_eval.core.errors import ProjectEvalError

# Errors the zipfile module raises for corrupt, truncated, or unsupported members.
ZIP_READ_ERRORS = (
    zipfile.BadZipFile,
    zipfile.LargeZipFile,
    zlib.error,
    EOFError,
    NotImplementedError,
    RuntimeError,
    ValueError,
    OSError,
)


def open_archive(data: bytes) -> zipfile.ZipFile:
    """Open ZIP bytes, translating zipfile errors into MalformedArchiveError."""
    if not data:
        raise MalformedArchiveError("archive is empty")
    try:
        return zipfile.ZipFile(io.BytesIO(data))
    except ZIP_READ_ERRORS as exc:
        raise MalformedArchiveError(str(exc) or type(exc).__name__) from exc


def file_members(archive: zipfile.ZipFile, limits: ArchiveLimits) -> list[zipfile.ZipInfo]:
    """Return the file members of archive in archive order.

    Raises:
        ArchiveTooLargeError: if the archive holds more than limits.max_entries members.
        UnsafeArchivePathError: if any member escapes the archive root.
    """
    infos = archive.infolist()
    if len(infos) > limits.max_entries:
        raise ArchiveTooLargeError(
            f"{len(infos)} entries exceeds the maximum of {limits.max_entries}"
        )
    members: list[zipfile.ZipInfo] = []
    for info in infos:
        if info.is_dir() or is_ignored(info.filename):
            continue
        if is_unsafe(info.filename):
            raise UnsafeArchivePathError(info.filename)
        members.append(info)
    return members


class ZipArchiveInspector:
    """Inspects an archive held in memory and returns an ArchiveInspection."""

    def __init__(self, limits: ArchiveLimits, observer: ArchiveObserver) -> None:
        self._limits = limits
        self._observer = observer

    def inspect(self, data: bytes) -> ArchiveInspection:
        """
        Enumerate entries and read allow-listed manifest files.

        Raises:
            MalformedArchiveError: if data is not a readable ZIP archive.
            ArchiveTooLargeError: if the entry count or a manifest size exceeds limits.
        """
        try:
            with open_archive(data) as archive:
                members = file_members(archive, self._limits)
                entries = [info.filename for info in members]
                prefix = project_root_prefix(entries)
                manifests = self._read_manifests(archive, members, prefix)
        except ProjectEvalError as exc:
            self._observer.archive_rejected(reason=str(exc))
            raise

        self._observer.archive_inspected(
            entry_count=len(entries),
            manifest_count=len(manifests),
            root_prefix=prefix,
        )
        return ArchiveInspection(
            entries=entries,
            root_prefix=prefix,
            manifests=manifests,
            declared_size_bytes=sum(info.file_size for info in members),
        )

    def _read_manifests(
        self,
        archive: zipfile.ZipFile,
        members: list[zipfile.ZipInfo],
        prefix: str,
    ) -> dict[str, str]:
        manifests: dict[str, str] = {}
        seen: set[str] = set()
        remaining = self._limits.max_manifest_total_bytes
        for info in members:
            relative = relative_to_root(info.filename, prefix)
            if not is_manifest_path(relative):
                continue
            if relative in seen:
                self._observer.archive_manifest_skipped(
                    path=relative, reason="duplicate entry"
                )
                continue
            seen.add(relative)
            raw = self._read_bytes(archive, info, remaining)
            remaining -= len(raw)
            text = self._decode(info, raw)
            if text is None:
                continue
            if relative.endswith(".json") and not _is_json(text):
                self._observer.archive_manifest_skipped(
                    path=relative, reason="invalid JSON"
                )
                continue
            manifests[relative] = text
        return manifests

    def _read_bytes(
        self, archive: zipfile.ZipFile, info: zipfile.ZipInfo, remaining: int
    ) -> bytes:
        limit = self._limits.max_manifest_bytes
        if info.file_size > limit:
            raise ArchiveTooLargeError(
                f"{info.filename} declares {info.file_size} bytes"
                f" (maximum {limit} for manifest files)"
            )
        if info.file_size > remaining:
            raise self._manifest_total_exceeded()
        try:
            with archive.open(info) as fh:
                # Read one byte past the limit so a lying header is still caught.
                raw = fh.read(min(limit, remaining) + 1)
        except ZIP_READ_ERRORS as exc:
            raise MalformedArchiveError(
                f"cannot read {info.filename}: {exc or type(exc).__name__}"
            ) from exc
        if len(raw) > limit:
            raise ArchiveTooLargeError(
                f"{info.filename} decompresses past {limit} bytes"
            )
        if len(raw) > remaining:
            raise self._manifest_total_exceeded()
        return raw

    def _manifest_total_exceeded(self) -> ArchiveTooLargeError:
        return ArchiveTooLargeError(
            f"manifest files exceed {self._limits.max_manifest_total_bytes}"
            " bytes in total"
        )

    def _decode(self, info: zipfile.ZipInfo, raw: bytes) -> str | None:
        try:
            return raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            self._observer.archive_manifest_skipped(
                path=info.filename, reason="not valid UTF-8"
            )
            return None


def _is_json(text: str) -> bool:
    try:
        json.loads(text)
    except json.JSONDecodeError:
        return False
    return True

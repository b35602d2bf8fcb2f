"""Tests for ZipArchiveInspector."""

import io
import zipfile

import pytest

from project_eval.archive.infrastructure.errors import (
    ArchiveTooLargeError,
    MalformedArchiveError,
    UnsafeArchivePathError,
)
from project_eval.archive.infrastructure.zip_inspector import ZipArchiveInspector
from project_eval.config.domain.archive import ArchiveLimits
from tests.archive.fake_observer import FakeArchiveObserver
from tests.archive.zip_builder import REACT_PACKAGE_JSON, build_zip, react_vite_files


def _inspector(
    observer: FakeArchiveObserver | None = None, **limits: int
) -> ZipArchiveInspector:
    return ZipArchiveInspector(
        limits=ArchiveLimits(**limits), observer=observer or FakeArchiveObserver()
    )


def _json_padded(size: int) -> str:
    """A valid JSON document of exactly ``size`` bytes."""
    return '{"pad": "' + "a" * (size - 11) + '"}'


class TestEntryListing:
    """Entries are listed without directories or OS metadata."""

    def test_lists_file_entries(self) -> None:
        data = build_zip(react_vite_files(), directories=["src"])
        inspection = _inspector().inspect(data)
        assert sorted(inspection.entries) == sorted(react_vite_files())

    def test_skips_macos_metadata(self) -> None:
        files = react_vite_files() | {
            "__MACOSX/._package.json": b"\x00\x05",
            "src/.DS_Store": b"\x00",
        }
        inspection = _inspector().inspect(build_zip(files))
        assert "__MACOSX/._package.json" not in inspection.entries
        assert "src/.DS_Store" not in inspection.entries

    def test_reports_declared_size(self) -> None:
        inspection = _inspector().inspect(build_zip({"a.txt": "12345"}))
        assert inspection.declared_size_bytes == 5


class TestManifests:
    """Allow-listed manifest files are decoded and keyed root-relative."""

    def test_reads_package_json(self) -> None:
        inspection = _inspector().inspect(build_zip(react_vite_files()))
        assert inspection.manifests["package.json"] == REACT_PACKAGE_JSON
        assert "vite.config.js" in inspection.manifests

    def test_does_not_read_source_files(self) -> None:
        inspection = _inspector().inspect(build_zip(react_vite_files()))
        assert "src/main.jsx" not in inspection.manifests
        assert "index.html" not in inspection.manifests

    def test_wrapper_directory_is_stripped(self) -> None:
        observer = FakeArchiveObserver()
        inspection = _inspector(observer).inspect(
            build_zip(react_vite_files(prefix="my-app/"))
        )
        assert inspection.root_prefix == "my-app/"
        assert "package.json" in inspection.manifests
        assert observer.inspected[0].root_prefix == "my-app/"

    def test_invalid_json_manifest_skipped(self) -> None:
        observer = FakeArchiveObserver()
        inspection = _inspector(observer).inspect(
            build_zip({"package.json": "{ not json", "index.html": ""})
        )
        assert "package.json" not in inspection.manifests
        assert observer.skipped[0].path == "package.json"

    def test_non_utf8_manifest_skipped(self) -> None:
        observer = FakeArchiveObserver()
        inspection = _inspector(observer).inspect(
            build_zip({"vite.config.js": b"\xff\xfe\xfa", "index.html": ""})
        )
        assert inspection.manifests == {}
        assert observer.skipped[0].reason == "not valid UTF-8"

    def test_utf8_bom_tolerated(self) -> None:
        inspection = _inspector().inspect(
            build_zip({"package.json": "\ufeff" + REACT_PACKAGE_JSON})
        )
        assert inspection.manifests["package.json"] == REACT_PACKAGE_JSON


class TestMalformedArchives:
    """Unreadable input fails with MalformedArchiveError."""

    def test_empty_bytes(self) -> None:
        with pytest.raises(MalformedArchiveError):
            _inspector().inspect(b"")

    def test_not_a_zip(self) -> None:
        with pytest.raises(MalformedArchiveError):
            _inspector().inspect(b"this is definitely not a zip archive")

    def test_truncated_zip(self) -> None:
        data = build_zip(react_vite_files())
        with pytest.raises(MalformedArchiveError):
            _inspector().inspect(data[: len(data) // 2])

    def test_path_traversal_rejected(self) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("../../evil.sh", "rm -rf /")
        with pytest.raises(UnsafeArchivePathError):
            _inspector().inspect(buffer.getvalue())

    def test_rejection_is_observed(self) -> None:
        observer = FakeArchiveObserver()
        with pytest.raises(MalformedArchiveError):
            _inspector(observer).inspect(b"garbage")
        assert len(observer.rejected) == 1
        assert observer.inspected == []


class TestLimits:
    """Zip-bomb style input fails fast with ArchiveTooLargeError."""

    def test_too_many_entries(self) -> None:
        files = {f"f{i}.txt": "x" for i in range(11)}
        with pytest.raises(ArchiveTooLargeError, match="11 entries"):
            _inspector(max_entries=10).inspect(build_zip(files))

    def test_oversized_manifest(self) -> None:
        data = build_zip({"package.json": '{"name": "' + "a" * 5000 + '"}'})
        with pytest.raises(ArchiveTooLargeError):
            _inspector(max_manifest_bytes=1024).inspect(data)

    def test_large_non_manifest_files_are_not_read(self) -> None:
        data = build_zip({"public/video.bin": b"\x00" * 50_000, "index.html": ""})
        inspection = _inspector(max_manifest_bytes=1024).inspect(data)
        assert "public/video.bin" in inspection.entries

    def test_manifest_bytes_capped_across_files(self) -> None:
        data = build_zip(
            {"package.json": _json_padded(1000), "angular.json": _json_padded(1000)}
        )
        with pytest.raises(ArchiveTooLargeError, match="in total"):
            _inspector(max_manifest_bytes=1024, max_manifest_total_bytes=1500).inspect(
                data
            )

    def test_duplicate_manifest_entry_read_once(self) -> None:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr("package.json", REACT_PACKAGE_JSON)
            with pytest.warns(UserWarning, match="Duplicate name"):
                archive.writestr("package.json", _json_padded(1000))
        observer = FakeArchiveObserver()

        inspection = _inspector(observer).inspect(buffer.getvalue())

        assert inspection.manifests["package.json"] == REACT_PACKAGE_JSON
        assert [event.reason for event in observer.skipped] == ["duplicate entry"]

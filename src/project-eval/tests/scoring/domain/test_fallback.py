"""Tests for recovering a report from raw runner output."""

import json

from project_eval.scoring.domain.fallback import (
    extract_trailing_report,
    looks_like_report,
)

_REPORT = {"config": {}, "suites": [], "stats": {"expected": 0}}


class TestLooksLikeReport:
    def test_requires_suites_and_config_or_stats(self) -> None:
        assert looks_like_report(_REPORT)
        assert looks_like_report({"suites": [], "stats": {}})
        assert not looks_like_report({"suites": []})
        assert not looks_like_report({"config": {}, "suites": "nope"})
        assert not looks_like_report([1, 2])


class TestExtractTrailingReport:
    def test_report_after_noise(self) -> None:
        raw = "Running 3 tests\n  ✓ loads\n" + json.dumps(_REPORT) + "\n"
        assert extract_trailing_report(raw) == _REPORT

    def test_last_report_wins(self) -> None:
        first = {**_REPORT, "stats": {"expected": 1}}
        second = {**_REPORT, "stats": {"expected": 2}}
        raw = json.dumps(first) + "\nretrying\n" + json.dumps(second)
        assert extract_trailing_report(raw) == second

    def test_nested_objects_are_not_mistaken_for_reports(self) -> None:
        raw = 'log {"suites": [], "other": 1} done'
        assert extract_trailing_report(raw) is None

    def test_truncated_json_is_ignored(self) -> None:
        raw = json.dumps(_REPORT)[:-5]
        assert extract_trailing_report(raw) is None

    def test_no_braces(self) -> None:
        assert extract_trailing_report("npm ERR! code ELIFECYCLE") is None

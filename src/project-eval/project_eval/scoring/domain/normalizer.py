"""Result normalizer — flattens a nested test report into one entry per test."""

import json
import re
from typing import Any

from project_eval.scoring.domain.fallback import extract_trailing_report, looks_like_report
from project_eval.scoring.domain.result import NormalizedResult, ParserKind, TestCaseResult
from project_eval.scoring.domain.score import percentage

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")
_MAX_ERROR_CHARS = 2000
_TITLE_SEPARATOR = " › "


def normalize(report_artifact: str | None, raw_output: str) -> NormalizedResult:
    """Build a NormalizedResult from the report artifact, falling back to raw output.

    The fallback scan only runs when the artifact is absent or unparseable; a
    parseable artifact with zero tests is taken at its word.
    """
    report = parse_report(report_artifact)
    parser: ParserKind = "report_artifact"
    if report is None:
        report = extract_trailing_report(raw_output)
        parser = "raw_output"
    if report is None:
        return NormalizedResult(tests=[], passed=0, total=0, score=0, parser="none")

    tests = flatten_report(report)
    passed = sum(1 for t in tests if t.passed)
    return NormalizedResult(
        tests=tests,
        passed=passed,
        total=len(tests),
        score=percentage(passed=passed, total=len(tests)),
        parser=parser,
    )


def parse_report(report_artifact: str | None) -> dict[str, Any] | None:
    if not report_artifact or not report_artifact.strip():
        return None
    try:
        value = json.loads(report_artifact)
    except json.JSONDecodeError:
        return None
    if not isinstance(value, dict) or not isinstance(value.get("suites"), list):
        return None
    if not looks_like_report(value):
        # Accept bare {"suites": [...]} documents as well.
        return {"suites": value["suites"]}
    return value


def flatten_report(report: dict[str, Any]) -> list[TestCaseResult]:
    """Walk suites → specs → tests, using each test's most recent attempt."""
    results: list[TestCaseResult] = []
    for suite in _dicts(report.get("suites")):
        # Top-level suites are files; their titles are not part of test names.
        _walk_suite(suite=suite, titles=[], results=results)
    return results


def _walk_suite(
    suite: dict[str, Any], titles: list[str], results: list[TestCaseResult]
) -> None:
    for spec in _dicts(suite.get("specs")):
        spec_title = str(spec.get("title") or "untitled")
        tests = list(_dicts(spec.get("tests")))
        for test in tests:
            name = _TITLE_SEPARATOR.join([*titles, spec_title])
            project = test.get("projectName")
            if project and len(tests) > 1:
                name = f"{name} [{project}]"
            results.append(_test_result(name=name, test=test))
    for child in _dicts(suite.get("suites")):
        title = str(child.get("title") or "")
        _walk_suite(
            suite=child,
            titles=[*titles, title] if title else titles,
            results=results,
        )


def _test_result(name: str, test: dict[str, Any]) -> TestCaseResult:
    attempts = list(_dicts(test.get("results")))
    if not attempts:
        return TestCaseResult(name=name, passed=False, error="no result recorded")
    last = attempts[-1]
    status = last.get("status")
    if status == "passed":
        return TestCaseResult(name=name, passed=True)
    return TestCaseResult(
        name=name,
        passed=False,
        error=_error_message(last) or f"test {status or 'did not finish'}",
    )


def _error_message(attempt: dict[str, Any]) -> str | None:
    error = attempt.get("error")
    if not isinstance(error, dict):
        errors = list(_dicts(attempt.get("errors")))
        error = errors[0] if errors else None
    if error is None:
        return None
    message = error.get("message") or error.get("value")
    if not message:
        return None
    return _ANSI_ESCAPE.sub("", str(message)).strip()[:_MAX_ERROR_CHARS]


def _dicts(value: Any) -> list[dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]

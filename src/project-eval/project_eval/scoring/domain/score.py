"""Score arithmetic shared by sandbox runs and preflight runs."""

from project_eval.scoring.domain.result import NormalizedResult

MAX_SCORE = 100


def percentage(passed: int, total: int) -> int:
    """Return round(100 * passed / total), rounding halves up; 0 when total is 0."""
    if total <= 0:
        return 0
    passed = max(0, min(passed, total))
    return (2 * MAX_SCORE * passed + total) // (2 * total)


def is_successful(exit_code: int, result: NormalizedResult) -> bool:
    """A run succeeds only with a clean exit and at least one test, all passing.

    An empty result set points at the evaluation itself being broken, so it is
    never a success, whatever the exit code says.
    """
    return exit_code == 0 and result.total > 0 and result.passed == result.total

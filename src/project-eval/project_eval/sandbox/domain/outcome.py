"""RunOutcome — the result of one sandbox execution, successful or not."""

from pydantic import BaseModel, Field

# Exit code reported when the wall-clock deadline expires (matches coreutils `timeout`).
TIMEOUT_EXIT_CODE = 124


class RunOutcome(BaseModel, frozen=True):
    """What the sandbox observed. Learner code misbehaving is data here, never an error.

    raw_output is the test step's combined stdout+stderr, or the install output
    when the test step never ran. report_artifact is the untouched JSON report
    text written by the test runner, or None when no report was produced.
    """

    exit_code: int
    duration_ms: int = Field(ge=0)
    raw_output: str = ""
    install_output: str = ""
    app_log: str = ""
    report_artifact: str | None = None
    install_exit_code: int | None = None
    timed_out: bool = False
    app_ready: bool = False

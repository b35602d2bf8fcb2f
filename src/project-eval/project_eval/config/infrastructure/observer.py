"""Structlog implementation of the ConfigObserver port."""

import structlog


class StructlogConfigObserver:
    """Delegates config domain events to structlog.

    Satisfies the ConfigObserver protocol structurally.
    """

    def __init__(self) -> None:
        self._log = structlog.get_logger()

    def config_loaded(self, name: str, path: str) -> None:
        self._log.info("config.loaded", name=name, path=path)

    def config_readiness_budget_warning(
        self, readiness_budget_seconds: float, wall_clock_timeout_seconds: float
    ) -> None:
        self._log.warning(
            "config.readiness_budget_warning",
            readiness_budget_seconds=readiness_budget_seconds,
            wall_clock_timeout_seconds=wall_clock_timeout_seconds,
            message="Readiness polling alone can exhaust the sandbox wall-clock budget",
        )

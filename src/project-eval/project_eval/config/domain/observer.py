"""Observer port for the config domain — defines events in domain language."""

from typing import Protocol


class ConfigObserver(Protocol):
    def config_loaded(self, name: str, path: str) -> None: ...

    def config_readiness_budget_warning(
        self, readiness_budget_seconds: float, wall_clock_timeout_seconds: float
    ) -> None: ...

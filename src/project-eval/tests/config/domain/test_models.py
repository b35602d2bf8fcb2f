"""Tests for the configuration domain models."""

import pytest
from pydantic import ValidationError

from project_eval.config.domain.archive import ArchiveLimits
from project_eval.config.domain.config import EngineConfig
from project_eval.config.domain.sandbox import SandboxConfig


class TestEngineConfigDefaults:
    """An empty config is valid and carries safe defaults."""

    def test_empty_mapping_is_valid(self) -> None:
        cfg = EngineConfig.model_validate({})
        assert cfg.name == "project-eval"

    def test_default_supported_framework_is_react_vite(self) -> None:
        assert EngineConfig().evaluation.supported_framework == "react_vite"

    def test_default_flow_has_three_named_tests(self) -> None:
        flow = EngineConfig().evaluation.flow
        assert len(flow.tests) == 3
        assert flow.api_checks == []

    def test_default_archive_limits(self) -> None:
        limits = ArchiveLimits()
        assert limits.max_entries == 10_000
        assert limits.max_manifest_bytes == 1024 * 1024

    def test_default_sandbox_caps(self) -> None:
        sandbox = SandboxConfig()
        assert sandbox.cpu_cores == 1.0
        assert sandbox.app_port == 4173
        assert sandbox.wall_clock_timeout_seconds == 600.0

    def test_config_is_frozen(self) -> None:
        cfg = EngineConfig()
        with pytest.raises(ValidationError):
            cfg.name = "other"  # type: ignore[misc]


class TestSandboxConfigValidation:
    """Resource caps are validated."""

    def test_zero_cpu_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SandboxConfig(cpu_cores=0)

    def test_tiny_memory_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SandboxConfig(memory_mb=16)

    def test_privileged_port_rejected(self) -> None:
        with pytest.raises(ValidationError):
            SandboxConfig(app_port=80)

    def test_readiness_budget_is_interval_times_attempts(self) -> None:
        sandbox = SandboxConfig(readiness_interval_seconds=2, readiness_max_attempts=10)
        assert sandbox.readiness_budget_seconds == 20


class TestFlowConfig:
    """Flows are validated when loaded from configuration."""

    def test_custom_flow_parsed_from_mapping(self) -> None:
        cfg = EngineConfig.model_validate(
            {
                "evaluation": {
                    "flow": {
                        "tests": [
                            {
                                "name": "shows heading",
                                "steps": [
                                    {"type": "goto", "path": "/"},
                                    {"type": "expect_heading", "text": "Inventory"},
                                ],
                            }
                        ],
                        "api_checks": [
                            {"title": "health", "path": "/api/health"},
                        ],
                    }
                }
            }
        )
        flow = cfg.evaluation.flow
        assert flow.tests[0].steps[1].type == "expect_heading"
        assert flow.api_checks[0].method == "GET"
        assert flow.api_checks[0].expected_status == 200

    def test_unknown_step_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EngineConfig.model_validate(
                {
                    "evaluation": {
                        "flow": {
                            "tests": [
                                {"name": "t", "steps": [{"type": "teleport"}]},
                            ]
                        }
                    }
                }
            )

    def test_empty_flow_rejected(self) -> None:
        with pytest.raises(ValidationError):
            EngineConfig.model_validate({"evaluation": {"flow": {"tests": []}}})

    def test_duplicate_test_names_rejected(self) -> None:
        step = {"type": "goto"}
        with pytest.raises(ValidationError, match="duplicate"):
            EngineConfig.model_validate(
                {
                    "evaluation": {
                        "flow": {
                            "tests": [
                                {"name": "same", "steps": [step]},
                                {"name": "same", "steps": [step]},
                            ]
                        }
                    }
                }
            )

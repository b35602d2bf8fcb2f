"""Tests for YAML config loading infrastructure."""

from pathlib import Path

import pytest

from project_eval.config.infrastructure.errors import (
    ConfigLoadError,
    ConfigValidationError,
    MissingEnvVarsError,
)
from project_eval.config.infrastructure.yaml_loader import YamlConfigLoader
from tests.config.fake_observer import FakeConfigObserver


def _write(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "engine.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestValidConfigLoading:
    """A valid YAML config loads correctly with all fields populated."""

    def test_loads_sections(self, tmp_path: Path) -> None:
        path = _write(
            tmp_path,
            """
name: bootcamp-eval
storage:
  root: /var/lib/project-eval
archive:
  max_entries: 500
sandbox:
  image: runner:1
  cpu_cores: 2
  memory_mb: 2048
  wall_clock_timeout_seconds: 300
evaluation:
  supported_framework: react_vite
""",
        )
        cfg = YamlConfigLoader(observer=FakeConfigObserver()).load(path=path)

        assert cfg.name == "bootcamp-eval"
        assert cfg.storage.root == Path("/var/lib/project-eval")
        assert cfg.archive.max_entries == 500
        assert cfg.sandbox.image == "runner:1"
        assert cfg.sandbox.cpu_cores == 2.0
        assert cfg.sandbox.memory_mb == 2048

    def test_empty_file_uses_defaults(self, tmp_path: Path) -> None:
        cfg = YamlConfigLoader(observer=FakeConfigObserver()).load(
            path=_write(tmp_path, "")
        )
        assert cfg.name == "project-eval"

    def test_emits_config_loaded(self, tmp_path: Path) -> None:
        observer = FakeConfigObserver()
        path = _write(tmp_path, "name: x\n")
        YamlConfigLoader(observer=observer).load(path=path)
        assert observer.loaded == [{"name": "x", "path": str(path)}]


class TestEnvInterpolation:
    """${VAR} references are substituted before validation."""

    def test_substitutes_env_var(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("EVAL_IMAGE", "registry.local/runner:7")
        cfg = YamlConfigLoader(observer=FakeConfigObserver()).load(
            path=_write(tmp_path, "sandbox:\n  image: ${EVAL_IMAGE}\n")
        )
        assert cfg.sandbox.image == "registry.local/runner:7"

    def test_default_used_when_unset(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("EVAL_ROOT", raising=False)
        cfg = YamlConfigLoader(observer=FakeConfigObserver()).load(
            path=_write(tmp_path, "storage:\n  root: ${EVAL_ROOT:-/tmp/eval}\n")
        )
        assert cfg.storage.root == Path("/tmp/eval")

    def test_all_missing_vars_reported(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("MISSING_A", raising=False)
        monkeypatch.delenv("MISSING_B", raising=False)
        path = _write(tmp_path, "name: ${MISSING_A}\nsandbox:\n  image: ${MISSING_B}\n")

        with pytest.raises(MissingEnvVarsError) as exc_info:
            YamlConfigLoader(observer=FakeConfigObserver()).load(path=path)

        assert sorted(exc_info.value.missing_vars) == ["MISSING_A", "MISSING_B"]


class TestConfigErrors:
    """Broken config files fail with typed errors."""

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="file not found"):
            YamlConfigLoader(observer=FakeConfigObserver()).load(
                path=tmp_path / "absent.yaml"
            )

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigLoadError, match="invalid YAML"):
            YamlConfigLoader(observer=FakeConfigObserver()).load(
                path=_write(tmp_path, "name: [unclosed\n")
            )

    def test_top_level_list_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigValidationError):
            YamlConfigLoader(observer=FakeConfigObserver()).load(
                path=_write(tmp_path, "- a\n- b\n")
            )

    def test_schema_violation_wrapped(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigValidationError):
            YamlConfigLoader(observer=FakeConfigObserver()).load(
                path=_write(tmp_path, "sandbox:\n  cpu_cores: -1\n")
            )


class TestReadinessBudgetWarning:
    """A readiness budget that can consume the whole deadline is flagged."""

    def test_warns_when_budget_exceeds_deadline(self, tmp_path: Path) -> None:
        observer = FakeConfigObserver()
        YamlConfigLoader(observer=observer).load(
            path=_write(
                tmp_path,
                "sandbox:\n"
                "  wall_clock_timeout_seconds: 60\n"
                "  readiness_interval_seconds: 2\n"
                "  readiness_max_attempts: 30\n",
            )
        )
        assert observer.warnings == [
            {"readiness_budget_seconds": 60.0, "wall_clock_timeout_seconds": 60.0}
        ]

    def test_no_warning_for_defaults(self, tmp_path: Path) -> None:
        observer = FakeConfigObserver()
        YamlConfigLoader(observer=observer).load(path=_write(tmp_path, "{}\n"))
        assert observer.warnings == []

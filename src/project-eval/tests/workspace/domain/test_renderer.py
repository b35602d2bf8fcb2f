"""Tests for the generated Playwright spec and run configuration."""

from project_eval.workspace.domain.flow import (
    ApiCheck,
    ClickButtonStep,
    EvaluationFlow,
    ExpectTableContainsStep,
    FillLabelStep,
    FlowTest,
    GotoStep,
    default_flow,
)
from project_eval.workspace.domain.renderer import (
    render_run_config,
    render_step,
    render_test_spec,
)


class TestRenderStep:
    def test_goto(self) -> None:
        assert render_step(GotoStep(type="goto", path="/items")) == [
            'await page.goto("/items");'
        ]

    def test_strings_are_json_escaped(self) -> None:
        step = FillLabelStep(type="fill_label", label='Say "hi"', value="a\nb")
        (line,) = render_step(step)
        assert '"Say \\"hi\\""' in line
        assert '"a\\nb"' in line

    def test_click_button_uses_role(self) -> None:
        (line,) = render_step(ClickButtonStep(type="click_button", text="Save"))
        assert 'getByRole("button", { name: "Save" })' in line

    def test_table_step_emits_one_assertion_per_value(self) -> None:
        step = ExpectTableContainsStep(
            type="expect_table_contains", values=["Ada", "Grace"]
        )
        lines = render_step(step)
        assert len(lines) == 2
        assert all("toContainText" in line for line in lines)


class TestRenderTestSpec:
    def test_one_test_per_flow_test(self) -> None:
        spec = render_test_spec(flow=default_flow(), framework="react_vite")
        assert spec.count("test(") == 3
        assert "async ({ page })" in spec
        assert "// Target framework: react_vite" in spec
        assert 'require("@playwright/test")' in spec

    def test_api_checks_use_request_fixture(self) -> None:
        flow = EvaluationFlow(
            api_checks=[
                ApiCheck(
                    title="creates item",
                    method="POST",
                    path="/api/items",
                    expected_status=201,
                    body={"name": "x"},
                    expect_body_contains="x",
                )
            ]
        )
        spec = render_test_spec(flow=flow, framework="nextjs")
        assert "async ({ request })" in spec
        assert 'request.fetch("/api/items", { method: "POST", data: {"name": "x"} })' in spec
        assert "toBe(201)" in spec
        assert 'toContain("x")' in spec

    def test_rendering_is_deterministic(self) -> None:
        flow = EvaluationFlow(
            tests=[FlowTest(name="loads", steps=[GotoStep(type="goto")])]
        )
        first = render_test_spec(flow=flow, framework="angular")
        assert first == render_test_spec(flow=flow, framework="angular")


class TestRenderRunConfig:
    def test_contains_port_and_timeout(self) -> None:
        config = render_run_config(port=4173, test_timeout_ms=15000)
        assert 'baseURL: "http://127.0.0.1:4173"' in config
        assert "timeout: 15000," in config
        assert "retries: 0," in config

    def test_json_report_written_beside_config(self) -> None:
        config = render_run_config(port=3000, test_timeout_ms=30000)
        assert 'outputFile: path.join(__dirname, "report.json")' in config
        assert 'testMatch: ["evaluation.spec.cjs"]' in config

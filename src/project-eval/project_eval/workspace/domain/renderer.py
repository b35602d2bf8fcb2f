"""Renders the generated Playwright test spec and run configuration.

Both artifacts are pure functions of engine configuration, so the same flow
always produces byte-identical files. All learner-independent strings are
embedded via JSON encoding, which yields valid JavaScript string literals.
"""

import json

from project_eval.detection.domain.report import Framework
from project_eval.workspace.domain.flow import (
    ApiCheck,
    ClickButtonStep,
    EvaluationFlow,
    ExpectButtonStep,
    ExpectHeadingStep,
    ExpectRoleContainsStep,
    ExpectTableContainsStep,
    ExpectTextStep,
    ExpectVisibleStep,
    FillFormStep,
    FillLabelStep,
    FlowStep,
    FlowTest,
    GotoStep,
    SelectLabelStep,
    SubmitFormStep,
)
from project_eval.workspace.domain.workspace import REPORT_FILE, SPEC_FILE

_HEADER = "// Generated by project-eval. Do not edit: regenerated for every run.\n"

_HELPERS = """\
const FIELD_VALUES = {
  email: "evaluator@example.com",
  number: "42",
  date: "2024-01-15",
  "datetime-local": "2024-01-15T10:30",
  time: "10:30",
  tel: "5550100",
  url: "https://example.com",
  password: "Evaluation123!",
};

async function fillForm(page, selector, textValue) {
  const form = page.locator(selector).first();
  await expect(form).toBeVisible();
  const fields = form.locator(
    'input:not([type="hidden"]):not([type="submit"]):not([type="button"])' +
      ':not([type="checkbox"]):not([type="radio"]):not([type="file"]), textarea, select'
  );
  const count = await fields.count();
  for (let i = 0; i < count; i += 1) {
    const field = fields.nth(i);
    if (!(await field.isEditable())) continue;
    const tag = await field.evaluate((el) => el.tagName.toLowerCase());
    if (tag === "select") {
      const options = await field
        .locator("option")
        .evaluateAll((nodes) => nodes.map((o) => o.value).filter(Boolean));
      if (options.length) await field.selectOption(options[0]);
      continue;
    }
    const type = ((await field.getAttribute("type")) || "text").toLowerCase();
    await field.fill(FIELD_VALUES[type] || textValue);
  }
}

async function submitForm(page, selector) {
  const form = page.locator(selector).first();
  const submit = form
    .locator('button[type="submit"], input[type="submit"], button:not([type])')
    .first();
  if (await submit.count()) {
    await submit.click();
  } else {
    await form.evaluate((el) => el.requestSubmit());
  }
}
"""


def _js(value: object) -> str:
    return json.dumps(value, ensure_ascii=False)


def render_step(step: FlowStep) -> list[str]:
    """Return the JavaScript statements for one flow step."""
    match step:
        case GotoStep():
            return [f"await page.goto({_js(step.path)});"]
        case FillLabelStep():
            return [f"await page.getByLabel({_js(step.label)}).first().fill({_js(step.value)});"]
        case SelectLabelStep():
            return [
                f"await page.getByLabel({_js(step.label)}).first()"
                f".selectOption({_js(step.value)});"
            ]
        case ClickButtonStep():
            return [
                f'await page.getByRole("button", {{ name: {_js(step.text)} }}).first().click();'
            ]
        case ExpectHeadingStep():
            return [
                f'await expect(page.getByRole("heading", {{ name: {_js(step.text)} }})'
                ".first()).toBeVisible();"
            ]
        case ExpectTextStep():
            return [f"await expect(page.getByText({_js(step.text)}).first()).toBeVisible();"]
        case ExpectButtonStep():
            return [
                f'await expect(page.getByRole("button", {{ name: {_js(step.text)} }})'
                ".first()).toBeVisible();"
            ]
        case ExpectTableContainsStep():
            return [
                f'await expect(page.locator("table").first()).toContainText({_js(value)});'
                for value in step.values
            ]
        case ExpectRoleContainsStep():
            return [
                f"await expect(page.getByRole({_js(step.role)})"
                f".filter({{ hasText: {_js(step.name)} }}).first()).toBeVisible();"
            ]
        case ExpectVisibleStep():
            return [f"await expect(page.locator({_js(step.selector)}).first()).toBeVisible();"]
        case FillFormStep():
            return [f"await fillForm(page, {_js(step.selector)}, {_js(step.text_value)});"]
        case SubmitFormStep():
            return [f"await submitForm(page, {_js(step.selector)});"]
    raise TypeError(f"unsupported flow step: {type(step).__name__}")


def _render_flow_test(flow_test: FlowTest) -> str:
    body = [line for step in flow_test.steps for line in render_step(step)]
    lines = [f"test({_js(flow_test.name)}, async ({{ page }}) => {{"]
    lines += [f"  {line}" for line in body]
    lines.append("});")
    return "\n".join(lines)


def _render_api_check(check: ApiCheck) -> str:
    options = f"method: {_js(check.method)}"
    if check.body is not None:
        options += f", data: {_js(check.body)}"
    lines = [
        f"test({_js(check.title)}, async ({{ request }}) => {{",
        f"  const response = await request.fetch({_js(check.path)}, {{ {options} }});",
        f"  expect(response.status()).toBe({check.expected_status});",
    ]
    if check.expect_body_contains is not None:
        lines.append(
            f"  expect(await response.text()).toContain({_js(check.expect_body_contains)});"
        )
    lines.append("});")
    return "\n".join(lines)


def render_test_spec(flow: EvaluationFlow, framework: Framework) -> str:
    """Render the browser test spec: one Playwright test per flow test and API check."""
    blocks = [_render_flow_test(t) for t in flow.tests]
    blocks += [_render_api_check(c) for c in flow.api_checks]
    return (
        _HEADER
        + f"// Target framework: {framework}\n"
        + 'const { test, expect } = require("@playwright/test");\n\n'
        + _HELPERS
        + "\n"
        + "\n\n".join(blocks)
        + "\n"
    )


def render_run_config(port: int, test_timeout_ms: int) -> str:
    """Render the Playwright configuration used inside the sandbox."""
    spec_name = SPEC_FILE.name
    report_name = REPORT_FILE.name
    return (
        _HEADER
        + 'const path = require("path");\n\n'
        + "module.exports = {\n"
        + "  testDir: __dirname,\n"
        + f"  testMatch: [{_js(spec_name)}],\n"
        + f"  timeout: {test_timeout_ms},\n"
        + "  retries: 0,\n"
        + "  workers: 1,\n"
        + "  fullyParallel: false,\n"
        + '  outputDir: path.join(__dirname, "test-results"),\n'
        + "  reporter: [\n"
        + '    ["list"],\n'
        + f'    ["json", {{ outputFile: path.join(__dirname, {_js(report_name)}) }}],\n'
        + "  ],\n"
        + "  use: {\n"
        + f'    baseURL: "http://127.0.0.1:{port}",\n'
        + "    headless: true,\n"
        + "    viewport: { width: 1280, height: 720 },\n"
        + "    ignoreHTTPSErrors: true,\n"
        + '    trace: "off",\n'
        + "  },\n"
        + "};\n"
    )

"""Evaluation flow models — the steps the generated browser test spec performs.

A flow is a list of independent named tests plus optional API contract checks.
Each test and each check becomes one Playwright test, so partial credit is
meaningful. Steps form a discriminated union on the ``type`` field.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, model_validator


class GotoStep(BaseModel, frozen=True):
    type: Literal["goto"]
    path: str = "/"


class FillLabelStep(BaseModel, frozen=True):
    type: Literal["fill_label"]
    label: str = Field(min_length=1)
    value: str


class SelectLabelStep(BaseModel, frozen=True):
    type: Literal["select_label"]
    label: str = Field(min_length=1)
    value: str


class ClickButtonStep(BaseModel, frozen=True):
    type: Literal["click_button"]
    text: str = Field(min_length=1)


class ExpectHeadingStep(BaseModel, frozen=True):
    type: Literal["expect_heading"]
    text: str = Field(min_length=1)


class ExpectTextStep(BaseModel, frozen=True):
    type: Literal["expect_text"]
    text: str = Field(min_length=1)


class ExpectButtonStep(BaseModel, frozen=True):
    type: Literal["expect_button"]
    text: str = Field(min_length=1)


class ExpectTableContainsStep(BaseModel, frozen=True):
    type: Literal["expect_table_contains"]
    values: list[str] = Field(min_length=1)


class ExpectRoleContainsStep(BaseModel, frozen=True):
    type: Literal["expect_role_contains"]
    role: str = Field(min_length=1)
    name: str = Field(min_length=1)


class ExpectVisibleStep(BaseModel, frozen=True):
    type: Literal["expect_visible"]
    selector: str = Field(min_length=1)


class FillFormStep(BaseModel, frozen=True):
    """Fill every editable field of a form with a type-appropriate value."""

    type: Literal["fill_form"]
    selector: str = "form"
    text_value: str = "Evaluation Entry"


class SubmitFormStep(BaseModel, frozen=True):
    type: Literal["submit_form"]
    selector: str = "form"


type FlowStep = Annotated[
    GotoStep
    | FillLabelStep
    | SelectLabelStep
    | ClickButtonStep
    | ExpectHeadingStep
    | ExpectTextStep
    | ExpectButtonStep
    | ExpectTableContainsStep
    | ExpectRoleContainsStep
    | ExpectVisibleStep
    | FillFormStep
    | SubmitFormStep,
    Field(discriminator="type"),
]


class FlowTest(BaseModel, frozen=True):
    """One named UI assertion, run in a fresh page."""

    name: str = Field(min_length=1)
    steps: list[FlowStep] = Field(min_length=1)


class ApiCheck(BaseModel, frozen=True):
    """One HTTP contract check against the running application."""

    title: str = Field(min_length=1)
    method: Literal["GET", "POST", "PUT", "PATCH", "DELETE"] = "GET"
    path: str = Field(min_length=1)
    expected_status: int = Field(default=200, ge=100, le=599)
    expect_body_contains: str | None = None
    body: dict[str, object] | None = None


class EvaluationFlow(BaseModel, frozen=True):
    tests: list[FlowTest] = Field(default_factory=list)
    api_checks: list[ApiCheck] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_names(self) -> "EvaluationFlow":
        names = [t.name for t in self.tests] + [c.title for c in self.api_checks]
        if not names:
            raise ValueError("flow must define at least one test or API check")
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"duplicate test names: {', '.join(duplicates)}")
        return self


DEFAULT_ENTRY_TEXT = "Evaluation Entry"


def default_flow() -> EvaluationFlow:
    """Return the built-in flow: load page, fill and submit a form, see the new entry."""
    return EvaluationFlow(
        tests=[
            FlowTest(
                name="home page renders a form",
                steps=[
                    GotoStep(type="goto"),
                    ExpectVisibleStep(type="expect_visible", selector="form"),
                ],
            ),
            FlowTest(
                name="form can be filled and submitted",
                steps=[
                    GotoStep(type="goto"),
                    FillFormStep(type="fill_form", text_value=DEFAULT_ENTRY_TEXT),
                    SubmitFormStep(type="submit_form"),
                    ExpectVisibleStep(type="expect_visible", selector="form"),
                ],
            ),
            FlowTest(
                name="submitted entry appears in results view",
                steps=[
                    GotoStep(type="goto"),
                    FillFormStep(type="fill_form", text_value=DEFAULT_ENTRY_TEXT),
                    SubmitFormStep(type="submit_form"),
                    ExpectTextStep(type="expect_text", text=DEFAULT_ENTRY_TEXT),
                ],
            ),
        ]
    )

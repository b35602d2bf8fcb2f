"""Evaluation configuration — which target the generated spec supports, and its flow."""

from pydantic import BaseModel, Field

from project_eval.detection.domain.report import Framework
from project_eval.workspace.domain.flow import EvaluationFlow, default_flow


class EvaluationConfig(BaseModel, frozen=True):
    supported_framework: Framework = "react_vite"
    flow: EvaluationFlow = Field(default_factory=default_flow)

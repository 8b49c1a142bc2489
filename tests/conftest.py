"""Shared fixtures and test doubles for the call analysis tests."""

from __future__ import annotations

import json
from pathlib import Path
import sys
from typing import Any, Mapping, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from app.services.analysis_types import AnalysisInput, StageDefinition  # noqa: E402


class FakeBackend:
    """Reasoning backend double returning a canned reply."""

    def __init__(
        self,
        response: str | None = None,
        *,
        supports_schema: bool = True,
        error: Exception | None = None,
    ) -> None:
        self.response = response
        self.error = error
        self._supports_schema = supports_schema
        self.calls: list[tuple[str, Optional[Mapping[str, Any]]]] = []

    @property
    def supports_schema(self) -> bool:
        return self._supports_schema

    async def invoke(self, prompt: str, schema: Optional[Mapping[str, Any]] = None) -> str:
        self.calls.append((prompt, schema))
        if self.error is not None:
            raise self.error
        return self.response or ""


def backend_reply(
    findings: list[tuple[str, bool]],
    *,
    drop_off: str | None = None,
    sequence: list[str] | None = None,
    summary: str = "Greeting and pitch covered, no closing.",
) -> str:
    return json.dumps(
        {
            "stages": [
                {"stageName": name, "present": present, "evidence": f"evidence for {name}"}
                for name, present in findings
            ],
            "dropOff": drop_off,
            "callStageSequence": sequence if sequence is not None else [
                name for name, present in findings if present
            ],
            "summary": summary,
        }
    )


@pytest.fixture
def sales_stages() -> tuple[StageDefinition, ...]:
    return (
        StageDefinition(
            stage_name="Introduction",
            required=True,
            description="Professional greeting and introduction",
            key_points=("Greet the customer", "Introduce yourself and company"),
        ),
        StageDefinition(
            stage_name="Pitch",
            required=True,
            description="Present the product value proposition",
            key_points=("Explain the main benefits",),
        ),
        StageDefinition(
            stage_name="Closing",
            required=True,
            description="Professional call conclusion",
            key_points=("Confirm next steps", "Thank the customer"),
        ),
    )


@pytest.fixture
def sales_input(sales_stages) -> AnalysisInput:
    return AnalysisInput(
        transcript=(
            "Agent: Good morning, this is Priya from Acme Payments, do you have a minute?\n"
            "Customer: Sure.\n"
            "Agent: Our new terminal settles payments the same day and has no monthly fee.\n"
            "Customer: Sounds interesting, I have to go now."
        ),
        call_script="Greet, introduce the terminal, collect details and close with next steps.",
        stages=sales_stages,
    )

"""Typed containers shared across the call analysis pipeline.

These dataclasses live in their own module so the prompt builder, the
response contract and the orchestrator can import them without creating
circular dependencies.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping


@dataclass(frozen=True)
class StageDefinition:
    """One conversational stage a call script expects the agent to cover."""

    stage_name: str
    required: bool
    description: str = ""
    key_points: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "StageDefinition":
        """Build a definition from the camelCase payload used on the wire."""

        key_points = data.get("keyPoints") or ()
        return cls(
            stage_name=data.get("stageName", ""),
            required=bool(data.get("required", False)),
            description=data.get("description") or "",
            key_points=tuple(str(point) for point in key_points),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "stageName": self.stage_name,
            "required": self.required,
            "description": self.description,
            "keyPoints": list(self.key_points),
        }


StageSpecification = tuple[StageDefinition, ...]


def load_stage_specification(path: Path) -> StageSpecification:
    """Read a stage specification from a JSON file.

    The file holds either a bare array of stage definitions or an object with
    a ``stages`` array.
    """

    document = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(document, Mapping):
        document = document.get("stages")
    if not isinstance(document, list):
        raise ValueError(f"{path} does not contain a stages array")
    return tuple(StageDefinition.from_mapping(entry) for entry in document)


@dataclass(frozen=True)
class AnalysisInput:
    """Snapshot of everything one analysis needs; never mutated."""

    transcript: str
    call_script: str
    stages: StageSpecification

    @property
    def stage_names(self) -> tuple[str, ...]:
        return tuple(stage.stage_name for stage in self.stages)


__all__ = [
    "StageDefinition",
    "StageSpecification",
    "AnalysisInput",
    "load_stage_specification",
]

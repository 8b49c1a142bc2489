"""Drop-off stage business rule."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from app.telemetry import increment_drop_off_disagreement

from .analysis_types import StageDefinition
from .response_contract import StageFinding

logger = logging.getLogger(__name__)


def _finding_name(finding: StageFinding | Mapping[str, Any]) -> str | None:
    if isinstance(finding, StageFinding):
        return finding.stage_name
    if isinstance(finding, Mapping):
        name = finding.get("stageName")
        return name if isinstance(name, str) else None
    return None


def _finding_present(finding: StageFinding | Mapping[str, Any]) -> bool:
    if isinstance(finding, StageFinding):
        return finding.present
    return finding.get("present") is True


def resolve_drop_off(
    stages: Sequence[StageDefinition],
    findings: Sequence[StageFinding | Mapping[str, Any]],
) -> str | None:
    """Return the first required stage, in specification order, that is not present.

    A stage without a matching finding counts as not present. Returns ``None``
    when every required stage was found.
    """

    by_name: dict[str, StageFinding | Mapping[str, Any]] = {}
    for finding in findings:
        name = _finding_name(finding)
        if name is not None:
            by_name.setdefault(name, finding)

    for stage in stages:
        if not stage.required:
            continue
        finding = by_name.get(stage.stage_name)
        if finding is None or not _finding_present(finding):
            return stage.stage_name
    return None


def merge_drop_off(backend_value: str | None, local_value: str | None) -> str | None:
    """Prefer the backend's drop-off when it gave one, else the local one."""

    if backend_value is None:
        return local_value
    if backend_value != local_value:
        logger.warning(
            "Backend drop-off %r disagrees with resolved drop-off %r; keeping backend value",
            backend_value,
            local_value,
        )
        increment_drop_off_disagreement()
    return backend_value


__all__ = ["resolve_drop_off", "merge_drop_off"]

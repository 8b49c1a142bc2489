"""Pydantic models and normalization for the call analysis LLM response.

Whatever the backend returns (schema-constrained JSON or free text wrapped in
markdown/prose) runs through ``normalize_response`` so that downstream code
receives one canonical, immutable ``AnalysisResult``.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

from .analysis_types import StageDefinition
from .errors import MalformedResponse

logger = logging.getLogger(__name__)

SUMMARY_FALLBACK = "Analysis completed"

RESPONSE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "stages": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "stageName": {"type": "string"},
                    "present": {"type": "boolean"},
                    "evidence": {"type": "string"},
                },
                "required": ["stageName", "present", "evidence"],
            },
        },
        "dropOff": {"type": ["string", "null"]},
        "callStageSequence": {
            "type": "array",
            "items": {"type": "string"},
        },
        "summary": {"type": "string"},
    },
    "required": ["stages", "dropOff", "callStageSequence", "summary"],
}

_OPENING_FENCE = re.compile(r"^```[ \t]*(?:json)?[ \t]*\r?\n?", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\r?\n?```$")


class StageFinding(BaseModel):
    stage_name: str = Field(alias="stageName")
    present: bool
    evidence: str = ""

    model_config = ConfigDict(populate_by_name=True, frozen=True)


class AnalysisResult(BaseModel):
    stages: tuple[StageFinding, ...]
    drop_off: Optional[str] = Field(default=None, alias="dropOff")
    call_stage_sequence: tuple[str, ...] = Field(default=(), alias="callStageSequence")
    summary: str = SUMMARY_FALLBACK

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


def _strip_code_fences(payload: str) -> str:
    """Remove any number of markdown fence wrappers around the payload."""

    cleaned = payload.strip()
    while cleaned.startswith("```"):
        cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
        cleaned = _CLOSING_FENCE.sub("", cleaned, count=1).strip()
    return cleaned


def _count_json_objects(text: str) -> int:
    """Count complete top-level JSON objects embedded in ``text``.

    Scanning stops at the first object that does not decode, so the nested
    objects of a truncated document are never counted.
    """

    decoder = json.JSONDecoder()
    count = 0
    index = text.find("{")
    while index != -1:
        try:
            _, end = decoder.raw_decode(text, index)
        except json.JSONDecodeError:
            break
        count += 1
        index = text.find("{", end)
    return count


def _load_document(raw: str) -> Any:
    cleaned = _strip_code_fences(raw)

    try:
        document = json.loads(cleaned)
    except json.JSONDecodeError:
        document = None
    if isinstance(document, dict):
        return document

    # Repair: keep only the span between the first "{" and the last "}".
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise MalformedResponse("response contains no JSON object", raw_response=raw)

    span = cleaned[start : end + 1]
    try:
        return json.loads(span)
    except json.JSONDecodeError as exc:
        if _count_json_objects(cleaned) > 1:
            raise MalformedResponse(
                "response contains multiple JSON objects", raw_response=raw
            ) from exc
        raise MalformedResponse(
            f"response is not valid JSON: {exc}", raw_response=raw
        ) from exc


def _coerce_finding(stage_name: str, entry: Mapping[str, Any]) -> StageFinding:
    present = entry.get("present")
    if not isinstance(present, bool):
        logger.warning(
            "Finding for stage %r has non-boolean present=%r; treating as absent",
            stage_name,
            present,
        )
        present = False

    evidence = entry.get("evidence")
    if evidence is None:
        evidence = ""
    elif not isinstance(evidence, str):
        evidence = str(evidence)

    return StageFinding(stage_name=stage_name, present=present, evidence=evidence)


def _canonical_findings(
    entries: Sequence[Any],
    expected_stages: Sequence[StageDefinition],
) -> tuple[StageFinding, ...]:
    """Match findings to definitions by exact name, in specification order."""

    expected_names = {stage.stage_name for stage in expected_stages}
    by_name: dict[str, Mapping[str, Any]] = {}

    for index, entry in enumerate(entries):
        if not isinstance(entry, Mapping):
            logger.warning("Stage entry at index %s is not an object: %r", index, entry)
            continue
        name = entry.get("stageName")
        if not isinstance(name, str) or not name:
            logger.warning("Stage at index %s missing stageName field", index)
            continue
        if name not in expected_names:
            logger.warning("Ignoring finding for unknown stage %r", name)
            continue
        if name in by_name:
            logger.warning("Duplicate finding for stage %r; keeping the first one", name)
            continue
        by_name[name] = entry

    findings: list[StageFinding] = []
    for stage in expected_stages:
        entry = by_name.get(stage.stage_name)
        if entry is None:
            logger.warning(
                "No finding returned for stage %r (required=%s); marking as not present",
                stage.stage_name,
                stage.required,
            )
            findings.append(StageFinding(stage_name=stage.stage_name, present=False, evidence=""))
            continue
        findings.append(_coerce_finding(stage.stage_name, entry))
    return tuple(findings)


def normalize_response(
    raw: str,
    expected_stages: Sequence[StageDefinition],
) -> AnalysisResult:
    """Parse, validate and repair ``raw`` into an ``AnalysisResult``.

    Raises ``MalformedResponse`` when no JSON object can be recovered or when
    the ``stages`` array is missing. Every other deviation is repaired and
    logged as a warning.
    """

    document = _load_document(raw or "")
    if not isinstance(document, dict):
        raise MalformedResponse("response is not a JSON object", raw_response=raw)

    stages = document.get("stages")
    if not isinstance(stages, list):
        logger.error("Invalid response structure, keys=%s", sorted(document))
        raise MalformedResponse("response missing required stages field", raw_response=raw)

    expected_names = {stage.stage_name for stage in expected_stages}
    findings = _canonical_findings(stages, expected_stages)

    drop_off = document.get("dropOff")
    if drop_off is not None and not isinstance(drop_off, str):
        logger.warning("Invalid dropOff field %r, setting to null", drop_off)
        drop_off = None
    elif isinstance(drop_off, str) and drop_off not in expected_names:
        logger.warning("dropOff %r does not name a known stage, setting to null", drop_off)
        drop_off = None

    summary = document.get("summary")
    if not isinstance(summary, str) or not summary:
        logger.warning("Response missing summary field, adding default")
        summary = SUMMARY_FALLBACK

    sequence = document.get("callStageSequence")
    if not isinstance(sequence, list):
        logger.warning("Response missing callStageSequence field, adding default")
        sequence = []
    call_stage_sequence = tuple(
        item for item in sequence if isinstance(item, str) and item in expected_names
    )
    if len(call_stage_sequence) != len(sequence):
        logger.warning(
            "Dropped %s invalid callStageSequence entries",
            len(sequence) - len(call_stage_sequence),
        )

    return AnalysisResult(
        stages=findings,
        drop_off=drop_off,
        call_stage_sequence=call_stage_sequence,
        summary=summary,
    )


__all__ = [
    "AnalysisResult",
    "StageFinding",
    "RESPONSE_SCHEMA",
    "SUMMARY_FALLBACK",
    "normalize_response",
]

"""Call analysis orchestration.

``CallAnalysisService.analyze_call`` runs one analysis end to end:

1. validate the ``AnalysisInput`` (``InvalidInput`` on failure);
2. build the prompt;
3. invoke the reasoning backend once (``BackendUnavailable`` on failure);
4. normalize the raw output (``MalformedResponse`` on failure);
5. resolve the drop-off stage and merge it with the backend's value.

Errors propagate to the caller unchanged. ``run_analysis`` is the variant
used by the HTTP layer: it also accepts entity ids and stores the completed
result.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Protocol
from uuid import uuid4

from app.telemetry import observe_backend_call, record_analysis_outcome

from .analysis_types import AnalysisInput
from .drop_off import merge_drop_off, resolve_drop_off
from .entity_store import AnalysisRecord, EntityStore
from .errors import AnalysisError, InvalidInput
from .prompt_builder import build_prompt
from .response_contract import RESPONSE_SCHEMA, AnalysisResult, normalize_response

logger = logging.getLogger(__name__)

DEFAULT_MIN_TRANSCRIPT_LENGTH = 10


class ReasoningBackend(Protocol):
    @property
    def supports_schema(self) -> bool: ...

    async def invoke(self, prompt: str, schema: Optional[Mapping[str, Any]] = None) -> str: ...


@dataclass(frozen=True)
class _ResolvedInput:
    analysis_input: AnalysisInput
    transcript_id: str | None = None
    call_script_id: str | None = None
    stage_set_id: str | None = None
    transcript_metadata: Mapping[str, Any] | None = None
    call_script_name: str | None = None


def _truncate(value: str, max_length: int = 500) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3] + "..."


def validate_analysis_input(
    analysis_input: AnalysisInput,
    *,
    min_transcript_length: int = DEFAULT_MIN_TRANSCRIPT_LENGTH,
) -> None:
    """Raise ``InvalidInput`` unless ``analysis_input`` can be analysed."""

    transcript = analysis_input.transcript
    if not isinstance(transcript, str) or not transcript.strip():
        raise InvalidInput("transcript must be a non-empty string")
    if len(transcript.strip()) < min_transcript_length:
        raise InvalidInput(
            f"transcript must be at least {min_transcript_length} characters long"
        )

    call_script = analysis_input.call_script
    if not isinstance(call_script, str) or not call_script.strip():
        raise InvalidInput("callScript must be a non-empty string")

    if not analysis_input.stages:
        raise InvalidInput("stages must contain at least one stage definition")

    seen: set[str] = set()
    for index, stage in enumerate(analysis_input.stages):
        name = stage.stage_name
        if not isinstance(name, str) or not name.strip():
            raise InvalidInput(f"stage at index {index} is missing stageName")
        if name in seen:
            raise InvalidInput(f"duplicate stageName {name!r}")
        seen.add(name)


class CallAnalysisService:
    """Compose prompt building, backend invocation and normalization."""

    def __init__(
        self,
        backend: ReasoningBackend,
        store: EntityStore,
        *,
        min_transcript_length: int = DEFAULT_MIN_TRANSCRIPT_LENGTH,
    ) -> None:
        self._backend = backend
        self._store = store
        self._min_transcript_length = min_transcript_length

    async def analyze_call(self, analysis_input: AnalysisInput) -> AnalysisResult:
        """Run one analysis and return the canonical result."""

        try:
            result = await self._analyze(analysis_input)
        except AnalysisError as exc:
            self._record_failure(exc)
            raise
        record_analysis_outcome("success")
        return result

    async def run_analysis(
        self,
        *,
        analysis_input: AnalysisInput | None = None,
        transcript_id: str | None = None,
        call_script_id: str | None = None,
        stage_set_id: str | None = None,
    ) -> AnalysisRecord:
        """Analyse raw fields or stored entities and store the completed result.

        Without ``stage_set_id`` the store's default stage specification is
        used.
        """

        try:
            if analysis_input is not None:
                resolved = _ResolvedInput(analysis_input=analysis_input)
            elif transcript_id and call_script_id:
                resolved = self._resolve_ids(transcript_id, call_script_id, stage_set_id)
            else:
                raise InvalidInput(
                    "provide either transcript, callScript and stages or "
                    "transcriptId and callScriptId"
                )
        except AnalysisError as exc:
            self._record_failure(exc)
            raise

        result = await self.analyze_call(resolved.analysis_input)

        analyzed_at = datetime.now(timezone.utc)
        metadata: dict[str, Any] = {"analyzedAt": analyzed_at.isoformat()}
        if resolved.transcript_metadata is not None:
            metadata["transcriptMetadata"] = dict(resolved.transcript_metadata)
        if resolved.call_script_name is not None:
            metadata["callScriptName"] = resolved.call_script_name

        record = self._store.save_analysis(
            AnalysisRecord(
                id=str(uuid4()),
                result=result,
                analyzed_at=analyzed_at,
                transcript_id=resolved.transcript_id,
                call_script_id=resolved.call_script_id,
                stage_set_id=resolved.stage_set_id,
                metadata=metadata,
            )
        )
        logger.info(
            "Analysis completed id=%s transcript=%s script=%s dropOff=%s",
            record.id,
            record.transcript_id,
            record.call_script_id,
            result.drop_off,
        )
        return record

    def get_analysis(self, analysis_id: str) -> AnalysisRecord | None:
        return self._store.get_analysis(analysis_id)

    def list_analyses(
        self,
        *,
        call_script_id: str | None = None,
        transcript_id: str | None = None,
    ) -> list[AnalysisRecord]:
        records = self._store.list_analyses()
        if call_script_id is not None:
            records = [record for record in records if record.call_script_id == call_script_id]
        if transcript_id is not None:
            records = [record for record in records if record.transcript_id == transcript_id]
        return records

    @staticmethod
    def _record_failure(exc: AnalysisError) -> None:
        record_analysis_outcome(exc.kind)
        logger.warning("Analysis failed kind=%s: %s", exc.kind, exc)

    def _resolve_ids(
        self,
        transcript_id: str,
        call_script_id: str,
        stage_set_id: str | None,
    ) -> _ResolvedInput:
        transcript = self._store.get_transcript(transcript_id)
        if transcript is None:
            raise InvalidInput(f"Transcript {transcript_id} not found")
        call_script = self._store.get_call_script(call_script_id)
        if call_script is None:
            raise InvalidInput(f"Call script {call_script_id} not found")

        if stage_set_id:
            stages = self._store.get_stage_specification(stage_set_id)
            if stages is None:
                raise InvalidInput(f"Call stages {stage_set_id} not found")
        else:
            stages = self._store.get_default_stage_specification()
            if stages is None:
                raise InvalidInput("stageSetId is required: no default call stages configured")

        return _ResolvedInput(
            analysis_input=AnalysisInput(
                transcript=transcript.content,
                call_script=call_script.content,
                stages=tuple(stages),
            ),
            transcript_id=transcript_id,
            call_script_id=call_script_id,
            stage_set_id=stage_set_id,
            transcript_metadata=transcript.metadata,
            call_script_name=call_script.name,
        )

    async def _analyze(self, analysis_input: AnalysisInput) -> AnalysisResult:
        validate_analysis_input(
            analysis_input,
            min_transcript_length=self._min_transcript_length,
        )

        schema_enforced = bool(self._backend.supports_schema)
        prompt = build_prompt(analysis_input, schema_enforced=schema_enforced)
        mode = "schema" if schema_enforced else "freeform"

        started = time.perf_counter()
        try:
            raw_response = await self._backend.invoke(
                prompt,
                RESPONSE_SCHEMA if schema_enforced else None,
            )
        finally:
            observe_backend_call(mode, time.perf_counter() - started)

        logger.info(
            "Raw backend response mode=%s stages=%s: %s",
            mode,
            len(analysis_input.stages),
            _truncate(raw_response),
        )

        normalized = normalize_response(raw_response, analysis_input.stages)
        local_drop_off = resolve_drop_off(analysis_input.stages, normalized.stages)
        drop_off = merge_drop_off(normalized.drop_off, local_drop_off)
        if drop_off == normalized.drop_off:
            return normalized
        return normalized.model_copy(update={"drop_off": drop_off})


__all__ = [
    "CallAnalysisService",
    "ReasoningBackend",
    "validate_analysis_input",
]

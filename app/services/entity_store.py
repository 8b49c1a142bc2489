"""In-memory store for transcripts, call scripts, stage sets and analyses.

Everything lives for the lifetime of the process only.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Protocol, Sequence
from uuid import uuid4

from .analysis_types import StageDefinition, StageSpecification
from .call_script_files import CallScriptFileError, CallScriptFiles
from .response_contract import AnalysisResult


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class TranscriptRecord:
    id: str
    content: str
    metadata: Mapping[str, Any] = field(default_factory=dict)
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class CallScriptRecord:
    id: str
    name: str
    content: str
    description: str | None = None
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class StageSetRecord:
    id: str
    name: str
    stages: StageSpecification
    created_at: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class AnalysisRecord:
    """A completed analysis together with where its inputs came from."""

    id: str
    result: AnalysisResult
    analyzed_at: datetime
    transcript_id: str | None = None
    call_script_id: str | None = None
    stage_set_id: str | None = None
    status: str = "completed"
    metadata: Mapping[str, Any] = field(default_factory=dict)


class EntityStore(Protocol):
    """Lookups the analysis service needs from the persistence layer."""

    def get_transcript(self, transcript_id: str) -> TranscriptRecord | None: ...

    def get_call_script(self, call_script_id: str) -> CallScriptRecord | None: ...

    def get_stage_specification(self, stage_set_id: str) -> StageSpecification | None: ...

    def get_default_stage_specification(self) -> StageSpecification | None: ...

    def save_analysis(self, record: AnalysisRecord) -> AnalysisRecord: ...

    def get_analysis(self, analysis_id: str) -> AnalysisRecord | None: ...

    def list_analyses(self) -> list[AnalysisRecord]: ...


class InMemoryEntityStore:
    """Dictionary-backed ``EntityStore`` with a call script file fallback.

    ``default_stages`` is used for analyses that name no stage set.
    """

    def __init__(
        self,
        script_files: CallScriptFiles | None = None,
        default_stages: StageSpecification | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._transcripts: dict[str, TranscriptRecord] = {}
        self._call_scripts: dict[str, CallScriptRecord] = {}
        self._stage_sets: dict[str, StageSetRecord] = {}
        self._analyses: dict[str, AnalysisRecord] = {}
        self._script_files = script_files
        self._default_stages = tuple(default_stages) if default_stages else None

    # Transcripts
    def save_transcript(
        self,
        content: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> TranscriptRecord:
        record = TranscriptRecord(id=str(uuid4()), content=content, metadata=dict(metadata or {}))
        with self._lock:
            self._transcripts[record.id] = record
        return record

    def get_transcript(self, transcript_id: str) -> TranscriptRecord | None:
        return self._transcripts.get(transcript_id)

    def list_transcripts(self) -> list[TranscriptRecord]:
        with self._lock:
            return list(self._transcripts.values())

    # Call scripts
    def save_call_script(
        self,
        name: str,
        content: str,
        description: str | None = None,
    ) -> CallScriptRecord:
        record = CallScriptRecord(
            id=str(uuid4()), name=name, content=content, description=description
        )
        with self._lock:
            self._call_scripts[record.id] = record
        return record

    def get_call_script(self, call_script_id: str) -> CallScriptRecord | None:
        record = self._call_scripts.get(call_script_id)
        if record is not None or self._script_files is None:
            return record
        try:
            content = self._script_files.read(call_script_id)
        except CallScriptFileError:
            return None
        return CallScriptRecord(id=call_script_id, name=call_script_id, content=content)

    def list_call_scripts(self) -> list[CallScriptRecord]:
        with self._lock:
            return list(self._call_scripts.values())

    def list_script_file_ids(self) -> list[str]:
        if self._script_files is None:
            return []
        return self._script_files.available_ids()

    # Stage sets
    def save_stage_set(self, name: str, stages: Sequence[StageDefinition]) -> StageSetRecord:
        record = StageSetRecord(id=str(uuid4()), name=name, stages=tuple(stages))
        with self._lock:
            self._stage_sets[record.id] = record
        return record

    def get_stage_set(self, stage_set_id: str) -> StageSetRecord | None:
        return self._stage_sets.get(stage_set_id)

    def get_stage_specification(self, stage_set_id: str) -> StageSpecification | None:
        record = self._stage_sets.get(stage_set_id)
        return record.stages if record is not None else None

    def get_default_stage_specification(self) -> StageSpecification | None:
        return self._default_stages

    def list_stage_sets(self) -> list[StageSetRecord]:
        with self._lock:
            return list(self._stage_sets.values())

    # Analyses
    def save_analysis(self, record: AnalysisRecord) -> AnalysisRecord:
        if not record.id:
            record = replace(record, id=str(uuid4()))
        with self._lock:
            self._analyses[record.id] = record
        return record

    def get_analysis(self, analysis_id: str) -> AnalysisRecord | None:
        return self._analyses.get(analysis_id)

    def list_analyses(self) -> list[AnalysisRecord]:
        with self._lock:
            return list(self._analyses.values())


__all__ = [
    "AnalysisRecord",
    "CallScriptRecord",
    "EntityStore",
    "InMemoryEntityStore",
    "StageSetRecord",
    "TranscriptRecord",
]

"""Request/response schemas for transcripts, call scripts and stage sets."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.services.entity_store import CallScriptRecord, StageSetRecord, TranscriptRecord
from app.views.analysis import StageDefinitionPayload


class TranscriptRequest(BaseModel):
    content: str = Field(..., min_length=1, description="Transcript text")
    metadata: Dict[str, Any] = Field(default_factory=dict)


class TranscriptView(BaseModel):
    id: str
    content: str
    metadata: Dict[str, Any]
    createdAt: datetime

    @classmethod
    def from_record(cls, record: TranscriptRecord) -> "TranscriptView":
        return cls(
            id=record.id,
            content=record.content,
            metadata=dict(record.metadata),
            createdAt=record.created_at,
        )


class CallScriptRequest(BaseModel):
    name: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1, description="Call script text")
    description: Optional[str] = None


class CallScriptView(BaseModel):
    id: str
    name: str
    content: str
    description: Optional[str] = None
    createdAt: datetime

    @classmethod
    def from_record(cls, record: CallScriptRecord) -> "CallScriptView":
        return cls(
            id=record.id,
            name=record.name,
            content=record.content,
            description=record.description,
            createdAt=record.created_at,
        )


class StageSetRequest(BaseModel):
    name: str = Field("Call stages", min_length=1)
    stages: List[StageDefinitionPayload] = Field(..., min_length=1)


class StageSetView(BaseModel):
    id: str
    name: str
    stages: List[StageDefinitionPayload]
    createdAt: datetime

    @classmethod
    def from_record(cls, record: StageSetRecord) -> "StageSetView":
        return cls(
            id=record.id,
            name=record.name,
            stages=[StageDefinitionPayload(**stage.to_payload()) for stage in record.stages],
            createdAt=record.created_at,
        )


class TranscriptResponse(BaseModel):
    success: bool = True
    data: TranscriptView


class TranscriptListResponse(BaseModel):
    success: bool = True
    data: List[TranscriptView]


class CallScriptResponse(BaseModel):
    success: bool = True
    data: CallScriptView


class CallScriptListResponse(BaseModel):
    success: bool = True
    data: List[CallScriptView]
    scriptFiles: List[str] = Field(
        default_factory=list,
        description="Ids of call scripts available as files on disk",
    )


class StageSetResponse(BaseModel):
    success: bool = True
    data: StageSetView


class StageSetListResponse(BaseModel):
    success: bool = True
    data: List[StageSetView]

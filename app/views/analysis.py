from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from app.services.analysis_types import StageDefinition
from app.services.entity_store import AnalysisRecord
from app.services.response_contract import AnalysisResult
from app.services.statistics import AnalysisStatistics


class StageDefinitionPayload(BaseModel):
    """One stage definition as submitted by clients."""

    stageName: str = Field(..., description="Stage name, unique within the set")
    required: bool = Field(..., description="Whether the call must cover this stage")
    description: str = Field("", description="What the stage is about")
    keyPoints: List[str] = Field(default_factory=list, description="Points the agent should hit")

    def to_definition(self) -> StageDefinition:
        return StageDefinition(
            stage_name=self.stageName,
            required=self.required,
            description=self.description,
            key_points=tuple(self.keyPoints),
        )


class AnalyzeRequest(BaseModel):
    """Either the raw analysis fields or the ids of stored entities."""

    transcript: Optional[str] = Field(None, description="Call transcript text")
    callScript: Optional[str] = Field(None, description="Call script text")
    stages: Optional[List[StageDefinitionPayload]] = Field(
        None, description="Ordered stage specification"
    )
    transcriptId: Optional[str] = Field(None, description="Stored transcript id")
    callScriptId: Optional[str] = Field(None, description="Stored call script id")
    stageSetId: Optional[str] = Field(None, description="Stored call stage set id")

    @property
    def has_raw_fields(self) -> bool:
        return (
            self.transcript is not None
            or self.callScript is not None
            or self.stages is not None
        )


class AnalysisMetadata(BaseModel):
    analysisId: str
    analyzedAt: datetime


class AnalyzeResponse(BaseModel):
    success: bool = True
    message: str = "Analysis completed successfully"
    data: AnalysisResult
    metadata: AnalysisMetadata


class AnalysisRecordView(BaseModel):
    id: str
    transcriptId: Optional[str] = None
    callScriptId: Optional[str] = None
    stageSetId: Optional[str] = None
    status: str
    result: AnalysisResult
    metadata: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_record(cls, record: AnalysisRecord) -> "AnalysisRecordView":
        return cls(
            id=record.id,
            transcriptId=record.transcript_id,
            callScriptId=record.call_script_id,
            stageSetId=record.stage_set_id,
            status=record.status,
            result=record.result,
            metadata=dict(record.metadata),
        )


class AnalysisRecordResponse(BaseModel):
    success: bool = True
    data: AnalysisRecordView


class AnalysisListResponse(BaseModel):
    success: bool = True
    data: List[AnalysisRecordView]


class StatisticsView(BaseModel):
    totalAnalyses: int
    completedWithoutDropOff: int
    dropOffCounts: Dict[str, int]
    stageCoverage: Dict[str, int] = Field(
        ..., description="Percentage of analyses in which each stage was present"
    )

    @classmethod
    def from_statistics(cls, stats: AnalysisStatistics) -> "StatisticsView":
        return cls(
            totalAnalyses=stats.total_analyses,
            completedWithoutDropOff=stats.completed_without_drop_off,
            dropOffCounts=dict(stats.drop_off_counts),
            stageCoverage=dict(stats.stage_coverage),
        )


class StatisticsResponse(BaseModel):
    success: bool = True
    data: StatisticsView

"""Pydantic schemas used by the HTTP controllers."""

from .analysis import (
    AnalysisListResponse,
    AnalysisRecordResponse,
    AnalysisRecordView,
    AnalyzeRequest,
    AnalyzeResponse,
    StageDefinitionPayload,
    StatisticsResponse,
)
from .common import ErrorResponse

__all__ = [
    "AnalysisListResponse",
    "AnalysisRecordResponse",
    "AnalysisRecordView",
    "AnalyzeRequest",
    "AnalyzeResponse",
    "StageDefinitionPayload",
    "StatisticsResponse",
    "ErrorResponse",
]

"""Service layer for call analysis and its external integrations."""

from .analysis_types import AnalysisInput, StageDefinition, StageSpecification
from .call_analysis import CallAnalysisService, ReasoningBackend, validate_analysis_input
from .drop_off import merge_drop_off, resolve_drop_off
from .entity_store import (
    AnalysisRecord,
    CallScriptRecord,
    EntityStore,
    InMemoryEntityStore,
    StageSetRecord,
    TranscriptRecord,
)
from .errors import AnalysisError, BackendUnavailable, InvalidInput, MalformedResponse
from .llm_client import BedrockLlmClient
from .prompt_builder import build_prompt
from .response_contract import (
    RESPONSE_SCHEMA,
    AnalysisResult,
    StageFinding,
    normalize_response,
)

__all__ = [
    "AnalysisInput",
    "StageDefinition",
    "StageSpecification",
    "CallAnalysisService",
    "ReasoningBackend",
    "validate_analysis_input",
    "merge_drop_off",
    "resolve_drop_off",
    "AnalysisRecord",
    "CallScriptRecord",
    "EntityStore",
    "InMemoryEntityStore",
    "StageSetRecord",
    "TranscriptRecord",
    "AnalysisError",
    "BackendUnavailable",
    "InvalidInput",
    "MalformedResponse",
    "BedrockLlmClient",
    "build_prompt",
    "RESPONSE_SCHEMA",
    "AnalysisResult",
    "StageFinding",
    "normalize_response",
]

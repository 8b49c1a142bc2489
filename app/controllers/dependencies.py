"""Common FastAPI dependencies reused across controllers."""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Annotated

from fastapi import Depends

from app.config.settings import settings
from app.services.analysis_types import StageSpecification, load_stage_specification
from app.services.call_analysis import CallAnalysisService
from app.services.call_script_files import CallScriptFiles
from app.services.entity_store import InMemoryEntityStore
from app.services.llm_client import BedrockLlmClient

logger = logging.getLogger(__name__)


def _load_default_stages(file_name: str | None) -> StageSpecification | None:
    if not file_name:
        return None
    path = Path(file_name)
    if not path.is_file():
        logger.warning("Default stage set file %s not found; stageSetId will be required", path)
        return None
    stages = load_stage_specification(path)
    logger.info("Loaded %s default stages from %s", len(stages), path)
    return stages


@lru_cache(maxsize=1)
def get_entity_store() -> InMemoryEntityStore:
    """Process-wide entity store."""

    script_files = CallScriptFiles(
        Path(settings.call_scripts_dir),
        settings.call_script_files,
    )
    return InMemoryEntityStore(
        script_files=script_files,
        default_stages=_load_default_stages(settings.default_stage_set_file),
    )


@lru_cache(maxsize=1)
def get_reasoning_backend() -> BedrockLlmClient:
    return BedrockLlmClient(settings.bedrock)


def get_analysis_service(
    store: Annotated[InMemoryEntityStore, Depends(get_entity_store)],
    backend: Annotated[BedrockLlmClient, Depends(get_reasoning_backend)],
) -> CallAnalysisService:
    return CallAnalysisService(
        backend,
        store,
        min_transcript_length=settings.min_transcript_length,
    )


EntityStoreDep = Annotated[InMemoryEntityStore, Depends(get_entity_store)]
AnalysisServiceDep = Annotated[CallAnalysisService, Depends(get_analysis_service)]


__all__ = [
    "get_entity_store",
    "get_reasoning_backend",
    "get_analysis_service",
    "EntityStoreDep",
    "AnalysisServiceDep",
]

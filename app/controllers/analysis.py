"""Call analysis endpoints."""

from fastapi import APIRouter, HTTPException, status

from app.controllers.dependencies import AnalysisServiceDep
from app.services.analysis_types import AnalysisInput
from app.services.errors import InvalidInput
from app.services.statistics import calculate_statistics
from app.views.analysis import (
    AnalysisListResponse,
    AnalysisMetadata,
    AnalysisRecordResponse,
    AnalysisRecordView,
    AnalyzeRequest,
    AnalyzeResponse,
    StatisticsResponse,
    StatisticsView,
)

router = APIRouter(prefix="/api", tags=["analysis"])


@router.post(
    "/analyze",
    response_model=AnalyzeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def analyze_call(
    payload: AnalyzeRequest,
    service: AnalysisServiceDep,
) -> AnalyzeResponse:
    """Analyse a transcript against a call script and its stages.

    Accepts either ``{transcript, callScript, stages}`` or
    ``{transcriptId, callScriptId}`` with an optional ``stageSetId``; the
    default call stages are used when it is omitted.
    """

    if payload.has_raw_fields:
        if payload.transcript is None or payload.callScript is None or payload.stages is None:
            raise InvalidInput("transcript, callScript and stages are all required")
        analysis_input = AnalysisInput(
            transcript=payload.transcript,
            call_script=payload.callScript,
            stages=tuple(stage.to_definition() for stage in payload.stages),
        )
        record = await service.run_analysis(analysis_input=analysis_input)
    else:
        record = await service.run_analysis(
            transcript_id=payload.transcriptId,
            call_script_id=payload.callScriptId,
            stage_set_id=payload.stageSetId,
        )

    return AnalyzeResponse(
        data=record.result,
        metadata=AnalysisMetadata(analysisId=record.id, analyzedAt=record.analyzed_at),
    )


@router.get("/analysis", response_model=AnalysisListResponse)
async def list_analyses(service: AnalysisServiceDep) -> AnalysisListResponse:
    """Return every stored analysis."""

    records = service.list_analyses()
    return AnalysisListResponse(data=[AnalysisRecordView.from_record(r) for r in records])


@router.get("/analysis/stats/overview", response_model=StatisticsResponse)
async def statistics_overview(service: AnalysisServiceDep) -> StatisticsResponse:
    stats = calculate_statistics(service.list_analyses())
    return StatisticsResponse(data=StatisticsView.from_statistics(stats))


@router.get("/analysis/stats/script/{call_script_id}", response_model=StatisticsResponse)
async def statistics_for_script(
    call_script_id: str,
    service: AnalysisServiceDep,
) -> StatisticsResponse:
    stats = calculate_statistics(service.list_analyses(call_script_id=call_script_id))
    return StatisticsResponse(data=StatisticsView.from_statistics(stats))


@router.get("/analysis/script/{call_script_id}", response_model=AnalysisListResponse)
async def list_analyses_by_script(
    call_script_id: str,
    service: AnalysisServiceDep,
) -> AnalysisListResponse:
    records = service.list_analyses(call_script_id=call_script_id)
    return AnalysisListResponse(data=[AnalysisRecordView.from_record(r) for r in records])


@router.get("/analysis/transcript/{transcript_id}", response_model=AnalysisListResponse)
async def list_analyses_by_transcript(
    transcript_id: str,
    service: AnalysisServiceDep,
) -> AnalysisListResponse:
    records = service.list_analyses(transcript_id=transcript_id)
    return AnalysisListResponse(data=[AnalysisRecordView.from_record(r) for r in records])


@router.get("/analysis/{analysis_id}", response_model=AnalysisRecordResponse)
async def get_analysis(
    analysis_id: str,
    service: AnalysisServiceDep,
) -> AnalysisRecordResponse:
    record = service.get_analysis(analysis_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Analysis not found",
        )
    return AnalysisRecordResponse(data=AnalysisRecordView.from_record(record))

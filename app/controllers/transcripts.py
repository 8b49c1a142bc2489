"""Transcript endpoints."""

from fastapi import APIRouter, HTTPException, status

from app.controllers.dependencies import EntityStoreDep
from app.views.entities import (
    TranscriptListResponse,
    TranscriptRequest,
    TranscriptResponse,
    TranscriptView,
)

router = APIRouter(prefix="/api/transcripts", tags=["transcripts"])


@router.post(
    "/",
    response_model=TranscriptResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_transcript(
    payload: TranscriptRequest,
    store: EntityStoreDep,
) -> TranscriptResponse:
    record = store.save_transcript(payload.content, payload.metadata)
    return TranscriptResponse(data=TranscriptView.from_record(record))


@router.get("/", response_model=TranscriptListResponse)
async def list_transcripts(store: EntityStoreDep) -> TranscriptListResponse:
    return TranscriptListResponse(
        data=[TranscriptView.from_record(record) for record in store.list_transcripts()]
    )


@router.get("/{transcript_id}", response_model=TranscriptResponse)
async def get_transcript(transcript_id: str, store: EntityStoreDep) -> TranscriptResponse:
    record = store.get_transcript(transcript_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Transcript not found",
        )
    return TranscriptResponse(data=TranscriptView.from_record(record))

"""Call stage set endpoints."""

from fastapi import APIRouter, HTTPException, status

from app.controllers.dependencies import EntityStoreDep
from app.services.errors import InvalidInput
from app.views.entities import (
    StageSetListResponse,
    StageSetRequest,
    StageSetResponse,
    StageSetView,
)

router = APIRouter(prefix="/api/call-stages", tags=["call-stages"])


@router.post(
    "/",
    response_model=StageSetResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_stage_set(
    payload: StageSetRequest,
    store: EntityStoreDep,
) -> StageSetResponse:
    definitions = [stage.to_definition() for stage in payload.stages]
    names = [definition.stage_name for definition in definitions]
    if len(set(names)) != len(names):
        raise InvalidInput("stageName values must be unique within a stage set")

    record = store.save_stage_set(payload.name, definitions)
    return StageSetResponse(data=StageSetView.from_record(record))


@router.get("/", response_model=StageSetListResponse)
async def list_stage_sets(store: EntityStoreDep) -> StageSetListResponse:
    return StageSetListResponse(
        data=[StageSetView.from_record(record) for record in store.list_stage_sets()]
    )


@router.get("/{stage_set_id}", response_model=StageSetResponse)
async def get_stage_set(stage_set_id: str, store: EntityStoreDep) -> StageSetResponse:
    record = store.get_stage_set(stage_set_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Call stages not found",
        )
    return StageSetResponse(data=StageSetView.from_record(record))

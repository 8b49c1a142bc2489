"""Call script endpoints."""

from fastapi import APIRouter, HTTPException, status

from app.controllers.dependencies import EntityStoreDep
from app.views.entities import (
    CallScriptListResponse,
    CallScriptRequest,
    CallScriptResponse,
    CallScriptView,
)

router = APIRouter(prefix="/api/call-scripts", tags=["call-scripts"])


@router.post(
    "/",
    response_model=CallScriptResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_call_script(
    payload: CallScriptRequest,
    store: EntityStoreDep,
) -> CallScriptResponse:
    record = store.save_call_script(payload.name, payload.content, payload.description)
    return CallScriptResponse(data=CallScriptView.from_record(record))


@router.get("/", response_model=CallScriptListResponse)
async def list_call_scripts(store: EntityStoreDep) -> CallScriptListResponse:
    return CallScriptListResponse(
        data=[CallScriptView.from_record(record) for record in store.list_call_scripts()],
        scriptFiles=store.list_script_file_ids(),
    )


@router.get("/{call_script_id}", response_model=CallScriptResponse)
async def get_call_script(call_script_id: str, store: EntityStoreDep) -> CallScriptResponse:
    """Return a stored script, falling back to the script files on disk."""

    record = store.get_call_script(call_script_id)
    if record is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Call script not found",
        )
    return CallScriptResponse(data=CallScriptView.from_record(record))

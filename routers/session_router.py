from fastapi import APIRouter, HTTPException

from models.common_models import SessionSummary
from models.session_models import SessionState
from services.excel_reader_service import describe_sheets
from services.session_service import create_session, get_session, reset_session

router = APIRouter(prefix="/session", tags=["session"])


def _summary(state: SessionState) -> SessionSummary:
    workbook = state.workbook
    return SessionSummary(
        session_id=state.session_id,
        generation=state.generation,
        file_name=workbook.file_name if workbook else None,
        sheets=describe_sheets(workbook) if workbook else [],
        n_messages=len(state.messages),
        busy=state.busy,
    )


@router.post("", response_model=SessionSummary)
async def new_session():
    return _summary(create_session())


@router.get("/{session_id}", response_model=SessionSummary)
async def read_session(session_id: str):
    session = get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found.")
    return _summary(session)


@router.post("/{session_id}/reset", response_model=SessionSummary)
async def reset(session_id: str):
    if not get_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found.")
    return _summary(reset_session(session_id))

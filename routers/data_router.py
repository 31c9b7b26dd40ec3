from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from models.common_models import PreviewRequest, SessionRequest
from services.context_service import format_workbook_context
from services.preview_service import get_preview_rows
from services.session_service import get_session

router = APIRouter(prefix="/data", tags=["data"])


def _get_workbook(session_id: str):
    session = get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found.")
    if session.workbook is None:
        raise HTTPException(status_code=400, detail="No spreadsheet loaded for this session.")
    return session.workbook


@router.post("/preview")
async def preview_data(req: PreviewRequest):
    workbook = _get_workbook(req.session_id)
    try:
        return get_preview_rows(workbook, req.sheet_name, req.n_rows)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Sheet '{req.sheet_name}' not found.")


@router.post("/context", response_class=PlainTextResponse)
async def data_context(req: SessionRequest):
    """The exact data snapshot the analyst model receives."""
    workbook = _get_workbook(req.session_id)
    return format_workbook_context(workbook)

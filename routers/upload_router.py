from typing import Callable, Optional

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from starlette.concurrency import run_in_threadpool

from models.common_models import GoogleSheetRequest, UploadResponse
from models.workbook_models import Workbook
from services.domain_logic_service import infer_domain
from services.excel_reader_service import describe_sheets, parse_workbook
from services.file_upload_service import read_uploaded_file
from services.session_service import (
    begin_operation,
    commit,
    create_session,
    delete_session,
    end_operation,
    get_session,
    with_workbook,
)
from services.sheet_fetch_service import fetch_google_sheet

router = APIRouter(prefix="/upload", tags=["upload"])


async def _ingest(session_id: Optional[str], load: Callable[[], Workbook]) -> UploadResponse:
    """
    Run a blocking workbook load off the event loop and swap it into the
    session. A failed load leaves an existing session untouched; a session
    created for this request is discarded again.
    """
    created = not session_id
    if created:
        session_id = create_session().session_id
    elif not get_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found.")

    generation = begin_operation(session_id)
    try:
        workbook = await run_in_threadpool(load)
        state = commit(session_id, generation, lambda s: with_workbook(s, workbook))
    except Exception:
        if created:
            delete_session(session_id)
        raise
    finally:
        end_operation(session_id, generation)

    return UploadResponse(
        session_id=session_id,
        file_name=workbook.file_name,
        generation=state.generation,
        domain=infer_domain(workbook),
        sheets=describe_sheets(workbook),
        greeting=state.messages[0],
    )


@router.post("/excel", response_model=UploadResponse)
async def upload_excel(file: UploadFile = File(...), session_id: Optional[str] = Form(None)):
    content = read_uploaded_file(file)
    file_name = file.filename

    return await _ingest(session_id, lambda: parse_workbook(content, file_name))


@router.post("/google-sheet", response_model=UploadResponse)
async def upload_google_sheet(req: GoogleSheetRequest):
    return await _ingest(req.session_id, lambda: fetch_google_sheet(req.sheet_url))

from typing import List

from fastapi import APIRouter, HTTPException
from starlette.concurrency import run_in_threadpool

from models.chat_models import ChatMessage
from models.common_models import AskRequest, AskResponse
from services.analysis_service import build_history, generate_data_analysis
from services.chart_render_service import render_chart
from services.errors import AnalysisError
from services.reply_decoder_service import decode_reply
from services.session_service import (
    begin_operation,
    commit,
    end_operation,
    get_session,
    new_message,
    with_message,
)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("/ask", response_model=AskResponse)
async def ask(req: AskRequest):
    session = get_session(req.session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found.")
    if session.workbook is None:
        raise HTTPException(status_code=400, detail="Upload a spreadsheet before asking questions.")

    question = req.question.strip()
    if not question:
        raise HTTPException(status_code=400, detail="Question must not be empty.")

    generation = begin_operation(req.session_id)
    try:
        history = build_history(session.messages)
        user_msg = new_message("user", question)
        commit(req.session_id, generation, lambda s: with_message(s, user_msg))

        try:
            reply = await run_in_threadpool(generate_data_analysis, question, session.workbook, history)
        except AnalysisError as e:
            # Failures stay in the conversation as a model message
            reply = e.message

        model_msg = new_message("model", reply)
        commit(req.session_id, generation, lambda s: with_message(s, model_msg))
    finally:
        end_operation(req.session_id, generation)

    decoded = decode_reply(model_msg.content)
    image = None
    if decoded.chart is not None:
        image = await run_in_threadpool(render_chart, decoded.chart)

    return AskResponse(
        message=model_msg,
        prose=decoded.prose,
        chart=decoded.chart,
        chart_image_base64=image,
    )


@router.get("/{session_id}/messages", response_model=List[ChatMessage])
async def messages(session_id: str):
    session = get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found.")
    return session.messages

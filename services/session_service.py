"""
In-memory chat sessions.

A SessionState is never mutated in place: each transition (new workbook,
new message, reset) returns a fresh state which the store then replaces.

Every reset bumps the session generation. Long-running work (parsing,
fetching, LLM calls) records the generation it started under and hands its
result to ``commit``, which drops it if the session was reset meanwhile.
A per-session busy flag keeps only one such operation in flight.
"""
import logging
import time
import uuid
from typing import Callable, Dict, Optional

from models.chat_models import GREETING_ID, ChatMessage, ChatRole
from models.session_models import SessionState
from models.workbook_models import Workbook
from .errors import SessionBusyError, StaleResultError

logger = logging.getLogger(__name__)

_SESSIONS: Dict[str, SessionState] = {}


def _now_ms() -> int:
    return int(time.time() * 1000)


def new_message(role: ChatRole, content: str, message_id: Optional[str] = None) -> ChatMessage:
    return ChatMessage(
        id=message_id or uuid.uuid4().hex,
        role=role,
        content=content,
        timestamp=_now_ms(),
    )


def build_greeting(workbook: Workbook) -> ChatMessage:
    sheet_names = ", ".join(workbook.sheet_names)
    content = (
        f"Hi! I've analyzed **{workbook.file_name}**. \n\n"
        f"I found **{len(workbook.sheets)} sheets**: {sheet_names}. \n\n"
        "You can ask me to analyze data from a specific sheet or cross-reference "
        'data between them (e.g., "Join data from Sheet A and Sheet B").'
    )
    return new_message("model", content, message_id=GREETING_ID)


# Transitions

def with_workbook(state: SessionState, workbook: Workbook) -> SessionState:
    """Replace the workbook wholesale and restart the transcript."""
    return state.model_copy(update={"workbook": workbook, "messages": [build_greeting(workbook)]})


def with_message(state: SessionState, message: ChatMessage) -> SessionState:
    return state.model_copy(update={"messages": [*state.messages, message]})


def with_reset(state: SessionState) -> SessionState:
    return SessionState(session_id=state.session_id, generation=state.generation + 1)


# Store

def create_session() -> SessionState:
    state = SessionState(session_id=uuid.uuid4().hex)
    _SESSIONS[state.session_id] = state
    return state


def get_session(session_id: str) -> Optional[SessionState]:
    return _SESSIONS.get(session_id)


def delete_session(session_id: str) -> None:
    _SESSIONS.pop(session_id, None)


def _require_session(session_id: str) -> SessionState:
    state = _SESSIONS.get(session_id)
    if state is None:
        raise KeyError(f"Session '{session_id}' not found.")
    return state


def reset_session(session_id: str) -> SessionState:
    state = with_reset(_require_session(session_id))
    _SESSIONS[session_id] = state
    logger.info("Session %s reset to generation %d", session_id, state.generation)
    return state


def begin_operation(session_id: str) -> int:
    """Mark the session busy and return the generation the work runs under."""
    state = _require_session(session_id)
    if state.busy:
        raise SessionBusyError()
    _SESSIONS[session_id] = state.model_copy(update={"busy": True})
    return state.generation


def end_operation(session_id: str, generation: int) -> None:
    # A reset already cleared the flag and may have let a newer request in
    state = _SESSIONS.get(session_id)
    if state is not None and state.generation == generation and state.busy:
        _SESSIONS[session_id] = state.model_copy(update={"busy": False})


def commit(
    session_id: str,
    generation: int,
    transition: Callable[[SessionState], SessionState],
) -> SessionState:
    """Apply a transition only if the session has not been reset since `generation`."""
    state = _SESSIONS.get(session_id)
    if state is None or state.generation != generation:
        logger.info(
            "Discarding stale result for session %s (generation %d)", session_id, generation
        )
        raise StaleResultError()

    new_state = transition(state)
    _SESSIONS[session_id] = new_state
    return new_state

import subprocess
import sys
from pathlib import Path

import pytest

from models.chat_models import GREETING_ID
from models.workbook_models import Sheet, Workbook
from services import session_service
from services.errors import SessionBusyError, StaleResultError
from services.session_service import (
    begin_operation,
    commit,
    create_session,
    end_operation,
    get_session,
    new_message,
    reset_session,
    with_message,
    with_reset,
    with_workbook,
)


@pytest.fixture
def workbook():
    sheet = Sheet(sheet_name="Sheet1", columns=["A"], rows=[{"A": 1}])
    return Workbook(file_name="data.xlsx", sheets=[sheet])


def test_with_workbook_restarts_transcript_with_greeting(workbook):
    state = with_message(create_session(), new_message("user", "old question"))

    loaded = with_workbook(state, workbook)

    assert loaded.workbook == workbook
    assert len(loaded.messages) == 1
    greeting = loaded.messages[0]
    assert greeting.id == "init"
    assert greeting.role == "model"
    assert "**data.xlsx**" in greeting.content
    assert "Sheet1" in greeting.content


def test_transitions_do_not_mutate_input(workbook):
    state = create_session()

    with_message(state, new_message("user", "hi"))
    with_workbook(state, workbook)

    assert state.messages == []
    assert state.workbook is None


def test_reset_bumps_generation_and_clears(workbook):
    state = with_workbook(create_session(), workbook)

    after = with_reset(state)

    assert after.generation == state.generation + 1
    assert after.workbook is None
    assert after.messages == []
    assert after.session_id == state.session_id


def test_messages_get_unique_ids_and_ms_timestamps():
    a = new_message("user", "a")
    b = new_message("user", "b")

    assert a.id != b.id
    assert a.timestamp > 10 ** 12


def test_single_flight_guard():
    session_id = create_session().session_id

    generation = begin_operation(session_id)
    with pytest.raises(SessionBusyError):
        begin_operation(session_id)

    end_operation(session_id, generation)
    assert begin_operation(session_id) == generation


def test_commit_after_reset_is_discarded(workbook):
    session_id = create_session().session_id
    generation = begin_operation(session_id)

    reset_session(session_id)

    with pytest.raises(StaleResultError):
        commit(session_id, generation, lambda s: with_workbook(s, workbook))
    assert get_session(session_id).workbook is None


def test_stale_end_operation_keeps_newer_flag():
    session_id = create_session().session_id
    old_generation = begin_operation(session_id)

    reset_session(session_id)
    begin_operation(session_id)
    end_operation(session_id, old_generation)

    assert get_session(session_id).busy is True


def test_commit_applies_current_generation(workbook):
    session_id = create_session().session_id
    generation = begin_operation(session_id)

    state = commit(session_id, generation, lambda s: with_workbook(s, workbook))

    assert state.workbook == workbook
    assert session_service.get_session(session_id).workbook == workbook


def test_unknown_session_raises_key_error():
    with pytest.raises(KeyError):
        begin_operation("missing")


def test_delete_session_forgets_it():
    state = create_session()

    session_service.delete_session(state.session_id)
    session_service.delete_session(state.session_id)

    assert get_session(state.session_id) is None


def test_greeting_id_lives_in_chat_models(workbook):
    assert with_workbook(create_session(), workbook).messages[0].id == GREETING_ID


def test_session_store_does_not_load_the_llm_client():
    # The store must be importable without pulling in the Groq-backed analysis layer
    code = (
        "import sys; import services.session_service; "
        "print('services.analysis_service' in sys.modules, 'groq' in sys.modules)"
    )
    result = subprocess.run(
        [sys.executable, "-c", code],
        cwd=Path(__file__).resolve().parent.parent,
        capture_output=True,
        text=True,
        check=True,
    )

    assert result.stdout.split() == ["False", "False"]

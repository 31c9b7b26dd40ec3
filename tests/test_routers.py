import json

import pytest
from fastapi.testclient import TestClient

from conftest import make_blank_xlsx
from main import app
from services import session_service

XLSX_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@pytest.fixture
def client():
    return TestClient(app)


def _upload(client, content, name="sales.xlsx", session_id=None):
    data = {"session_id": session_id} if session_id else {}
    return client.post("/upload/excel", files={"file": (name, content, XLSX_TYPE)}, data=data)


def test_upload_creates_session(client, sales_xlsx):
    resp = _upload(client, sales_xlsx)

    assert resp.status_code == 200
    body = resp.json()
    assert body["file_name"] == "sales.xlsx"
    assert body["generation"] == 0
    assert [s["sheet_name"] for s in body["sheets"]] == ["Sales", "Customers"]
    assert body["greeting"]["id"] == "init"


def test_upload_rejects_other_extensions(client):
    resp = _upload(client, b"a,b\n1,2", name="data.csv")

    assert resp.status_code == 400
    assert "xlsx" in resp.json()["detail"]


def test_upload_corrupt_file(client):
    resp = _upload(client, b"garbage bytes", name="broken.xlsx")

    assert resp.status_code == 400
    assert resp.json()["detail"].startswith("Failed to parse Excel file")


def test_upload_empty_workbook(client):
    resp = _upload(client, make_blank_xlsx("Sheet1"), name="blank.xlsx")

    assert resp.status_code == 422


def test_failed_upload_keeps_existing_workbook(client, sales_xlsx):
    session_id = _upload(client, sales_xlsx).json()["session_id"]

    resp = _upload(client, b"garbage", name="broken.xlsx", session_id=session_id)

    assert resp.status_code == 400
    summary = client.get(f"/session/{session_id}").json()
    assert summary["file_name"] == "sales.xlsx"
    assert summary["busy"] is False


def test_failed_upload_without_session_leaves_no_session(client):
    resp = _upload(client, b"garbage", name="broken.xlsx")

    assert resp.status_code == 400
    assert session_service._SESSIONS == {}


def test_google_sheet_bad_identifier(client):
    resp = client.post("/upload/google-sheet", json={"sheet_url": "not a url"})

    assert resp.status_code == 400
    assert resp.json()["detail"] == "Invalid Google Sheet URL or ID."
    assert session_service._SESSIONS == {}


def test_preview_and_context(client, sales_xlsx):
    session_id = _upload(client, sales_xlsx).json()["session_id"]

    preview = client.post(
        "/data/preview", json={"session_id": session_id, "sheet_name": "Sales", "n_rows": 2}
    ).json()
    assert preview["columns"] == ["Customer ID", "Region", "Revenue"]
    assert preview["total_rows"] == 3
    assert len(preview["rows"]) == 2

    missing = client.post("/data/preview", json={"session_id": session_id, "sheet_name": "Nope"})
    assert missing.status_code == 404

    context = client.post("/data/context", json={"session_id": session_id})
    assert context.status_code == 200
    assert '--- SHEET 2: "Customers" ---' in context.text


def test_ask_returns_prose_and_chart(client, sales_xlsx, fake_llm):
    chart = {"type": "bar", "title": "Revenue", "data": [{"name": "North", "value": 1500.5}]}
    fake_llm(reply=f"North leads.\n\n```chart\n{json.dumps(chart)}\n```")
    session_id = _upload(client, sales_xlsx).json()["session_id"]

    resp = client.post("/chat/ask", json={"session_id": session_id, "question": "Revenue by region?"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["prose"] == "North leads."
    assert body["chart"]["title"] == "Revenue"
    assert body["chart_image_base64"]
    assert body["message"]["role"] == "model"

    transcript = client.get(f"/chat/{session_id}/messages").json()
    assert [m["role"] for m in transcript] == ["model", "user", "model"]
    assert transcript[1]["content"] == "Revenue by region?"


def test_second_question_sends_history(client, sales_xlsx, fake_llm):
    completions = fake_llm(reply="Answer.")
    session_id = _upload(client, sales_xlsx).json()["session_id"]

    client.post("/chat/ask", json={"session_id": session_id, "question": "First?"})
    client.post("/chat/ask", json={"session_id": session_id, "question": "Second?"})

    sent = completions.calls[1]["messages"]
    assert [m["role"] for m in sent] == ["system", "user", "assistant", "user"]
    assert sent[1]["content"] == "First?"


def test_failed_analysis_becomes_chat_message(client, sales_xlsx, fake_llm):
    fake_llm(error=RuntimeError("upstream 500"))
    session_id = _upload(client, sales_xlsx).json()["session_id"]

    resp = client.post("/chat/ask", json={"session_id": session_id, "question": "Total?"})

    assert resp.status_code == 200
    assert resp.json()["prose"].startswith("Sorry, I encountered an error")
    assert resp.json()["chart"] is None


def test_ask_without_workbook(client):
    session_id = client.post("/session").json()["session_id"]

    resp = client.post("/chat/ask", json={"session_id": session_id, "question": "Total?"})

    assert resp.status_code == 400


def test_ask_while_busy_is_rejected(client, sales_xlsx, fake_llm):
    fake_llm()
    session_id = _upload(client, sales_xlsx).json()["session_id"]
    session_service.begin_operation(session_id)

    resp = client.post("/chat/ask", json={"session_id": session_id, "question": "Total?"})

    assert resp.status_code == 409


def test_reply_after_reset_is_discarded(client, sales_xlsx, fake_llm):
    session_id = _upload(client, sales_xlsx).json()["session_id"]
    fake_llm(reply="Too late.", on_call=lambda: session_service.reset_session(session_id))

    resp = client.post("/chat/ask", json={"session_id": session_id, "question": "Total?"})

    assert resp.status_code == 409
    summary = client.get(f"/session/{session_id}").json()
    assert summary["generation"] == 1
    assert summary["n_messages"] == 0
    assert summary["file_name"] is None


def test_reset_clears_session(client, sales_xlsx):
    session_id = _upload(client, sales_xlsx).json()["session_id"]

    summary = client.post(f"/session/{session_id}/reset").json()

    assert summary["generation"] == 1
    assert summary["file_name"] is None
    assert summary["sheets"] == []


def test_unknown_session(client):
    assert client.get("/session/nope").status_code == 404
    assert client.post("/session/nope/reset").status_code == 404
    assert client.post("/chat/ask", json={"session_id": "nope", "question": "x"}).status_code == 404

import io
from types import SimpleNamespace
from typing import Dict

import openpyxl
import pandas as pd
import pytest

from services import analysis_service, session_service


def make_xlsx(sheets: Dict[str, pd.DataFrame]) -> bytes:
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, df in sheets.items():
            df.to_excel(writer, sheet_name=name, index=False)
    return buffer.getvalue()


def make_blank_xlsx(*sheet_names: str) -> bytes:
    wb = openpyxl.Workbook()
    wb.active.title = sheet_names[0]
    for name in sheet_names[1:]:
        wb.create_sheet(name)
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


class FakeCompletions:
    def __init__(self, reply=None, error=None, on_call=None):
        self.reply = reply
        self.error = error
        self.on_call = on_call
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.on_call:
            self.on_call()
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture(autouse=True)
def clean_sessions(monkeypatch):
    monkeypatch.setattr(session_service, "_SESSIONS", {})


@pytest.fixture
def fake_llm(monkeypatch):
    """Install a fake Groq client; returns its completions recorder."""
    def _install(reply="The total is 42.", error=None, on_call=None):
        completions = FakeCompletions(reply=reply, error=error, on_call=on_call)
        monkeypatch.setattr(
            analysis_service, "client", SimpleNamespace(chat=SimpleNamespace(completions=completions))
        )
        return completions
    return _install


@pytest.fixture
def sales_xlsx() -> bytes:
    sales = pd.DataFrame({
        "Customer ID": [1, 2, 3],
        "Region": ["North", "South", "North"],
        "Revenue": [1200.5, 950, 300],
    })
    customers = pd.DataFrame({
        "Customer ID": [1, 2, 3],
        "Name": ["Ana", "Luis", "Marta"],
    })
    return make_xlsx({"Sales": sales, "Customers": customers})

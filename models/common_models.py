from typing import List, Optional
from pydantic import BaseModel

from config import PREVIEW_ROWS
from models.chat_models import ChartSpec, ChatMessage


class SheetInfo(BaseModel):
    sheet_name: str
    n_rows: int
    n_cols: int


class UploadResponse(BaseModel):
    session_id: str
    file_name: str
    generation: int
    domain: str
    sheets: List[SheetInfo]
    greeting: ChatMessage


class GoogleSheetRequest(BaseModel):
    sheet_url: str               # full URL or bare spreadsheet id
    session_id: Optional[str] = None


class SessionRequest(BaseModel):
    session_id: str


class SessionSummary(BaseModel):
    session_id: str
    generation: int
    file_name: Optional[str] = None
    sheets: List[SheetInfo] = []
    n_messages: int = 0
    busy: bool = False


class PreviewRequest(BaseModel):
    session_id: str
    sheet_name: str
    n_rows: int = PREVIEW_ROWS


class AskRequest(BaseModel):
    session_id: str
    question: str


class AskResponse(BaseModel):
    message: ChatMessage
    prose: str
    chart: Optional[ChartSpec] = None
    chart_image_base64: Optional[str] = None

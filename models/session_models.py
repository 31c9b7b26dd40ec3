from typing import List, Optional
from pydantic import BaseModel

from models.chat_models import ChatMessage
from models.workbook_models import Workbook


class SessionState(BaseModel):
    session_id: str
    generation: int = 0    # bumped on every reset
    workbook: Optional[Workbook] = None
    messages: List[ChatMessage] = []
    busy: bool = False     # an ingestion or analysis is in flight

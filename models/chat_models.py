from typing import List, Literal, Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

ChatRole = Literal["user", "model"]

# Id of the UI-only greeting; never sent to the model
GREETING_ID = "init"
ChartType = Literal["bar", "line", "pie", "area"]


class ChatMessage(BaseModel):
    id: str
    role: ChatRole
    content: str           # raw text, may embed a chart directive
    timestamp: int         # epoch milliseconds


class ChartDataPoint(BaseModel):
    # Extra series fields are allowed alongside name/value
    model_config = ConfigDict(extra="allow")

    name: str
    value: float = Field(strict=True)

    @field_validator("name", mode="before")
    @classmethod
    def _numeric_name_to_str(cls, v):
        # Models often emit years or ids as bare numbers
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class ChartSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: ChartType
    title: str
    x_axis_label: Optional[str] = Field(default=None, alias="xAxisLabel")
    y_axis_label: Optional[str] = Field(default=None, alias="yAxisLabel")
    data: List[ChartDataPoint]


class DecodedReply(BaseModel):
    prose: str
    chart: Optional[ChartSpec] = None

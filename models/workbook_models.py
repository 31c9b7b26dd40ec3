from typing import Dict, List, Optional, Union
from pydantic import BaseModel, model_validator

# bool first so True/False never collapse into 1/0
CellValue = Union[bool, int, float, str, None]
Row = Dict[str, CellValue]


class Sheet(BaseModel):
    sheet_name: str
    columns: List[str]
    rows: List[Row] = []

    @model_validator(mode="after")
    def _rows_match_columns(self):
        if len(set(self.columns)) != len(self.columns):
            raise ValueError(f"Sheet '{self.sheet_name}' has duplicate column names.")
        for idx, row in enumerate(self.rows):
            if list(row.keys()) != self.columns:
                raise ValueError(
                    f"Row {idx} of sheet '{self.sheet_name}' does not match the sheet columns."
                )
        return self

    @property
    def n_rows(self) -> int:
        return len(self.rows)

    @property
    def n_cols(self) -> int:
        return len(self.columns)


class Workbook(BaseModel):
    file_name: str
    sheets: List[Sheet]

    @model_validator(mode="after")
    def _has_sheets(self):
        if not self.sheets:
            raise ValueError("A workbook needs at least one non-empty sheet.")
        return self

    def get_sheet(self, sheet_name: str) -> Optional[Sheet]:
        for sheet in self.sheets:
            if sheet.sheet_name == sheet_name:
                return sheet
        return None

    @property
    def sheet_names(self) -> List[str]:
        return [s.sheet_name for s in self.sheets]

from typing import Dict, Any

from config import PREVIEW_ROWS
from models.workbook_models import Workbook


def get_preview_rows(workbook: Workbook, sheet_name: str, n_rows: int = PREVIEW_ROWS) -> Dict[str, Any]:
    sheet = workbook.get_sheet(sheet_name)
    if sheet is None:
        raise KeyError(f"Sheet '{sheet_name}' not found in {workbook.file_name}.")
    return {
        "sheet_name": sheet.sheet_name,
        "columns": sheet.columns,
        "total_rows": sheet.n_rows,
        "rows": sheet.rows[:max(n_rows, 0)],
    }

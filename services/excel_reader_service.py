import io
import datetime
import logging
from typing import List, Optional, Tuple

import numpy as np
import openpyxl
import pandas as pd

from models.common_models import SheetInfo
from models.workbook_models import CellValue, Sheet, Workbook
from .cell_format_service import render_number_format
from .errors import EmptyDataError, ParseError

logger = logging.getLogger(__name__)


def _to_display_value(value) -> CellValue:
    """
    Coerce a pandas/openpyxl cell into a display-friendly scalar:
    - missing (NaN / NaT / NA) -> None
    - dates -> 'YYYY-MM-DD' (with ' HH:MM:SS' only when a time part exists)
    - numpy scalars -> python scalars, integral floats -> int
    """
    if value is None or value is pd.NaT or value is pd.NA:
        return None

    if isinstance(value, datetime.datetime):
        if value.time() == datetime.time(0, 0):
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()

    if isinstance(value, (bool, np.bool_)):
        return bool(value)
    if isinstance(value, (int, np.integer)):
        return int(value)
    if isinstance(value, (float, np.floating)):
        value = float(value)
        if np.isnan(value):
            return None
        if np.isinf(value):
            return str(value)
        return int(value) if value.is_integer() else value

    if isinstance(value, str):
        return value
    return str(value)


def _unique_columns(raw_columns) -> List[str]:
    columns: List[str] = []
    for raw in raw_columns:
        base = str(_to_display_value(raw))
        name = base
        n = 0
        while name in columns:
            n += 1
            name = f"{base}.{n}"
        columns.append(name)
    return columns


def _sheet_from_df(sheet_name: str, df: pd.DataFrame) -> Optional[Sheet]:
    """
    Convert one parsed sheet into a Sheet, or None if it holds no data.
    Wholly blank rows and header-less empty columns are dropped first.
    """
    df = df.dropna(how="all")

    # Formatted-but-empty ranges show up as "Unnamed: n" columns.
    # Positional, since raw headers may repeat.
    keep = [
        i for i, col in enumerate(df.columns)
        if not (str(col).startswith("Unnamed:") and df.iloc[:, i].isna().all())
    ]
    df = df.iloc[:, keep]

    if df.empty:
        return None

    columns = _unique_columns(df.columns)
    rows = [
        {col: _to_display_value(v) for col, v in zip(columns, record)}
        for record in df.itertuples(index=False, name=None)
    ]
    return Sheet(sheet_name=sheet_name, columns=columns, rows=rows)


def _display_cell(cell) -> CellValue:
    """The cell as Excel shows it: number_format applied, plain value otherwise."""
    formatted = render_number_format(cell.value, cell.number_format)
    if formatted is not None:
        return formatted
    return _to_display_value(cell.value)


def _read_xlsx_frames(content: bytes) -> List[Tuple[str, pd.DataFrame]]:
    """
    Read every worksheet with openpyxl so cached formula results and number
    formats (currency, percent, dates) survive. First row is the header.
    """
    wb = openpyxl.load_workbook(io.BytesIO(content), data_only=True)
    try:
        frames = []
        for ws in wb.worksheets:
            rows = [[_display_cell(c) for c in row] for row in ws.iter_rows()]
            if not rows:
                frames.append((ws.title, pd.DataFrame()))
                continue
            header = [
                h if h is not None else f"Unnamed: {i}"
                for i, h in enumerate(rows[0])
            ]
            frames.append((ws.title, pd.DataFrame(rows[1:], columns=header, dtype=object)))
        return frames
    finally:
        wb.close()


def _read_frames(content: bytes) -> List[Tuple[str, pd.DataFrame]]:
    # .xlsx/.xlsm are zip containers; anything else goes to pandas (xlrd for .xls)
    if content[:2] == b"PK":
        return _read_xlsx_frames(content)
    with pd.ExcelFile(io.BytesIO(content)) as xls:
        return [(str(name), xls.parse(name)) for name in xls.sheet_names]


def parse_workbook(content: bytes, file_name: str) -> Workbook:
    """
    Decode raw .xlsx/.xls bytes into a Workbook.

    Sheets keep their file order; sheets without data rows are skipped.
    For .xlsx, cells carrying a number format are kept as the formatted
    text ('$1,200.00', '15%'). Raises ParseError for unreadable bytes and
    EmptyDataError when no sheet has data.
    """
    try:
        frames = _read_frames(content)
    except Exception as e:
        logger.warning("Failed to read workbook %r: %s", file_name, e)
        raise ParseError() from e

    sheets: List[Sheet] = []
    for sheet_name, df in frames:
        sheet = _sheet_from_df(sheet_name, df)
        if sheet is None:
            logger.info("Skipping empty sheet %r in %r", sheet_name, file_name)
            continue
        sheets.append(sheet)

    if not sheets:
        raise EmptyDataError()

    logger.info("Parsed %r: %d sheet(s) with data", file_name, len(sheets))
    return Workbook(file_name=file_name, sheets=sheets)


def describe_sheets(workbook: Workbook) -> List[SheetInfo]:
    return [
        SheetInfo(sheet_name=s.sheet_name, n_rows=s.n_rows, n_cols=s.n_cols)
        for s in workbook.sheets
    ]

import io
from typing import Dict, List, Sequence

import pandas as pd

from config import MAX_CONTEXT_ROWS_PER_SHEET
from models.workbook_models import Row, Workbook


def _lf_records(text: str) -> str:
    """Turn CRLF record separators into LF, leaving quoted field contents alone."""
    out = []
    in_quotes = False
    for i, ch in enumerate(text):
        if ch == '"':
            in_quotes = not in_quotes
        elif ch == "\r" and not in_quotes and text[i + 1:i + 2] == "\n":
            continue
        out.append(ch)
    return "".join(out)


def encode_rows(columns: Sequence[str], rows: Sequence[Row]) -> str:
    """
    Render rows as CSV with a header line.

    Minimal quoting: a field is wrapped in double quotes only when it holds
    the delimiter, a quote, or a line break ('\\n' or '\\r'); embedded
    quotes are doubled. Missing values become empty fields.
    """
    df = pd.DataFrame(list(rows), columns=list(columns), dtype=object)
    # The csv writer only quotes line-break characters found in its
    # lineterminator, so write CRLF and convert separators afterwards.
    text = df.to_csv(index=False, lineterminator="\r\n")
    return _lf_records(text).rstrip("\n")


def decode_rows(text: str) -> List[Dict[str, str]]:
    """Inverse of encode_rows; every value comes back as a string."""
    df = pd.read_csv(io.StringIO(text), dtype=str, keep_default_na=False)
    return df.to_dict(orient="records")


def format_workbook_context(workbook: Workbook, max_rows: int = MAX_CONTEXT_ROWS_PER_SHEET) -> str:
    """
    Build the data snapshot embedded in the system prompt.

    Only the first `max_rows` rows of each sheet are included to bound token
    usage, but the true row count is always stated so the model does not
    treat the preview as the full dataset. Every sheet is included so the
    model can spot shared key columns between them.
    """
    parts = [f"File Name: {workbook.file_name}", f"Total Sheets: {len(workbook.sheets)}", ""]

    for index, sheet in enumerate(workbook.sheets, start=1):
        preview = sheet.rows[:max_rows]
        parts.append(f'--- SHEET {index}: "{sheet.sheet_name}" ---')
        parts.append(f"Columns: {', '.join(sheet.columns)}")
        parts.append(f"Total Rows: {sheet.n_rows}")
        parts.append(f"Data Preview (first {len(preview)} of {sheet.n_rows} rows, CSV):")
        parts.append(encode_rows(sheet.columns, preview))
        parts.append("")

    return "\n".join(parts)

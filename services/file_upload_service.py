import os
from fastapi import UploadFile

from .errors import ParseError

ALLOWED_EXTENSIONS = (".xlsx", ".xls")


def read_uploaded_file(file: UploadFile) -> bytes:
    """
    Return the raw bytes of an uploaded Excel file.
    Nothing is written to disk; the workbook only lives in the session.
    """
    ext = os.path.splitext(file.filename or "")[1]
    if ext.lower() not in ALLOWED_EXTENSIONS:
        raise ParseError("Only Excel files (.xlsx, .xls) are supported.")

    content = file.file.read()
    if not content:
        raise ParseError("The uploaded file is empty.")
    return content

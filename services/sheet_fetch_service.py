import logging
import re
from urllib.parse import quote

import requests

from config import (
    FETCH_TIMEOUT_SECONDS,
    GOOGLE_SHEETS_BASE_URL,
    SHEET_EXPORT_FORMAT,
    SHEET_FETCH_RELAY_URL,
)
from models.workbook_models import Workbook
from .errors import FetchError, IdentifierError, ParseError
from .excel_reader_service import parse_workbook

logger = logging.getLogger(__name__)

GOOGLE_SHEET_FILE_NAME = "Google Sheet Data.xlsx"

_SHEET_URL_RE = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")


def extract_sheet_id(value: str) -> str:
    """
    Accept either a bare spreadsheet id or a full Google Sheets URL.

    >>> extract_sheet_id("https://docs.google.com/spreadsheets/d/ABC123/edit#gid=0")
    'ABC123'
    """
    value = (value or "").strip()

    # Already an id: long token, no slashes
    if "/" not in value and len(value) > 20:
        return value

    match = _SHEET_URL_RE.search(value)
    if match:
        return match.group(1)

    raise IdentifierError()


def build_export_url(sheet_id: str, relay_url: str = None) -> str:
    export_url = f"{GOOGLE_SHEETS_BASE_URL.rstrip('/')}/{sheet_id}/export?format={SHEET_EXPORT_FORMAT}"
    relay_url = SHEET_FETCH_RELAY_URL if relay_url is None else relay_url
    if relay_url:
        return f"{relay_url}{quote(export_url, safe='')}"
    return export_url


def fetch_google_sheet(value: str, relay_url: str = None) -> Workbook:
    """
    Download a shared Google Sheet as xlsx and parse it.
    The sheet must be shared as 'Anyone with the link'.
    """
    sheet_id = extract_sheet_id(value)
    url = build_export_url(sheet_id, relay_url)

    try:
        response = requests.get(url, timeout=FETCH_TIMEOUT_SECONDS, allow_redirects=True)
    except requests.RequestException as e:
        logger.error("Google Sheet fetch failed for %s: %s", sheet_id, e)
        raise FetchError() from e

    if not response.ok:
        logger.error(
            "Google Sheet fetch for %s returned HTTP %s: %s",
            sheet_id, response.status_code, response.text[:500],
        )
        raise FetchError(upstream_status=response.status_code)

    try:
        return parse_workbook(response.content, GOOGLE_SHEET_FILE_NAME)
    except ParseError as e:
        # Private sheets answer with an HTML login page instead of xlsx
        raise ParseError(
            "The Google Sheet did not return a readable spreadsheet. "
            "Please check it is shared as 'Anyone with the link'."
        ) from e

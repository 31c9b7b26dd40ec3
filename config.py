import os
from dotenv import load_dotenv

load_dotenv()

GROQ_API_KEY = os.getenv("GROQ_API_KEY")
GROQ_MODEL = os.getenv("GROQ_MODEL", "llama-3.1-8b-instant")
# Lower temperature for more analytical precision
GROQ_TEMPERATURE = float(os.getenv("GROQ_TEMPERATURE", "0.3"))

# Rows per sheet sent to the LLM / shown in the table view
MAX_CONTEXT_ROWS_PER_SHEET = int(os.getenv("MAX_CONTEXT_ROWS_PER_SHEET", "20"))
PREVIEW_ROWS = int(os.getenv("PREVIEW_ROWS", "100"))

# Google Sheets export
GOOGLE_SHEETS_BASE_URL = os.getenv("GOOGLE_SHEETS_BASE_URL", "https://docs.google.com/spreadsheets/d")
SHEET_EXPORT_FORMAT = os.getenv("SHEET_EXPORT_FORMAT", "xlsx")
# Optional pass-through relay, e.g. "https://corsproxy.io/?"
SHEET_FETCH_RELAY_URL = os.getenv("SHEET_FETCH_RELAY_URL", "")
FETCH_TIMEOUT_SECONDS = float(os.getenv("FETCH_TIMEOUT_SECONDS", "30"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Used by the Streamlit frontend
BACKEND_URL = os.getenv("BACKEND_URL", "http://127.0.0.1:8000")

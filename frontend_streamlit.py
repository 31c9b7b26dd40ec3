import base64

import pandas as pd
import requests
import streamlit as st

from config import BACKEND_URL

# ========================
# CONFIG
# ========================
BASE_URL = BACKEND_URL
PREVIEW_ROWS = 100

st.set_page_config(
    page_title="ExcelChat AI",
    layout="wide"
)

# ========================
# STATE VARIABLES
# ========================
if "session_id" not in st.session_state:
    st.session_state.session_id = None

if "sheets" not in st.session_state:
    st.session_state.sheets = []

if "file_name" not in st.session_state:
    st.session_state.file_name = None

# Chat transcript: dicts with role, content and an optional chart image
if "messages" not in st.session_state:
    st.session_state.messages = []

if "chat_error" not in st.session_state:
    st.session_state.chat_error = None


def _error_detail(resp: requests.Response) -> str:
    try:
        return resp.json().get("detail", resp.text)
    except ValueError:
        return resp.text


def _on_loaded(data: dict):
    st.session_state.session_id = data["session_id"]
    st.session_state.sheets = data["sheets"]
    st.session_state.file_name = data["file_name"]
    st.session_state.messages = [{"role": "model", "content": data["greeting"]["content"], "image": None}]


def _reset():
    if st.session_state.session_id:
        requests.post(f"{BASE_URL}/session/{st.session_state.session_id}/reset")
    st.session_state.sheets = []
    st.session_state.file_name = None
    st.session_state.messages = []
    st.session_state.chat_error = None


st.title("ExcelChat AI")

# 1. UPLOAD
if not st.session_state.file_name:
    st.markdown("""
Upload your Excel file (or connect a Google Sheet) and ask questions about it.
The analyst can combine sheets and draw charts when you ask for one.
""")

    upload_tab, sheet_tab = st.tabs(["Upload Excel", "Google Sheet"])

    with upload_tab:
        uploaded_file = st.file_uploader("Upload your Excel file", type=["xlsx", "xls"])
        if uploaded_file is not None and st.button("Analyze File"):
            with st.spinner("Reading workbook..."):
                files = {"file": (uploaded_file.name, uploaded_file.getvalue())}
                form = {"session_id": st.session_state.session_id} if st.session_state.session_id else {}
                resp = requests.post(f"{BASE_URL}/upload/excel", files=files, data=form)

            if resp.status_code != 200:
                st.error(_error_detail(resp))
            else:
                _on_loaded(resp.json())
                st.rerun()

    with sheet_tab:
        sheet_url = st.text_input("Google Sheet URL or ID", placeholder="https://docs.google.com/spreadsheets/d/...")
        st.caption("The sheet must be shared as 'Anyone with the link'.")
        if sheet_url and st.button("Connect Sheet"):
            with st.spinner("Fetching Google Sheet..."):
                payload = {"sheet_url": sheet_url, "session_id": st.session_state.session_id}
                resp = requests.post(f"{BASE_URL}/upload/google-sheet", json=payload)

            if resp.status_code != 200:
                st.error(_error_detail(resp))
            else:
                _on_loaded(resp.json())
                st.rerun()

# 2. DATA VIEW + CHAT
else:
    header_col, reset_col = st.columns([5, 1])
    with header_col:
        st.subheader(st.session_state.file_name)
    with reset_col:
        if st.button("Upload New File"):
            _reset()
            st.rerun()

    data_col, chat_col = st.columns([3, 2])

    with data_col:
        sheet_names = [s["sheet_name"] for s in st.session_state.sheets]
        for tab, sheet_name in zip(st.tabs(sheet_names), sheet_names):
            with tab:
                preview_req = {
                    "session_id": st.session_state.session_id,
                    "sheet_name": sheet_name,
                    "n_rows": PREVIEW_ROWS,
                }
                prev_res = requests.post(f"{BASE_URL}/data/preview", json=preview_req)
                if prev_res.status_code != 200:
                    st.error(_error_detail(prev_res))
                    continue

                preview = prev_res.json()
                st.dataframe(pd.DataFrame(preview["rows"], columns=preview["columns"]), use_container_width=True)
                st.caption(f"Showing {len(preview['rows'])} of {preview['total_rows']} rows")

    with chat_col:
        st.markdown("**AI Analyst**")

        for msg in st.session_state.messages:
            with st.chat_message("user" if msg["role"] == "user" else "assistant"):
                st.markdown(msg["content"])
                if msg.get("image"):
                    st.image(base64.b64decode(msg["image"]), use_container_width=True)

        # Shown once, after the rerun that follows a rejected question
        if st.session_state.chat_error:
            st.error(st.session_state.chat_error)
            st.session_state.chat_error = None

        question = st.chat_input("Ask about your data...")
        if question:
            with st.spinner("Analyzing..."):
                req = {"session_id": st.session_state.session_id, "question": question}
                resp = requests.post(f"{BASE_URL}/chat/ask", json=req)

            # The backend only records the exchange on success, so mirror that
            if resp.status_code != 200:
                st.session_state.chat_error = _error_detail(resp)
            else:
                answer = resp.json()
                st.session_state.messages.append({"role": "user", "content": question, "image": None})
                st.session_state.messages.append({
                    "role": "model",
                    "content": answer["prose"],
                    "image": answer.get("chart_image_base64"),
                })
            st.rerun()

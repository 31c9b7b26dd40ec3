import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import LOG_LEVEL
from routers import chat_router, data_router, session_router, upload_router
from services.errors import DataChatError

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Spreadsheet Chat Analyst",
    description="Chat with an uploaded Excel file or a shared Google Sheet using an LLM analyst.",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(session_router.router)
app.include_router(upload_router.router)
app.include_router(data_router.router)
app.include_router(chat_router.router)


@app.exception_handler(DataChatError)
async def data_chat_error_handler(request: Request, exc: DataChatError):
    # Detail was logged where the error was raised
    logger.info("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/")
async def root():
    return {"message": "Spreadsheet Chat Analyst API is running"}

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .db.mongo import connect, disconnect
from .feature_modules.transcription.errors import TranscriptionError
from .feature_modules.transcription.routes import router as transcription_router
from .feature_modules.history.routes import router as history_router
from .feature_modules.history.store import get_history_repo

logging.basicConfig(level=logging.INFO)


@asynccontextmanager
async def lifespan(app: FastAPI):
    uses_mongo = settings.history_backend.strip().lower() == "mongo"
    if uses_mongo:
        await connect()
    get_history_repo()
    try:
        yield
    finally:
        if uses_mongo:
            await disconnect()


app = FastAPI(title="audioscribe", lifespan=lifespan)

# CORS for the browser client (tighten CORS_ORIGINS in prod)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.cors_origins.split(",") if o.strip()] or ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(TranscriptionError)
async def transcription_error_handler(request: Request, exc: TranscriptionError):
    if exc.category in ("validation", "credential"):
        logging.info("Rejected %s: %s", request.url.path, exc.detail)
    else:
        logging.warning("Transcription failed on %s: %s", request.url.path, exc.detail)
    headers = {}
    retry_after = getattr(exc, "retry_after", None)
    if retry_after is not None:
        headers["Retry-After"] = str(int(retry_after))
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload(), headers=headers)


app.include_router(transcription_router)
app.include_router(history_router)


@app.get("/healthz")
async def healthz():
    return {"ok": True}

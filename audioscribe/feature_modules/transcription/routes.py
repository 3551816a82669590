from datetime import datetime, timezone
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, UploadFile, WebSocket, WebSocketDisconnect

from audioscribe.feature_modules.history.repository import HistoryRepository
from audioscribe.feature_modules.history.store import get_history_repo
from audioscribe.feature_modules.transcription.config import TranscriptionConfig as Cfg
from audioscribe.feature_modules.transcription.errors import EmptyFileError
from audioscribe.feature_modules.transcription.progress import ProgressReporter, progress_hub
from audioscribe.feature_modules.transcription.schemas import HealthResponse, TranscriptionResult
from audioscribe.feature_modules.transcription.services import current_result, transcribe_upload

router = APIRouter(prefix="/api", tags=["transcription"])

def get_provider_transport() -> Optional[httpx.AsyncBaseTransport]:
    """Outbound transport for provider calls; None means the real network."""
    return None

@router.post("/transcribe", response_model=TranscriptionResult)
async def post_transcribe(
    audio: Optional[UploadFile] = File(None, description="Audio file (mp3, wav, m4a; ≤25MB)"),
    provider: Optional[str] = Form(None, description="whisper | gemini; defaults to TRANSCRIBE_PROVIDER"),
    job_id: Optional[str] = Form(None, description="Subscribe to /api/ws/progress/{job_id} for progress"),
    x_api_key: Optional[str] = Header(None, alias="X-Api-Key"),
    history: HistoryRepository = Depends(get_history_repo),
    transport: Optional[httpx.AsyncBaseTransport] = Depends(get_provider_transport),
):
    """
    Upload one audio file and get its transcript back. The result also becomes
    the current result and the newest history entry.
    """
    if audio is None:
        raise EmptyFileError("No audio file provided")
    return await transcribe_upload(
        upload=audio,
        history=history,
        provider=provider,
        api_key=x_api_key,
        progress=ProgressReporter(job_id, progress_hub.publish),
        transport=transport,
    )

@router.get("/transcriptions/current", response_model=TranscriptionResult)
async def get_current():
    result = current_result()
    if result is None:
        raise HTTPException(status_code=404, detail="No transcription yet")
    return result

@router.get("/health", response_model=HealthResponse)
async def health():
    return HealthResponse(
        status="healthy",
        openai=bool(Cfg.openai_api_key()),
        gemini=bool(Cfg.gemini_api_key()),
        timestamp=datetime.now(timezone.utc),
    )

@router.websocket("/ws/progress/{job_id}")
async def progress_ws(websocket: WebSocket, job_id: str):
    """
    Progress events for one upload: {"jobId", "stage", "percent", "detail"}.
    percent is null while a phase cannot be measured. Client may send "ping".
    """
    await progress_hub.connect(job_id, websocket)
    try:
        while True:
            msg = await websocket.receive_text()
            if msg == "ping":
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        await progress_hub.disconnect(job_id, websocket)

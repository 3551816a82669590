from __future__ import annotations
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from audioscribe.feature_modules.transcription.schemas import TranscriptionResult
from .export import bundle_filename, content_disposition, export_filename, render_bundle, render_transcript
from .repository import HistoryRepository
from .services import DateRange, HistoryPage, HistoryQuery, query_history
from .store import get_history_repo

router = APIRouter(prefix="/api/history", tags=["history"])


class IdsBody(BaseModel):
    ids: List[str] = Field(..., min_length=1, description="History entry ids")


def _text_attachment(content: str, filename: str) -> PlainTextResponse:
    return PlainTextResponse(
        content,
        headers={"Content-Disposition": content_disposition(filename)},
    )


@router.get("", response_model=HistoryPage)
async def list_history(
    search: Optional[str] = Query(default=None, description="Matches transcript text or file name"),
    language: str = Query(default="all"),
    date_range: DateRange = Query(default="all"),
    start: Optional[date] = Query(default=None, description="custom range start (inclusive)"),
    end: Optional[date] = Query(default=None, description="custom range end (inclusive)"),
    page: int = Query(default=1, ge=1),
    page_size: int = Query(default=20, ge=1, le=100),
    repo: HistoryRepository = Depends(get_history_repo),
):
    q = HistoryQuery(
        search=search,
        language=language,
        date_range=date_range,
        start=start,
        end=end,
        page=page,
        page_size=page_size,
    )
    return query_history(await repo.list(), q)


@router.delete("")
async def clear_history(repo: HistoryRepository = Depends(get_history_repo)):
    await repo.clear()
    return {"ok": True}


@router.post("/delete")
async def delete_selected(body: IdsBody, repo: HistoryRepository = Depends(get_history_repo)):
    deleted = await repo.remove_many(body.ids)
    return {"ok": True, "deleted": deleted}


@router.post("/export")
async def export_selected(body: IdsBody, repo: HistoryRepository = Depends(get_history_repo)):
    wanted = set(body.ids)
    selected = [i for i in await repo.list() if i.id in wanted]
    if not selected:
        raise HTTPException(status_code=404, detail="No matching transcriptions")
    return _text_attachment(render_bundle(selected), bundle_filename())


@router.get("/{entry_id}", response_model=TranscriptionResult)
async def get_entry(entry_id: str, repo: HistoryRepository = Depends(get_history_repo)):
    entry = await repo.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Transcription not found")
    return entry


@router.delete("/{entry_id}")
async def delete_entry(entry_id: str, repo: HistoryRepository = Depends(get_history_repo)):
    if not await repo.remove(entry_id):
        raise HTTPException(status_code=404, detail="Transcription not found")
    return {"ok": True}


@router.get("/{entry_id}/export")
async def export_entry(entry_id: str, repo: HistoryRepository = Depends(get_history_repo)):
    entry = await repo.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Transcription not found")
    return _text_attachment(render_transcript(entry), export_filename(entry))

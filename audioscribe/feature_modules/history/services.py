from __future__ import annotations
import calendar
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from audioscribe.feature_modules.transcription.schemas import TranscriptionResult

DateRange = Literal["all", "today", "yesterday", "week", "month", "custom"]


class HistoryQuery(BaseModel):
    search: Optional[str] = None
    language: str = "all"
    date_range: DateRange = "all"
    start: Optional[date] = None
    end: Optional[date] = None
    page: int = Field(1, ge=1)
    page_size: int = Field(20, ge=1, le=100)


class HistoryPage(BaseModel):
    items: List[TranscriptionResult]
    total: int
    page: int
    page_size: int
    pages: int
    # every language present in the unfiltered history, for the filter picker
    languages: List[str]


def _start_of_day(d: date) -> datetime:
    return datetime.combine(d, time.min, tzinfo=timezone.utc)


def _month_before(d: date) -> date:
    year, month = (d.year, d.month - 1) if d.month > 1 else (d.year - 1, 12)
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def _in_range(ts: datetime, q: HistoryQuery, today: date) -> bool:
    start_today = _start_of_day(today)
    if q.date_range == "today":
        return ts >= start_today
    if q.date_range == "yesterday":
        return start_today - timedelta(days=1) <= ts < start_today
    if q.date_range == "week":
        return ts >= start_today - timedelta(days=7)
    if q.date_range == "month":
        return ts >= _start_of_day(_month_before(today))
    if q.date_range == "custom":
        if q.start and ts < _start_of_day(q.start):
            return False
        if q.end and ts > datetime.combine(q.end, time.max, tzinfo=timezone.utc):
            return False
    return True


def filter_history(
    items: List[TranscriptionResult],
    q: HistoryQuery,
    now: Optional[datetime] = None,
) -> List[TranscriptionResult]:
    """Day boundaries are UTC."""
    today = (now or datetime.now(timezone.utc)).astimezone(timezone.utc).date()
    out = items
    if q.search:
        needle = q.search.lower()
        out = [i for i in out if needle in i.text.lower() or needle in i.file_name.lower()]
    if q.language and q.language != "all":
        out = [i for i in out if i.language == q.language]
    if q.date_range != "all":
        out = [i for i in out if _in_range(i.timestamp, q, today)]
    return out


def paginate(items: List[TranscriptionResult], q: HistoryQuery, languages: List[str]) -> HistoryPage:
    total = len(items)
    start = (q.page - 1) * q.page_size
    return HistoryPage(
        items=items[start:start + q.page_size],
        total=total,
        page=q.page,
        page_size=q.page_size,
        pages=max(1, math.ceil(total / q.page_size)),
        languages=languages,
    )


def query_history(
    items: List[TranscriptionResult],
    q: HistoryQuery,
    now: Optional[datetime] = None,
) -> HistoryPage:
    languages = sorted({i.language for i in items if i.language})
    return paginate(filter_history(items, q, now), q, languages)

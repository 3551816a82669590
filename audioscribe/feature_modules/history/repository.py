from __future__ import annotations
"""
repository.py: the history contract shared by every backend.

History is one newest-first list of TranscriptionResult, capped at `cap`
entries, with unique ids. Backends only know how to load and save the whole
list (the same single-key layout the browser kept in localStorage); the cap
and the id rule live here so every backend enforces them the same way.
"""

import asyncio
from typing import Any, Dict, Iterable, List, Optional

from audioscribe.feature_modules.transcription.schemas import TranscriptionResult


def push_entry(items: List[TranscriptionResult], entry: TranscriptionResult, cap: int) -> List[TranscriptionResult]:
    """New entry goes first; an older entry with the same id is dropped; oldest fall off past cap."""
    out = [entry] + [i for i in items if i.id != entry.id]
    return out[: max(cap, 0)]


def to_record(entry: TranscriptionResult) -> Dict[str, Any]:
    return entry.model_dump(mode="json", by_alias=True)


def from_record(record: Dict[str, Any]) -> TranscriptionResult:
    return TranscriptionResult.model_validate(record)


class HistoryRepository:
    def __init__(self, cap: int) -> None:
        self.cap = cap
        # Serializes read-modify-write within this process only
        self._lock = asyncio.Lock()

    async def _load(self) -> List[TranscriptionResult]:
        raise NotImplementedError

    async def _save(self, items: List[TranscriptionResult]) -> None:
        raise NotImplementedError

    async def list(self) -> List[TranscriptionResult]:
        return await self._load()

    async def get(self, entry_id: str) -> Optional[TranscriptionResult]:
        for item in await self._load():
            if item.id == entry_id:
                return item
        return None

    async def append(self, entry: TranscriptionResult) -> List[TranscriptionResult]:
        async with self._lock:
            items = push_entry(await self._load(), entry, self.cap)
            await self._save(items)
            return items

    async def remove(self, entry_id: str) -> bool:
        return await self.remove_many([entry_id]) > 0

    async def remove_many(self, entry_ids: Iterable[str]) -> int:
        doomed = set(entry_ids)
        async with self._lock:
            items = await self._load()
            kept = [i for i in items if i.id not in doomed]
            removed = len(items) - len(kept)
            if removed:
                await self._save(kept)
            return removed

    async def clear(self) -> None:
        async with self._lock:
            await self._save([])

from __future__ import annotations
from typing import List

from audioscribe.feature_modules.transcription.schemas import TranscriptionResult
from ..repository import HistoryRepository


class InMemoryHistoryRepository(HistoryRepository):
    """Process-local history; used by tests and HISTORY_BACKEND=memory."""

    def __init__(self, cap: int) -> None:
        super().__init__(cap)
        self._items: List[TranscriptionResult] = []

    async def _load(self) -> List[TranscriptionResult]:
        return list(self._items)

    async def _save(self, items: List[TranscriptionResult]) -> None:
        self._items = list(items)

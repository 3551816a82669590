from __future__ import annotations
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from audioscribe.db.mongo import get_db
from audioscribe.feature_modules.transcription.schemas import TranscriptionResult
from ..repository import HistoryRepository, from_record, to_record


class MongoHistoryRepository(HistoryRepository):
    """
    One document per storage key in the `history` collection:
      {_id: "<HISTORY_KEY>", items: [<record>, ...], updated_at: datetime}
    Records keep the JSON shape (ISO timestamps, camelCase keys).
    """

    def __init__(self, key: str, cap: int) -> None:
        super().__init__(cap)
        self.key = key

    async def _load(self) -> List[TranscriptionResult]:
        db = get_db()
        doc: Optional[Dict[str, Any]] = await db.history.find_one({"_id": self.key})
        if not doc:
            return []
        out: List[TranscriptionResult] = []
        for record in doc.get("items") or []:
            try:
                out.append(from_record(record))
            except ValidationError:
                logging.warning("Skipping malformed history entry under key %s", self.key)
        return out

    async def _save(self, items: List[TranscriptionResult]) -> None:
        db = get_db()
        await db.history.update_one(
            {"_id": self.key},
            {
                "$set": {
                    "items": [to_record(i) for i in items],
                    "updated_at": datetime.now(timezone.utc),
                }
            },
            upsert=True,
        )

    async def clear(self) -> None:
        async with self._lock:
            db = get_db()
            await db.history.delete_one({"_id": self.key})

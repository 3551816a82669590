from __future__ import annotations
import json
import logging
import os
from pathlib import Path
from typing import List

from pydantic import ValidationError

from audioscribe.feature_modules.transcription.schemas import TranscriptionResult
from ..repository import HistoryRepository, from_record, to_record


class JsonFileHistoryRepository(HistoryRepository):
    """
    History kept as one JSON array in a file, newest first:
      [{"id": ..., "fileName": ..., "text": ..., "timestamp": "<ISO-8601>", ...}, ...]
    """

    def __init__(self, path: str | Path, cap: int) -> None:
        super().__init__(cap)
        self.path = Path(path)

    async def _load(self) -> List[TranscriptionResult]:
        if not self.path.exists():
            return []
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            logging.exception("Error loading history from %s", self.path)
            return []
        if not isinstance(raw, list):
            logging.error("History file %s does not hold a JSON array; ignoring it", self.path)
            return []

        out: List[TranscriptionResult] = []
        for record in raw:
            try:
                out.append(from_record(record))
            except ValidationError:
                logging.warning("Skipping malformed history entry in %s", self.path)
        return out

    async def _save(self, items: List[TranscriptionResult]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        payload = [to_record(i) for i in items]
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    async def clear(self) -> None:
        async with self._lock:
            try:
                self.path.unlink()
            except FileNotFoundError:
                pass

from __future__ import annotations
import asyncio
import logging
from dataclasses import asdict, dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from fastapi import WebSocket

log = logging.getLogger(__name__)

# Coarse milestones per phase; byte-level upload progress fills the gap
# between UPLOADING and TRANSCRIBING when the transport can report it.
READING = ("reading", 20)
UPLOADING = ("uploading", 40)
TRANSCRIBING = ("transcribing", 70)
DECODING = ("decoding", 90)
COMPLETE = ("complete", 100)


@dataclass(frozen=True)
class ProgressEvent:
    job_id: Optional[str]
    stage: str
    # None = indeterminate
    percent: Optional[int]
    detail: Optional[str] = None

    def to_json(self) -> Dict[str, Any]:
        data = asdict(self)
        data["jobId"] = data.pop("job_id")
        return data


ProgressCallback = Callable[[ProgressEvent], Awaitable[None]]


class ProgressReporter:
    """Turns pipeline phases into ProgressEvents for one job."""

    def __init__(self, job_id: Optional[str] = None, callback: Optional[ProgressCallback] = None):
        self.job_id = job_id
        self._callback = callback

    async def emit(self, stage: str, percent: Optional[int], detail: Optional[str] = None) -> None:
        if self._callback is None:
            return
        await self._callback(ProgressEvent(self.job_id, stage, percent, detail))

    async def milestone(self, phase: tuple) -> None:
        stage, percent = phase
        await self.emit(stage, percent)

    async def indeterminate(self, phase: tuple) -> None:
        await self.emit(phase[0], None)

    async def upload_bytes(self, sent: int, total: int) -> None:
        # Map bytes sent onto the UPLOADING..TRANSCRIBING span
        lo, hi = UPLOADING[1], TRANSCRIBING[1]
        fraction = (sent / total) if total else 1.0
        await self.emit(UPLOADING[0], lo + int((hi - lo) * min(fraction, 1.0)))

    async def failed(self, detail: str) -> None:
        await self.emit("error", None, detail)


class ProgressHub:
    """WebSocket fan-out of progress events, keyed by job id."""

    def __init__(self) -> None:
        self.connections: Dict[str, Set[WebSocket]] = {}
        self._lock = asyncio.Lock()

    async def connect(self, job_id: str, ws: WebSocket) -> None:
        await ws.accept()
        async with self._lock:
            if job_id not in self.connections:
                self.connections[job_id] = set()
            self.connections[job_id].add(ws)

    async def disconnect(self, job_id: str, ws: WebSocket) -> None:
        async with self._lock:
            conns = self.connections.get(job_id)
            if conns and ws in conns:
                conns.remove(ws)
            if conns is not None and len(conns) == 0:
                self.connections.pop(job_id, None)
        try:
            await ws.close()
        except RuntimeError:
            # already closed by the client
            pass

    async def publish(self, event: ProgressEvent) -> None:
        if not event.job_id:
            return
        async with self._lock:
            targets = list(self.connections.get(event.job_id, []))
        for ws in targets:
            try:
                await ws.send_json(event.to_json())
            except Exception:
                log.debug("progress socket for job %s dropped", event.job_id)
                await self.disconnect(event.job_id, ws)


progress_hub = ProgressHub()

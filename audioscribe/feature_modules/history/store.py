from __future__ import annotations
from typing import Optional

from audioscribe.config import settings
from .repository import HistoryRepository

_repo: Optional[HistoryRepository] = None


def build_history_repo(backend: Optional[str] = None) -> HistoryRepository:
    backend = (backend or settings.history_backend or "json").strip().lower()
    cap = settings.history_cap
    if backend == "mongo":
        from .backends.mongo_store import MongoHistoryRepository
        return MongoHistoryRepository(settings.history_key, cap)
    if backend == "memory":
        from .backends.memory_store import InMemoryHistoryRepository
        return InMemoryHistoryRepository(cap)
    if backend == "json":
        from .backends.json_store import JsonFileHistoryRepository
        return JsonFileHistoryRepository(settings.history_path, cap)
    raise ValueError(f"Unknown HISTORY_BACKEND: {backend}")


def get_history_repo() -> HistoryRepository:
    """FastAPI dependency; tests override it with an in-memory repo."""
    global _repo
    if _repo is None:
        _repo = build_history_repo()
    return _repo


def set_history_repo(repo: Optional[HistoryRepository]) -> None:
    global _repo
    _repo = repo

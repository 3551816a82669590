import json
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest import IsolatedAsyncioTestCase, TestCase

from audioscribe.feature_modules.history.backends.json_store import JsonFileHistoryRepository
from audioscribe.feature_modules.history.backends.memory_store import InMemoryHistoryRepository
from audioscribe.feature_modules.history.repository import push_entry
from audioscribe.feature_modules.transcription.schemas import TranscriptionResult

T0 = datetime(2026, 10, 1, 8, 30, tzinfo=timezone.utc)


def _result(i: int, **kw) -> TranscriptionResult:
    base = dict(
        id=f"id-{i}",
        file_name=f"call-{i}.mp3",
        text=f"transcript {i}",
        timestamp=T0 + timedelta(minutes=i),
        language="English",
    )
    base.update(kw)
    return TranscriptionResult(**base)


class PushEntryTests(TestCase):
    def test_newest_first_and_cap(self):
        items = []
        for i in range(4):
            items = push_entry(items, _result(i), cap=3)
        self.assertEqual([i.id for i in items], ["id-3", "id-2", "id-1"])

    def test_duplicate_id_moves_to_front(self):
        items = [_result(2), _result(1), _result(0)]
        replacement = _result(1, text="edited")
        out = push_entry(items, replacement, cap=3)
        self.assertEqual([i.id for i in out], ["id-1", "id-2", "id-0"])
        self.assertEqual(out[0].text, "edited")
        self.assertEqual(len(out), 3)


class ResultModelTests(TestCase):
    def test_blank_text_is_not_a_result(self):
        with self.assertRaises(ValueError):
            TranscriptionResult(file_name="a.mp3", text="  ")

    def test_camel_case_json(self):
        data = _result(1, audio_url="blob:x", duration=2.0).model_dump(mode="json", by_alias=True)
        self.assertEqual(data["fileName"], "call-1.mp3")
        self.assertEqual(data["audioUrl"], "blob:x")
        self.assertEqual(data["timestamp"], "2026-10-01T08:31:00Z")

    def test_naive_timestamp_treated_as_utc(self):
        r = TranscriptionResult.model_validate(
            {"id": "x", "fileName": "a.wav", "text": "hi", "timestamp": "2026-10-01T08:30:00"}
        )
        self.assertEqual(r.timestamp, T0)


class _RepoContract:
    """Behaviour every backend must share."""

    def make_repo(self, cap: int):
        raise NotImplementedError

    async def test_cap_evicts_exactly_the_oldest(self):
        repo = self.make_repo(cap=3)
        for i in range(3):
            await repo.append(_result(i))
        await repo.append(_result(3))
        items = await repo.list()
        self.assertEqual([i.id for i in items], ["id-3", "id-2", "id-1"])

    async def test_duplicate_id_replaced_not_duplicated(self):
        repo = self.make_repo(cap=5)
        await repo.append(_result(0))
        await repo.append(_result(1))
        await repo.append(_result(0, text="again"))
        items = await repo.list()
        self.assertEqual([i.id for i in items], ["id-0", "id-1"])
        self.assertEqual(items[0].text, "again")

    async def test_remove_only_that_entry(self):
        repo = self.make_repo(cap=5)
        for i in range(3):
            await repo.append(_result(i))
        self.assertTrue(await repo.remove("id-1"))
        self.assertFalse(await repo.remove("id-1"))
        self.assertEqual([i.id for i in await repo.list()], ["id-2", "id-0"])

    async def test_remove_many_and_get(self):
        repo = self.make_repo(cap=5)
        for i in range(4):
            await repo.append(_result(i))
        self.assertEqual(await repo.remove_many(["id-0", "id-3", "nope"]), 2)
        self.assertIsNone(await repo.get("id-0"))
        self.assertEqual((await repo.get("id-2")).file_name, "call-2.mp3")

    async def test_clear_empties(self):
        repo = self.make_repo(cap=5)
        await repo.append(_result(0))
        await repo.clear()
        self.assertEqual(await repo.list(), [])
        await repo.clear()


class InMemoryHistoryTests(_RepoContract, IsolatedAsyncioTestCase):
    def make_repo(self, cap: int):
        return InMemoryHistoryRepository(cap)


class JsonFileHistoryTests(_RepoContract, IsolatedAsyncioTestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "nested" / "history.json"

    def tearDown(self):
        self._tmp.cleanup()

    def make_repo(self, cap: int):
        return JsonFileHistoryRepository(self.path, cap)

    async def test_round_trip_after_reload(self):
        repo = self.make_repo(cap=10)
        stored = _result(7, text="สวัสดีครับ ยินดีต้อนรับ", language="Thai", duration=12.4)
        await repo.append(stored)

        # a fresh instance re-parses the persisted JSON
        reloaded = (await self.make_repo(cap=10).list())[0]
        self.assertEqual(reloaded.text, stored.text)
        self.assertEqual(reloaded.file_name, stored.file_name)
        self.assertEqual(reloaded.language, "Thai")
        self.assertEqual(reloaded.timestamp, stored.timestamp)
        self.assertEqual(reloaded, stored)

    async def test_file_is_a_json_array_with_iso_timestamps(self):
        repo = self.make_repo(cap=10)
        await repo.append(_result(1))
        raw = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertIsInstance(raw, list)
        self.assertEqual(raw[0]["fileName"], "call-1.mp3")
        self.assertEqual(raw[0]["timestamp"], "2026-10-01T08:31:00Z")

    async def test_clear_removes_file(self):
        repo = self.make_repo(cap=10)
        await repo.append(_result(1))
        await repo.clear()
        self.assertFalse(self.path.exists())

    async def test_corrupt_file_reads_as_empty(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("{not json", encoding="utf-8")
        with self.assertLogs(level="ERROR"):
            self.assertEqual(await self.make_repo(cap=10).list(), [])

    async def test_malformed_entries_skipped(self):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        good = _result(1).model_dump(mode="json", by_alias=True)
        self.path.write_text(json.dumps([good, {"id": "bad", "text": ""}]), encoding="utf-8")
        items = await self.make_repo(cap=10).list()
        self.assertEqual([i.id for i in items], ["id-1"])

import base64
import json
import os
import tempfile
from unittest import IsolatedAsyncioTestCase

import httpx

from audioscribe.feature_modules.transcription.adapters.gemini import transcribe_gemini
from audioscribe.feature_modules.transcription.adapters.openai_whisper import transcribe_whisper
from audioscribe.feature_modules.transcription.errors import (
    EmptyTranscriptError,
    InvalidCredentialError,
    PayloadTooLargeError,
    ProviderConnectionError,
    ProviderError,
    RateLimitedError,
)
from audioscribe.feature_modules.transcription.progress import ProgressReporter


class _Recorder:
    def __init__(self):
        self.events = []

    async def __call__(self, event):
        self.events.append((event.stage, event.percent))


def _gemini_ok(text="สวัสดีครับ"):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


class GeminiAdapterTests(IsolatedAsyncioTestCase):
    async def _call(self, handler, audio=b"ID3-fake-mp3", recorder=None):
        return await transcribe_gemini(
            audio_bytes=audio,
            mime_type="audio/mp3",
            api_key="gm-key",
            progress=ProgressReporter("job-1", recorder),
            transport=httpx.MockTransport(handler),
        )

    async def test_request_shape_and_success(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = request.url
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=_gemini_ok())

        recorder = _Recorder()
        t = await self._call(handler, recorder=recorder)

        self.assertEqual(t.text, "สวัสดีครับ")
        self.assertEqual(seen["url"].params["key"], "gm-key")
        self.assertTrue(seen["url"].path.endswith(":generateContent"))
        parts = seen["body"]["contents"][0]["parts"]
        self.assertIn("transcribe", parts[0]["text"])
        self.assertEqual(parts[1]["inline_data"]["mime_type"], "audio/mp3")
        self.assertEqual(base64.b64decode(parts[1]["inline_data"]["data"]), b"ID3-fake-mp3")
        self.assertEqual(recorder.events, [("uploading", 70), ("transcribing", 70), ("decoding", 90)])

    async def test_byte_progress_over_several_chunks(self):
        recorder = _Recorder()
        await self._call(lambda r: httpx.Response(200, json=_gemini_ok()), audio=b"a" * 200_000, recorder=recorder)
        uploads = [p for stage, p in recorder.events if stage == "uploading"]
        self.assertGreater(len(uploads), 1)
        self.assertEqual(uploads, sorted(uploads))
        self.assertEqual(uploads[-1], 70)
        self.assertTrue(all(40 <= p <= 70 for p in uploads))

    async def test_status_errors(self):
        cases = [
            (401, InvalidCredentialError),
            (403, InvalidCredentialError),
            (429, RateLimitedError),
            (413, PayloadTooLargeError),
            (500, ProviderError),
        ]
        for status, exc in cases:
            with self.subTest(status=status):
                with self.assertRaises(exc):
                    await self._call(lambda r, s=status: httpx.Response(s, json={"error": {"message": "nope"}}))

    async def test_2xx_without_text_is_content_failure(self):
        with self.assertRaises(EmptyTranscriptError):
            await self._call(lambda r: httpx.Response(200, json={"candidates": []}))
        with self.assertRaises(EmptyTranscriptError):
            await self._call(lambda r: httpx.Response(200, text="not json"))

    async def test_network_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with self.assertRaises(ProviderConnectionError):
            await self._call(handler)


class WhisperAdapterTests(IsolatedAsyncioTestCase):
    def setUp(self):
        fd, self.path = tempfile.mkstemp(suffix=".mp3")
        with os.fdopen(fd, "wb") as f:
            f.write(b"ID3-fake-mp3")

    def tearDown(self):
        os.remove(self.path)

    async def _call(self, handler, recorder=None):
        return await transcribe_whisper(
            audio_path=self.path,
            api_key="sk-key",
            progress=ProgressReporter("job-2", recorder),
            transport=httpx.MockTransport(handler),
        )

    async def test_multipart_request_and_verbose_json(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers.get("authorization")
            seen["ctype"] = request.headers.get("content-type", "")
            seen["body"] = request.content
            return httpx.Response(200, json={"text": "Hello there", "language": "english", "duration": 4.2})

        recorder = _Recorder()
        t = await self._call(handler, recorder)

        self.assertEqual(t.text, "Hello there")
        self.assertEqual(t.language, "english")
        self.assertEqual(t.duration, 4.2)
        self.assertEqual(t.engine, "whisper-1")
        self.assertTrue(seen["path"].endswith("/audio/transcriptions"))
        self.assertEqual(seen["auth"], "Bearer sk-key")
        self.assertTrue(seen["ctype"].startswith("multipart/form-data"))
        self.assertIn(b"whisper-1", seen["body"])
        self.assertIn(b"verbose_json", seen["body"])
        self.assertIn(b"ID3-fake-mp3", seen["body"])
        # SDK multipart upload cannot be measured
        self.assertEqual(recorder.events[0], ("uploading", None))

    async def test_status_errors_without_retry(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(429, json={"error": {"message": "slow down"}})

        with self.assertRaises(RateLimitedError):
            await self._call(handler)
        self.assertEqual(len(calls), 1)

        with self.assertRaises(InvalidCredentialError):
            await self._call(lambda r: httpx.Response(401, json={"error": {"message": "Incorrect API key"}}))

        with self.assertRaises(ProviderError) as ctx:
            await self._call(lambda r: httpx.Response(400, json={"error": {"message": "Invalid file format"}}))
        self.assertIn("Invalid file format", ctx.exception.detail)
        self.assertEqual(ctx.exception.provider_status, 400)

    async def test_empty_text(self):
        with self.assertRaises(EmptyTranscriptError):
            await self._call(lambda r: httpx.Response(200, json={"text": "", "language": "english"}))

    async def test_connection_error(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with self.assertRaises(ProviderConnectionError):
            await self._call(handler)

import os
import tempfile

# Minimal env so pydantic Settings loads predictably during imports
os.environ.setdefault("HISTORY_BACKEND", "memory")
os.environ.setdefault("HISTORY_CAP", "100")
os.environ.setdefault("OPENAI_API_KEY", "sk-test")
os.environ.setdefault("GEMINI_API_KEY", "gm-test")
os.environ.setdefault("TEMP_DIR", tempfile.mkdtemp(prefix="audioscribe-test-"))
os.environ.setdefault("TRANSCRIBE_FALLBACK_PROVIDERS", "")

import logging
import os
import shutil
import subprocess
import wave
from typing import Optional

def _ffprobe_bin() -> Optional[str]:
    exe = os.getenv("FFPROBE_BIN", "ffprobe")
    return exe if shutil.which(exe) else None

def _wav_duration(path: str) -> Optional[float]:
    try:
        with wave.open(path, "rb") as w:
            rate = w.getframerate()
            return w.getnframes() / float(rate) if rate else None
    except (wave.Error, EOFError, OSError):
        return None

def probe_duration(path: str) -> Optional[float]:
    """
    Seconds of audio in `path`, or None when it cannot be read.
    Used only when the provider does not report a duration itself.
    WAV is read in-process; other formats need ffprobe on PATH (or FFPROBE_BIN).
    """
    if path.lower().endswith(".wav"):
        dur = _wav_duration(path)
        if dur is not None:
            return dur

    exe = _ffprobe_bin()
    if not exe:
        return None
    try:
        proc = subprocess.run(
            [
                exe, "-v", "error",
                "-show_entries", "format=duration",
                "-of", "default=noprint_wrappers=1:nokey=1",
                path,
            ],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            timeout=30,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logging.info("ffprobe timed out on %s", path)
        return None
    if proc.returncode != 0:
        err = (proc.stderr or b"").decode(errors="ignore")[:200]
        logging.info("ffprobe could not read duration of %s: %s", path, err)
        return None
    try:
        return float(proc.stdout.decode().strip())
    except ValueError:
        return None

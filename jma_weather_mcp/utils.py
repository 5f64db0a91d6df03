import logging
import time
import uuid
from datetime import datetime
from typing import Optional
from pythonjsonlogger import jsonlogger

# ---------- logger JSON ----------
# StreamHandler writes to stderr; stdout is owned by the MCP stdio transport.
logger = logging.getLogger("jma_weather_mcp")
_handler = logging.StreamHandler()
_formatter = jsonlogger.JsonFormatter("%(levelname)s %(message)s %(asctime)s %(name)s")
_handler.setFormatter(_formatter)
logger.setLevel(logging.INFO)
logger.addHandler(_handler)


def new_request_id() -> str:
    return uuid.uuid4().hex


class Timer:
    def __enter__(self):
        self.t0 = time.perf_counter()
        return self

    def __exit__(self, *_):
        self.elapsed_ms = (time.perf_counter() - self.t0) * 1000.0


# ---------- time helpers ----------
def parse_jma_datetime(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a JMA ISO-8601 timestamp (e.g. "2024-01-15T11:00:00+09:00").
    The offset is kept, so .hour / .date() are the local (JST) values.
    Returns None for empty or unparsable input.
    """
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None


# ---------- string/bytes helpers ----------
def blank_to_none(value) -> Optional[str]:
    """JMA uses "" (and sometimes a missing index) for "no data"."""
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def safe_truncate_bytes(s: str, limit_bytes: int) -> str:
    """
    Truncate string based on byte limit (UTF-8) to avoid cutting in the middle of multi-byte char.
    """
    raw = s.encode("utf-8")
    if len(raw) <= limit_bytes:
        return s
    trimmed = raw[:limit_bytes]
    # drop trailing bytes until the tail decodes cleanly
    while True:
        try:
            return trimmed.decode("utf-8", errors="strict")
        except UnicodeDecodeError:
            trimmed = trimmed[:-1]
            if not trimmed:
                return ""

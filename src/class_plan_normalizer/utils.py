"""Utility functions."""
import re
from typing import Optional


_MMSS_RE = re.compile(r"^\s*(\d+):(\d{1,2})\s*$")
_MIN_SEC_RE = re.compile(r"(\d+)\s*m(?:in(?:ute)?s?)?\s*(\d+)\s*s(?:ec(?:ond)?s?)?\b", re.IGNORECASE)
_MINUTES_RE = re.compile(r"(\d+)\s*m(?:in(?:ute)?s?)?\b", re.IGNORECASE)
_SECONDS_RE = re.compile(r"(\d+)\s*s(?:ec(?:ond)?s?)?\b", re.IGNORECASE)


def to_int(s) -> Optional[int]:
    """Convert a string or number to int, returning None if conversion fails."""
    try:
        return int(float(s)) if s is not None else None
    except Exception:
        return None


def parse_duration(text: Optional[str], default_sec: int = 300) -> int:
    """Parse a human duration string into seconds.

    Accepted forms, tried in order:
      - "m:ss"      → minutes and seconds ("5:00", "0:45")
      - "Xm Ys"     → "2m 30s", "2 min 30 sec"
      - "Xm"        → "5m", "5 min", "10 minutes"
      - "Xs"        → "45s", "90 sec"

    Anything else returns ``default_sec``.
    """
    if text is None:
        return default_sec
    value = str(text).strip()

    m = _MMSS_RE.match(value)
    if m:
        return int(m.group(1)) * 60 + int(m.group(2))

    m = _MIN_SEC_RE.search(value)
    if m:
        return int(m.group(1)) * 60 + int(m.group(2))

    m = _MINUTES_RE.search(value)
    if m:
        return int(m.group(1)) * 60

    m = _SECONDS_RE.search(value)
    if m:
        return int(m.group(1))

    return default_sec


def format_mmss(seconds: int) -> str:
    """Render seconds as "m:ss" (e.g. 90 → "1:30")."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def round_to_step(value: float, step: int) -> int:
    """Round half-up to the nearest multiple of ``step``."""
    return int((value + step / 2) // step) * step

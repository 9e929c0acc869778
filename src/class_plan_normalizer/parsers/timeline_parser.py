"""
Timeline Item Parser

Parses one content line into (duration_sec?, label, is_rest). Supported
dialects, tried in order:

    30s | Jumping Jacks        time first, pipe separator
    0:45 | Plank               m:ss time first
    30s - Jumping Jacks        time first, dash separator (unit required)
    Jumping Jacks - 30s        time last
    Jumping Jacks              bare label, no duration
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional

from .base import (
    GrammarRule,
    LEADING_BULLET_PATTERN,
    MMSS_TOKEN,
    SECONDS_UNIT,
    first_match,
    time_token_to_seconds,
)

logger = logging.getLogger(__name__)

REST_PATTERN = re.compile(r'rest|transition|break', re.IGNORECASE)

METADATA_PATTERNS = (
    re.compile(
        r'^(DURATION|TIME|TOTAL|EQUIPMENT|NOTES?|INSTRUCTIONS?|SETUP|RPE|INTENSITY|LEVEL|'
        r'DIFFICULTY|REPEAT|ROUNDS?|SETS?|INSTRUCTOR|TEACHER|COACH|DATE|CLASS|LOCATION|'
        r'FORMAT|PATTERN|STRUCTURE)\s*:',
        re.IGNORECASE,
    ),
    re.compile(r'^\d+\s*(MIN|MINS|MINUTES|SEC|SECS|SECONDS)\s*$', re.IGNORECASE),
    re.compile(r'^\d{1,2}:\d{2}$'),
    re.compile(r'^(FITNESS\s+)?(CLASS|WORKOUT)\s+PLAN\b', re.IGNORECASE),
    re.compile(r'^\d{1,2}/\d{1,2}/\d{2,4}'),
    re.compile(r'^\d{4}-\d{2}-\d{2}'),
)


@dataclass(frozen=True)
class TimelineItem:
    """A parsed content line. ``duration_sec`` is None when the line carried no time."""
    duration_sec: Optional[int]
    label: str
    is_rest: bool

    @classmethod
    def create(cls, label: str, duration_sec: Optional[int] = None) -> "TimelineItem":
        label = label.strip()
        return cls(duration_sec=duration_sec, label=label, is_rest=bool(REST_PATTERN.search(label)))

    @property
    def is_timed(self) -> bool:
        return self.duration_sec is not None

    def to_canonical(self) -> str:
        if self.is_timed:
            return f"- {self.duration_sec}s | {self.label}"
        return f"- {self.label}"


def _timed(match: re.Match) -> Optional[TimelineItem]:
    label = match.group("label").strip()
    if not label:
        return None
    seconds = time_token_to_seconds(match.group("time"))
    return TimelineItem.create(label, seconds if seconds > 0 else None)


TIMELINE_RULES = [
    GrammarRule(
        "time_pipe_label",
        re.compile(rf'^(?P<time>{MMSS_TOKEN}|\d+\s*{SECONDS_UNIT}?)\s*\|\s*(?P<label>.+)$', re.IGNORECASE),
        _timed,
    ),
    GrammarRule(
        "time_dash_label",
        re.compile(rf'^(?P<time>{MMSS_TOKEN}|\d+\s*{SECONDS_UNIT})\s*[-–]\s*(?P<label>.+)$', re.IGNORECASE),
        _timed,
    ),
    GrammarRule(
        "label_dash_time",
        re.compile(rf'^(?P<label>.+?)\s*[-–]\s*(?P<time>{MMSS_TOKEN}|\d+\s*{SECONDS_UNIT})\s*$', re.IGNORECASE),
        _timed,
    ),
]


def strip_bullet(line: str) -> str:
    return LEADING_BULLET_PATTERN.sub("", line, count=1).strip()


def is_metadata_line(line: str) -> bool:
    """True for lines that describe the plan rather than a timeline entry."""
    text = strip_bullet(line)
    return any(pattern.search(text) for pattern in METADATA_PATTERNS)


def is_timed_entry(line: str) -> bool:
    """True when the line carries an explicit time in one of the timed dialects."""
    return first_match(TIMELINE_RULES, strip_bullet(line)) is not None


def parse_timeline_item(line: str) -> Optional[TimelineItem]:
    """
    Parse a single content line.

    Returns None for blank lines and metadata lines.
    """
    text = strip_bullet(line or "")
    if not text or is_metadata_line(text):
        return None

    hit = first_match(TIMELINE_RULES, text)
    if hit is not None:
        rule_name, item = hit
        logger.debug(f"[timeline] {rule_name}: {text!r} -> {item.duration_sec}s")
        return item

    return TimelineItem.create(text)

"""
Grammar Rules

Ordered (pattern -> extractor) tables shared by the header and timeline
parsers. Each dialect is one rule; the first rule whose pattern matches and
whose extractor returns a value wins.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Pattern, Sequence, Tuple, TypeVar

T = TypeVar("T")

# Time tokens
MMSS_TOKEN = r'\d{1,3}:\d{2}'
SECONDS_UNIT = r'(?:s|secs?|seconds?)'

MMSS_PATTERN = re.compile(r'(\d{1,2}:\d{2})')
UNIT_DURATION_PATTERN = re.compile(r'(\d+)\s*(minutes|min|seconds|sec|m|s)\b', re.IGNORECASE)
LEADING_BULLET_PATTERN = re.compile(r'^\s*[-*•●]\s*')


@dataclass(frozen=True)
class GrammarRule(Generic[T]):
    """One dialect: a compiled pattern plus the extractor that turns a match into a value."""
    name: str
    pattern: Pattern[str]
    extract: Callable[..., Optional[T]]

    def apply(self, text: str, *context: Any) -> Optional[T]:
        match = self.pattern.search(text)
        if not match:
            return None
        return self.extract(match, *context)


def first_match(rules: Sequence[GrammarRule[T]], text: str, *context: Any) -> Optional[Tuple[str, T]]:
    """Run ``rules`` in priority order and return ``(rule name, value)`` for the first hit."""
    for rule in rules:
        value = rule.apply(text, *context)
        if value is not None:
            return rule.name, value
    return None


def time_token_to_seconds(token: str) -> int:
    """Convert "m:ss", "45s", "45 sec" or a bare "45" into seconds."""
    token = token.strip()
    if ":" in token:
        minutes, seconds = token.split(":", 1)
        return int(minutes) * 60 + int(seconds)
    digits = re.match(r'\d+', token)
    return int(digits.group(0)) if digits else 0

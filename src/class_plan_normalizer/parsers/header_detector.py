"""
Block Header Detector

Recognizes the header dialects instructors use to open a block and extracts
{name, type, duration}. Rules are tried in priority order:

    FIRST BLOCK — Warm-up           ordinal block with a name
    WARM-UP / COOLDOWN              bare warmup/cooldown line
    BLOCK 2: Strength               numbered block
    LADDER (8:00)                   workout-type keyword anywhere in the line
    Warm up / Main set / Cool down  loose section headers
    Core Finisher (6 min)           name followed by a minute count
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from class_plan_normalizer.config import DEFAULTS, PipelineDefaults
from class_plan_normalizer.utils import format_mmss

from .base import GrammarRule, MMSS_PATTERN, UNIT_DURATION_PATTERN, first_match
from .timeline_parser import is_metadata_line, is_timed_entry
from .type_mapper import WORKOUT_KEYWORDS, infer_type

logger = logging.getLogger(__name__)

# Lines scanned for a duration: the header plus this many following lines
DURATION_LOOKAHEAD = 4

TRAILING_PAREN_DURATION = re.compile(r'\s*\([^)]*\d[^)]*\)\s*$')


@dataclass(frozen=True)
class HeaderMatch:
    """A detected block header."""
    name: str
    type: str
    duration: str
    pattern: Optional[str] = None


def find_duration_in_context(lines: List[str], index: int, defaults: PipelineDefaults = DEFAULTS) -> str:
    """Look for a duration on the header line or the next few lines; fall back to the default block length."""
    for line in lines[index:index + DURATION_LOOKAHEAD + 1]:
        m = MMSS_PATTERN.search(line)
        if m:
            return m.group(1)
        m = UNIT_DURATION_PATTERN.search(line)
        if m:
            value = int(m.group(1))
            if m.group(2).lower().startswith("m"):
                return f"{value}:00"
            return format_mmss(value)
    return format_mmss(defaults.default_block_sec)


def _header_name(text: str) -> str:
    return TRAILING_PAREN_DURATION.sub("", text).strip() or text.strip()


def _ordinal_block(match, lines, index, defaults) -> HeaderMatch:
    name = match.group(2).strip()
    return HeaderMatch(
        name=name,
        type=infer_type(name).value,
        duration=find_duration_in_context(lines, index, defaults),
    )


def _bare_warmup_cooldown(match, lines, index, defaults) -> HeaderMatch:
    token = match.group(1).upper()
    return HeaderMatch(
        name=match.group(1),
        type="WARMUP" if token.startswith("WARM") else "COOLDOWN",
        duration=find_duration_in_context(lines, index, defaults),
    )


def _numbered_block(match, lines, index, defaults) -> HeaderMatch:
    name = _header_name(match.group(2)) if match.group(2).strip() else f"Block {match.group(1)}"
    return HeaderMatch(
        name=name,
        type=infer_type(name).value,
        duration=find_duration_in_context(lines, index, defaults),
    )


def _keyword(match, lines, index, defaults) -> Optional[HeaderMatch]:
    line = match.string
    upper = line.upper()
    for keyword in WORKOUT_KEYWORDS:
        if re.search(rf'\b{keyword}\b', upper):
            return HeaderMatch(
                name=_header_name(line),
                type=keyword,
                duration=find_duration_in_context(lines, index, defaults),
            )
    return None


def _section(match, lines, index, defaults) -> HeaderMatch:
    line = match.string
    name = _header_name(line)
    return HeaderMatch(
        name=name,
        type=infer_type(name).value,
        duration=find_duration_in_context(lines, index, defaults),
    )


def _name_with_minutes(match, lines, index, defaults) -> HeaderMatch:
    name = match.group(1).strip()
    return HeaderMatch(
        name=name,
        type=infer_type(name).value,
        duration=f"{int(match.group(2))}:00",
    )


HEADER_RULES = [
    GrammarRule(
        "ordinal_block",
        re.compile(r'^(FIRST|SHORT|MEDIUM|LONG|FINAL)\s+BLOCK\s*[—\-–]\s*(.+)$', re.IGNORECASE),
        _ordinal_block,
    ),
    GrammarRule(
        "bare_warmup_cooldown",
        re.compile(r'^(WARM-?UP|COOL-?DOWN)$', re.IGNORECASE),
        _bare_warmup_cooldown,
    ),
    GrammarRule(
        "numbered_block",
        re.compile(r'^BLOCK\s*(\d+)\s*:?\s*(.*)$', re.IGNORECASE),
        _numbered_block,
    ),
    GrammarRule(
        "type_keyword",
        re.compile(r'\b(' + "|".join(WORKOUT_KEYWORDS) + r')\b', re.IGNORECASE),
        _keyword,
    ),
    GrammarRule(
        "section",
        re.compile(r'^(WARM[\s-]*UP|MAIN\s*(WORKOUT|SET)|COOL[\s-]*DOWN)\b', re.IGNORECASE),
        _section,
    ),
    GrammarRule(
        "name_with_minutes",
        re.compile(r'^(.+?)\s*\((\d+)\s*min', re.IGNORECASE),
        _name_with_minutes,
    ),
]


def detect_block_header(
    lines: List[str],
    index: int,
    defaults: PipelineDefaults = DEFAULTS,
) -> Optional[HeaderMatch]:
    """
    Decide whether ``lines[index]`` opens a new block.

    Bulleted lines, timed timeline entries and metadata lines are never headers.

    Returns:
        HeaderMatch, or None when the line is not a header.
    """
    line = (lines[index] if 0 <= index < len(lines) else "").strip()
    if not line or line.startswith("-"):
        return None
    if is_timed_entry(line) or is_metadata_line(line):
        return None

    hit = first_match(HEADER_RULES, line, lines, index, defaults)
    if hit is None:
        return None
    rule_name, header = hit
    logger.debug(f"[header] {rule_name}: {line!r} -> {header.name} ({header.type}, {header.duration})")
    return header

"""
Text Cleaner

Strips layout artifacts left behind by document extraction (page numbers,
headers/footers, date stamps, odd bullets) so later stages only see content.
"""

import logging
import re
from typing import List

logger = logging.getLogger(__name__)

PAGE_NUMBER_LINE = re.compile(r'^\s*\d+\s*$')
BOILERPLATE_LINES = (
    re.compile(r'^\s*(?:page\s+\d+|copyright|confidential|draft)\b', re.IGNORECASE),
    re.compile(r'^\s*\d{1,2}/\d{1,2}/\d{2,4}'),                      # 3/14/24 ...
    re.compile(r'^\s*\d{1,2}:\d{2}\s*(?:AM|PM)\b', re.IGNORECASE),   # 9:30 AM ...
)
ROUND_BULLETS = re.compile(r'[●•]')
LEADING_STAR_OR_PLUS = re.compile(r'^\s*[*+]\s*')
HORIZONTAL_WHITESPACE = re.compile(r'[ \t]+')


def _is_artifact(line: str) -> bool:
    if PAGE_NUMBER_LINE.match(line):
        return True
    return any(pattern.match(line) for pattern in BOILERPLATE_LINES)


def clean_text(raw: str) -> str:
    """
    Normalize raw extracted text.

    Never fails; returns "" when nothing survives.
    """
    if not raw:
        return ""

    text = raw.replace("\r\n", "\n").replace("\r", "\n").replace("\f", "\n")

    cleaned: List[str] = []
    dropped = 0
    for line in text.split("\n"):
        if _is_artifact(line):
            dropped += 1
            cleaned.append("")
            continue
        line = ROUND_BULLETS.sub("-", line)
        line = LEADING_STAR_OR_PLUS.sub("- ", line)
        line = HORIZONTAL_WHITESPACE.sub(" ", line)
        cleaned.append(line.strip())

    # Runs of blank lines collapse to a single blank line
    collapsed: List[str] = []
    for line in cleaned:
        if not line and len(collapsed) >= 1 and not collapsed[-1]:
            continue
        collapsed.append(line)

    result = "\n".join(collapsed).strip()
    logger.debug(f"[clean_text] {len(raw)} -> {len(result)} chars, dropped {dropped} artifact lines")
    return result

"""
Canonicalizer

Rewrites cleaned text into the canonical block grammar that the assembler
parses:

    BLOCK 1
    NAME: Warm-up
    TYPE: WARMUP
    DURATION: 5:00
    PATTERN: 40/20 x 4
    TIMELINE:
    - 30s | Jumping Jacks
    - Arm circles

Untimed entries keep their bare label; the assembler sizes them.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import List, Optional

from class_plan_normalizer.config import DEFAULTS, PipelineDefaults
from class_plan_normalizer.models import NormalizedType
from class_plan_normalizer.utils import format_mmss

from .header_detector import HeaderMatch, detect_block_header
from .timeline_parser import TimelineItem, is_metadata_line, parse_timeline_item, strip_bullet

logger = logging.getLogger(__name__)

PATTERN_LINE = re.compile(r'^(?:PATTERN|FORMAT|STRUCTURE)\s*:\s*(.+)$', re.IGNORECASE)
ALREADY_CANONICAL = re.compile(r'^BLOCK\s*\d+\s*\nNAME:', re.IGNORECASE)

SYNTHETIC_BLOCK_NAME = "Workout"


@dataclass
class CanonicalBlock:
    """A block being collected from cleaned text."""
    name: str
    type: str
    duration: str
    pattern: Optional[str] = None
    items: List[TimelineItem] = field(default_factory=list)

    @classmethod
    def from_header(cls, header: HeaderMatch) -> "CanonicalBlock":
        return cls(name=header.name, type=header.type, duration=header.duration, pattern=header.pattern)

    def render(self, number: int) -> str:
        lines = [
            f"BLOCK {number}",
            f"NAME: {self.name}",
            f"TYPE: {self.type}",
            f"DURATION: {self.duration}",
        ]
        if self.pattern:
            lines.append(f"PATTERN: {self.pattern}")
        lines.append("TIMELINE:")
        lines.extend(item.to_canonical() for item in self.items)
        return "\n".join(lines)


def split_blocks(cleaned_text: str, defaults: PipelineDefaults = DEFAULTS) -> List[CanonicalBlock]:
    """Group cleaned lines under detected headers."""
    lines = cleaned_text.split("\n") if cleaned_text else []
    blocks: List[CanonicalBlock] = []
    current: Optional[CanonicalBlock] = None

    for index, raw_line in enumerate(lines):
        line = raw_line.strip()
        if not line:
            continue

        header = detect_block_header(lines, index, defaults)
        if header is not None:
            current = CanonicalBlock.from_header(header)
            blocks.append(current)
            continue

        pattern = PATTERN_LINE.match(strip_bullet(line))
        if pattern and current is not None and not current.items and not current.pattern:
            current.pattern = pattern.group(1).strip()
            continue

        if current is None:
            if is_metadata_line(line):
                continue
            current = CanonicalBlock(
                name=SYNTHETIC_BLOCK_NAME,
                type=NormalizedType.INTERVAL.value,
                duration=format_mmss(defaults.default_block_sec),
            )
            blocks.append(current)

        item = parse_timeline_item(line)
        if item is not None:
            current.items.append(item)

    return blocks


def canonicalize(cleaned_text: str, defaults: PipelineDefaults = DEFAULTS) -> str:
    """Rewrite cleaned text into canonical block syntax; "" when there is no content."""
    if ALREADY_CANONICAL.match(cleaned_text or ""):
        logger.info("[canonicalize] input is already canonical")
        return cleaned_text
    blocks = split_blocks(cleaned_text, defaults)
    canonical = "\n\n".join(block.render(number) for number, block in enumerate(blocks, start=1))
    logger.info(
        f"[canonicalize] {len(blocks)} blocks, "
        f"{sum(len(block.items) for block in blocks)} timeline entries"
    )
    return canonical

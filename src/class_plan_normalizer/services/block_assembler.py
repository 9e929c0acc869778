"""
Block Assembler

Turns canonical text or a structured candidate into typed Blocks. Every block
leaves here with ``duration_sec`` equal to the sum of its timeline.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from class_plan_normalizer.config import DEFAULTS, PipelineDefaults
from class_plan_normalizer.errors import PlanParseError
from class_plan_normalizer.models import Block, NormalizedType, Plan, PlanMetadata, TimelineEntry
from class_plan_normalizer.parsers.header_detector import find_duration_in_context
from class_plan_normalizer.parsers.timeline_parser import TimelineItem, parse_timeline_item
from class_plan_normalizer.parsers.type_mapper import WORKOUT_KEYWORDS, infer_type, map_type
from class_plan_normalizer.utils import parse_duration, to_int

from .candidate_sanitizer import sanitize_candidate
from .duration_allocator import allocate_durations

logger = logging.getLogger(__name__)

CANONICAL_BLOCK = re.compile(
    r'^BLOCK\s*(?P<number>\d+)[^\n]*\n'
    r'NAME:[ \t]*(?P<name>[^\n]*)\n'
    r'TYPE:[ \t]*(?P<type>[^\n]*)\n'
    r'DURATION:[ \t]*(?P<duration>[^\n]*)\n'
    r'(?:PATTERN:[ \t]*(?P<pattern>[^\n]*)\n)?'
    r'TIMELINE:[ \t]*(?:\n(?P<timeline>(?:(?!BLOCK\s*\d)[^\n]+(?:\n|$))*))?',
    re.MULTILINE | re.IGNORECASE,
)

FALLBACK_HEADER = re.compile(
    r'^(BLOCK|WARM|COOL|' + "|".join(WORKOUT_KEYWORDS) + r')',
    re.IGNORECASE,
)
CANONICAL_FIELD = re.compile(r'^(NAME|TYPE|DURATION|PATTERN|TIMELINE)\s*:', re.IGNORECASE)

DEFAULT_CUES: Dict[NormalizedType, List[str]] = {
    NormalizedType.WARMUP: ["Move smoothly", "Prepare your body", "Focus on mobility"],
    NormalizedType.COOLDOWN: ["Breathe deeply", "Hold each stretch", "Relax and recover"],
    NormalizedType.TABATA: ["All out effort", "Push through fatigue", "Rest completely"],
    NormalizedType.EMOM: ["Start each minute fresh", "Maintain good form", "Use remaining time to rest"],
    NormalizedType.AMRAP: ["Keep moving", "Pace yourself", "Quality over quantity"],
    NormalizedType.LADDER: ["Build intensity", "Focus on progression", "Control the tempo"],
    NormalizedType.PYRAMID: ["Peak at the middle", "Manage your energy", "Stay consistent"],
    NormalizedType.COMBO: ["Flow between exercises", "Maintain rhythm", "Keep core engaged"],
    NormalizedType.SUPERSET: ["Minimal rest between exercises", "Push through the burn", "Focus on target muscles"],
    NormalizedType.FINISHER: ["Give everything you have", "This is the final push", "Finish strong"],
}
GENERIC_CUES = ["Maintain good form", "Control your breathing", "Stay focused"]

PLACEHOLDER_ENTRIES = ("Exercise 1", "Exercise 2")


def default_cues(normalized_type) -> List[str]:
    return list(DEFAULT_CUES.get(NormalizedType(normalized_type), GENERIC_CUES))


def size_items(items: List[TimelineItem], hint_sec: int, defaults: PipelineDefaults = DEFAULTS) -> List[int]:
    """
    Give every item a duration.

    Untimed items share whatever the block hint leaves after the timed items;
    when the hint leaves nothing they fall back to the default item length.
    """
    explicit = sum(item.duration_sec for item in items if item.is_timed)
    has_untimed = any(not item.is_timed for item in items)

    if has_untimed and hint_sec > explicit:
        hints = [item.duration_sec if item.is_timed else 0 for item in items]
        return allocate_durations(
            hints,
            hint_sec,
            step=defaults.item_grid_sec,
            minimum=defaults.min_item_sec,
            max_attempts=defaults.max_adjust_attempts,
        )

    return [
        max(defaults.min_item_sec, item.duration_sec if item.is_timed else defaults.default_item_sec)
        for item in items
    ]


def build_block(
    number: int,
    name: str,
    type_token: str,
    hint_sec: int,
    items: List[TimelineItem],
    defaults: PipelineDefaults = DEFAULTS,
    pattern: Optional[str] = None,
    cues: Optional[List[str]] = None,
    block_id: Optional[str] = None,
    normalized_type: Optional[NormalizedType] = None,
    rpe: Optional[int] = None,
    fill_empty: bool = True,
) -> Block:
    """Build one Block whose duration is the sum of its sized entries.

    With ``fill_empty`` a block without entries gets one entry, named after the
    block, that runs for the block hint.
    """
    name = (name or "").strip() or f"Block {number}"
    type_token = (type_token or "").strip()
    if normalized_type is None:
        normalized_type = map_type(type_token) if type_token else infer_type(name)

    if not items and fill_empty:
        items = [TimelineItem.create(name)]
    durations = size_items(items, hint_sec, defaults)
    timeline = [
        TimelineEntry(duration_sec=seconds, label=item.label, is_rest=item.is_rest)
        for item, seconds in zip(items, durations)
    ]

    return Block.build(
        id=block_id or f"block-{number}",
        name=name,
        type=type_token or normalized_type.value,
        normalized_type=normalized_type,
        pattern=pattern or None,
        intensity_target_rpe=rpe if rpe is not None else defaults.default_rpe,
        cues=cues or default_cues(normalized_type),
        timeline=timeline,
    )


def _parse_items(lines: List[str]) -> List[TimelineItem]:
    items = []
    for line in lines:
        item = parse_timeline_item(line)
        if item is not None:
            items.append(item)
    return items


def parse_canonical_blocks(text: str, defaults: PipelineDefaults = DEFAULTS) -> List[Block]:
    """Strict pass over the canonical grammar; malformed blocks are skipped."""
    blocks = []
    for match in CANONICAL_BLOCK.finditer(text or ""):
        number = len(blocks) + 1
        timeline_text = match.group("timeline") or ""
        items = _parse_items(timeline_text.split("\n"))
        hint_sec = parse_duration(match.group("duration"), defaults.default_block_sec)
        blocks.append(
            build_block(
                number,
                match.group("name"),
                match.group("type"),
                hint_sec,
                items,
                defaults,
                pattern=(match.group("pattern") or "").strip() or None,
            )
        )
    return blocks


def parse_fallback_blocks(text: str, defaults: PipelineDefaults = DEFAULTS) -> List[Block]:
    """
    Line-oriented pass for text that is not in canonical form.

    Any line starting with a block or workout-type keyword opens a block;
    following lines become its entries. Blocks with no entries get two
    placeholder entries.
    """
    lines = [line.strip() for line in (text or "").split("\n")]
    groups = []
    for index, line in enumerate(lines):
        if not line or CANONICAL_FIELD.match(line):
            continue
        if FALLBACK_HEADER.match(line):
            groups.append((line, find_duration_in_context(lines, index, defaults), []))
        elif groups:
            groups[-1][2].append(line)

    blocks = []
    for number, (name, duration, body) in enumerate(groups, start=1):
        items = _parse_items(body)
        if not items:
            items = [TimelineItem.create(label, defaults.default_item_sec) for label in PLACEHOLDER_ENTRIES]
        blocks.append(
            build_block(number, name, "", parse_duration(duration, defaults.default_block_sec), items, defaults)
        )
    return blocks


def assemble_from_canonical(
    text: str,
    defaults: PipelineDefaults = DEFAULTS,
    fallback_text: Optional[str] = None,
) -> List[Block]:
    """
    Parse canonical text into Blocks.

    Falls back to the line-oriented parser (on ``fallback_text`` when given,
    otherwise on ``text``) if the strict pass finds nothing.

    Raises:
        PlanParseError: If neither pass yields a block.
    """
    blocks = parse_canonical_blocks(text, defaults)
    if blocks:
        logger.info(f"[assemble] {len(blocks)} blocks from canonical text")
        return blocks

    logger.warning("[assemble] canonical parse found no blocks, trying line fallback")
    blocks = parse_fallback_blocks(text, defaults)
    if not blocks and fallback_text is not None:
        blocks = parse_fallback_blocks(fallback_text, defaults)
    if not blocks:
        raise PlanParseError()

    logger.info(f"[assemble] {len(blocks)} blocks from line fallback")
    return blocks


def _candidate_normalized_type(block: Dict[str, Any]) -> Optional[NormalizedType]:
    value = block.get("normalized_type")
    if isinstance(value, str) and value.upper() in NormalizedType.__members__:
        return NormalizedType(value.upper())
    return None


def assemble_from_candidate(candidate: Any, defaults: PipelineDefaults = DEFAULTS) -> Plan:
    """
    Build a Plan from a structured candidate (dict, or a JSON string).

    Raises:
        CandidateFormatError: If the candidate is malformed or carries an error.
        PlanParseError: If it holds no blocks.
    """
    data = sanitize_candidate(candidate, defaults)

    blocks = []
    for number, raw in enumerate(data["blocks"], start=1):
        hint_sec = raw.get("duration_sec")
        if hint_sec is None:
            hint_sec = parse_duration(raw.get("duration"), defaults.default_block_sec)
        blocks.append(
            build_block(
                number,
                raw["name"],
                raw["type"],
                hint_sec,
                _parse_items(raw["timeline"]),
                defaults,
                pattern=raw.get("pattern"),
                cues=raw["cues"],
                block_id=raw["id"],
                normalized_type=_candidate_normalized_type(raw),
                rpe=to_int(raw.get("intensity_target_rpe")),
                fill_empty=False,
            )
        )

    if not blocks:
        raise PlanParseError()

    plan = Plan(version=str(data["version"]), metadata=PlanMetadata(**data["metadata"]))
    logger.info(f"[assemble] {len(blocks)} blocks from candidate")
    return plan.with_blocks(blocks)

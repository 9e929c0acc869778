"""Insert transition blocks between consecutive blocks."""

import logging
from typing import List

from class_plan_normalizer.config import DEFAULTS, PipelineDefaults
from class_plan_normalizer.models import Block, NormalizedType, Plan, TimelineEntry

logger = logging.getLogger(__name__)

TRANSITION_LABEL = "Transition to next block"


def _transition_block(number: int, seconds: int) -> Block:
    return Block.build(
        id=f"transition-{number}",
        name="Transition",
        type="Transition",
        normalized_type=NormalizedType.TRANSITION,
        cues=[],
        timeline=[TimelineEntry(duration_sec=seconds, label=TRANSITION_LABEL, is_rest=True)],
    )


def insert_transitions(plan: Plan, defaults: PipelineDefaults = DEFAULTS) -> Plan:
    """
    Return a plan with a TRANSITION block between each pair of blocks.

    Only applies when the plan's transition policy is "auto" with a positive
    ``transition_sec``; plans that already contain transitions are returned as-is.
    """
    metadata = plan.metadata
    if metadata.transition_policy != "auto" or metadata.transition_sec <= 0:
        return plan
    if len(plan.blocks) < 2:
        return plan
    if any(block.normalized_type == NormalizedType.TRANSITION for block in plan.blocks):
        return plan

    seconds = max(defaults.min_item_sec, metadata.transition_sec)
    blocks: List[Block] = []
    for number, block in enumerate(plan.blocks, start=1):
        if blocks:
            blocks.append(_transition_block(number - 1, seconds))
        blocks.append(block)

    logger.info(f"[transitions] inserted {len(plan.blocks) - 1} transitions of {seconds}s")
    return plan.with_blocks(blocks)

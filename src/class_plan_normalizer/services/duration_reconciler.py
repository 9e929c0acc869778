"""
Duration Reconciler

Brings a plan's total onto the requested class length and onto the time grid.

Within the soft buffer the plan's timing is left alone apart from grid
snapping, which steers toward the target so the total stays inside the buffer.
Outside it, or when snapping alone would leave it:

  too long  -> shorten REST entries down to the rest floor, block by block;
               then, if more than the shave threshold still remains, shave up
               to 20% of the final block, last entry first
  too short -> extend the final cooldown, or append an Extended Cooldown block

Grid normalization always runs afterwards: each entry is rounded to the nearest
multiple of 5 s and every block total lands on a multiple of 10 s.
"""

import logging
from typing import List, Tuple

from class_plan_normalizer.config import DEFAULTS, PipelineDefaults
from class_plan_normalizer.models import Block, NormalizedType, Plan, ReconcileResult, TimelineEntry
from class_plan_normalizer.utils import format_mmss, round_to_step

from .block_assembler import default_cues

logger = logging.getLogger(__name__)

EXTENDED_COOLDOWN_ENTRY = "Extended cooldown"
EXTENDED_COOLDOWN_BLOCK = "Extended Cooldown"
COOLDOWN_STRETCH_ENTRY = "Cool down and stretch"


def _is_trimmable_rest(entry: TimelineEntry) -> bool:
    return entry.label.strip().upper().startswith("REST")


def _is_cooldown(block: Block) -> bool:
    return block.normalized_type == NormalizedType.COOLDOWN or "cool" in block.type.lower()


def _signature(blocks: List[Block]) -> Tuple:
    return tuple((block.id, tuple(entry.duration_sec for entry in block.timeline)) for block in blocks)


def _trim(blocks: List[Block], excess: int, defaults: PipelineDefaults) -> Tuple[List[Block], List[str]]:
    remaining = excess
    rest_trimmed = 0
    trimmed: List[Block] = []
    for block in blocks:
        if remaining <= 0 or not any(_is_trimmable_rest(e) for e in block.timeline):
            trimmed.append(block)
            continue
        durations = []
        for entry in block.timeline:
            seconds = entry.duration_sec
            if remaining > 0 and _is_trimmable_rest(entry) and seconds > defaults.min_rest_sec:
                cut = min(seconds - defaults.min_rest_sec, remaining)
                seconds -= cut
                remaining -= cut
                rest_trimmed += cut
            durations.append(seconds)
        trimmed.append(block.with_durations(durations))

    strategies = []
    if rest_trimmed:
        strategies.append("trimmed rest periods")

    if remaining > defaults.shave_threshold_sec and trimmed:
        final = trimmed[-1]
        to_cut = min(remaining, int(final.duration_sec * defaults.final_block_max_shave))
        durations = [entry.duration_sec for entry in final.timeline]
        shaved = 0
        for index in reversed(range(len(durations))):
            if shaved >= to_cut:
                break
            room = durations[index] - defaults.min_item_sec
            if room <= 0:
                continue
            cut = min(room, to_cut - shaved)
            durations[index] -= cut
            shaved += cut
        if shaved:
            trimmed[-1] = final.with_durations(durations)
            strategies.append("reduced final block")

    return trimmed, strategies


def _pad(blocks: List[Block], shortfall: int, defaults: PipelineDefaults) -> Tuple[List[Block], List[str]]:
    seconds = max(defaults.min_item_sec, shortfall)

    if blocks and _is_cooldown(blocks[-1]):
        last = blocks[-1]
        extra = TimelineEntry(duration_sec=seconds, label=EXTENDED_COOLDOWN_ENTRY)
        return blocks[:-1] + [last.with_timeline(list(last.timeline) + [extra])], ["added cooldown time"]

    cooldown = Block.build(
        id="cooldown-extended",
        name=EXTENDED_COOLDOWN_BLOCK,
        type="Cooldown",
        normalized_type=NormalizedType.COOLDOWN,
        intensity_target_rpe=defaults.default_rpe,
        cues=default_cues(NormalizedType.COOLDOWN),
        timeline=[TimelineEntry(duration_sec=seconds, label=COOLDOWN_STRETCH_ENTRY)],
    )
    return blocks + [cooldown], ["added cooldown time"]


def _snap_entries(blocks: List[Block], defaults: PipelineDefaults) -> List[List[int]]:
    """Round every entry to the nearest point on the item grid."""
    return [
        [max(defaults.min_item_sec, round_to_step(entry.duration_sec, defaults.item_grid_sec)) for entry in block.timeline]
        for block in blocks
    ]


def _close_residual(rows: List[List[int]], aim: int, defaults: PipelineDefaults) -> None:
    """Let the final entry absorb a small leftover gap to the target after a repair."""
    gap = round_to_step(aim, defaults.block_grid_sec) - sum(map(sum, rows))
    if not gap or abs(gap) > defaults.shave_threshold_sec:
        return
    for row in reversed(rows):
        if row:
            row[-1] = max(defaults.min_item_sec, row[-1] + gap)
            return


def _snap_blocks(rows: List[List[int]], blocks: List[Block], aim: int, defaults: PipelineDefaults) -> None:
    """Make each block total a multiple of the block grid, steering the plan total toward ``aim``."""
    grid = defaults.block_grid_sec
    total = sum(map(sum, rows))
    for row, block in zip(rows, blocks):
        remainder = sum(row) % grid
        if not row or not remainder:
            continue
        non_rest = [i for i, entry in enumerate(block.timeline) if not entry.is_rest]
        index = non_rest[-1] if non_rest else len(row) - 1
        if total > aim and row[index] - remainder >= defaults.min_item_sec:
            row[index] -= remainder
            total -= remainder
        else:
            row[index] += grid - remainder
            total += grid - remainder


def normalize_to_grid(blocks: List[Block], aim: int, repaired: bool, defaults: PipelineDefaults = DEFAULTS) -> List[Block]:
    """Return blocks whose entries sit on the item grid and whose totals sit on the block grid."""
    rows = _snap_entries(blocks, defaults)
    if repaired:
        _close_residual(rows, aim, defaults)
    _snap_blocks(rows, blocks, aim, defaults)
    return [block.with_durations(row) for block, row in zip(blocks, rows)]


def reconcile_durations(plan: Plan, target_sec: int, defaults: PipelineDefaults = DEFAULTS) -> ReconcileResult:
    """
    Reconcile ``plan`` against a target class length.

    Returns:
        ReconcileResult with the new plan; ``exhausted`` is set when a repair
        ran but could not get within the block grid of the target.
    """
    if not any(block.timeline for block in plan.blocks):
        logger.warning("[reconcile] plan has no timeline entries, nothing to reconcile")
        return ReconcileResult(plan=plan)

    original_total = plan.total_duration_sec
    buffer_sec = defaults.soft_buffer_for(target_sec)
    diff = original_total - target_sec

    strategies: List[str] = []
    repaired = abs(diff) > buffer_sec
    if not repaired:
        blocks = normalize_to_grid(plan.blocks, target_sec, False, defaults)
        snapped_total = sum(block.duration_sec for block in blocks)
        if abs(snapped_total - target_sec) > buffer_sec:
            # Snapping alone left the buffer: fall through to a repair
            logger.debug(f"[reconcile] grid snap moved {original_total}s to {snapped_total}s, outside buffer")
            repaired = True

    if repaired:
        blocks = list(plan.blocks)
        if diff > 0:
            blocks, strategies = _trim(blocks, diff, defaults)
        elif diff < 0:
            blocks, strategies = _pad(blocks, -diff, defaults)
        blocks = normalize_to_grid(blocks, target_sec, True, defaults)
    reconciled = plan.with_blocks(blocks)

    new_total = reconciled.total_duration_sec
    was_modified = _signature(reconciled.blocks) != _signature(plan.blocks)
    exhausted = repaired and abs(new_total - target_sec) > defaults.block_grid_sec

    message = None
    if repaired:
        strategy = " and ".join(strategies) or "rounding to the time grid"
        message = (
            f"Generated class was {format_mmss(original_total)}; "
            f"normalized to {format_mmss(new_total)} by {strategy}."
        )
        if exhausted:
            message += (
                f" Closest achievable total is {abs(new_total - target_sec)}s "
                f"from the {format_mmss(target_sec)} target."
            )
            logger.warning(f"[reconcile] exhausted: {message}")
        else:
            logger.info(f"[reconcile] {message}")
    elif was_modified:
        message = (
            f"Adjusted timings to the {defaults.item_grid_sec}-second grid "
            f"({format_mmss(original_total)} -> {format_mmss(new_total)})."
        )
        logger.info(f"[reconcile] {message}")
    else:
        logger.debug(f"[reconcile] {format_mmss(original_total)} within {buffer_sec}s of target, unchanged")

    return ReconcileResult(
        plan=reconciled,
        was_modified=was_modified,
        repaired=repaired,
        exhausted=exhausted,
        message=message,
    )

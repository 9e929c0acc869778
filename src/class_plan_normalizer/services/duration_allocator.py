"""Split a block-level duration across its items on the 5-second grid."""

import logging
from typing import List, Sequence

from class_plan_normalizer.utils import round_to_step

logger = logging.getLogger(__name__)


def _raw_shares(hints: Sequence[float], total_sec: int) -> List[float]:
    hinted_sum = sum(h for h in hints if h > 0)
    unhinted = [i for i, h in enumerate(hints) if h <= 0]

    if hinted_sum <= 0:
        share = total_sec / len(hints)
        return [share] * len(hints)

    if unhinted and hinted_sum < total_sec:
        share = (total_sec - hinted_sum) / len(unhinted)
        return [float(h) if h > 0 else share for h in hints]

    return [total_sec * (h if h > 0 else 0) / hinted_sum for h in hints]


def allocate_durations(
    hints: Sequence[float],
    total_sec: int,
    step: int = 5,
    minimum: int = 5,
    max_attempts: int = 100,
) -> List[int]:
    """
    Distribute ``total_sec`` over items in proportion to ``hints``.

    A hint of 0 means "no preference". When every hint is 0 the total is split
    evenly; when only some are 0 and the hinted items fit inside the total,
    hinted items keep their hint and the rest is split evenly among the others.
    Otherwise shares are proportional to the hints.

    Each share is snapped to the nearest multiple of ``step`` (never below
    ``minimum``), then nudged one step at a time until the sum matches the
    target or ``max_attempts`` is reached. Nudges go to the largest rounding
    remainder first when adding and the smallest first when removing, ties by
    index, so the result is deterministic.

    Returns:
        One duration per hint; [] when ``hints`` is empty.
    """
    if not hints:
        return []

    shares = _raw_shares(hints, total_sec)
    durations = [max(minimum, round_to_step(share, step)) for share in shares]
    remainders = [share - duration for share, duration in zip(shares, durations)]

    grow_order = sorted(range(len(durations)), key=lambda i: (-remainders[i], i))
    shrink_order = sorted(range(len(durations)), key=lambda i: (remainders[i], i))

    attempts = 0
    cursor = 0
    while attempts < max_attempts:
        diff = total_sec - sum(durations)
        if abs(diff) < step:
            break
        attempts += 1
        if diff > 0:
            index = grow_order[cursor % len(grow_order)]
            durations[index] += step
        else:
            candidates = [i for i in shrink_order if durations[i] - step >= minimum]
            if not candidates:
                break
            index = candidates[cursor % len(candidates)]
            durations[index] -= step
        cursor += 1

    if sum(durations) != total_sec:
        logger.debug(f"[allocate] closest sum {sum(durations)}s for target {total_sec}s after {attempts} nudges")
    return durations

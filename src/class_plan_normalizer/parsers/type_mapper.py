"""Map free-text block types and names onto NormalizedType."""

import re
from typing import Dict, List, Tuple

from class_plan_normalizer.models import NormalizedType

# Order matters: earlier entries win the substring pass.
TYPE_TABLE: Dict[str, NormalizedType] = {
    "WARM-UP": NormalizedType.WARMUP,
    "WARMUP": NormalizedType.WARMUP,
    "COOL-DOWN": NormalizedType.COOLDOWN,
    "COOLDOWN": NormalizedType.COOLDOWN,
    "AMRAP SUPERSET": NormalizedType.SUPERSET,
    "TABATA VARIATION": NormalizedType.TABATA,
    "GIANT SETS": NormalizedType.GIANT_SETS,
    "GIANT_SETS": NormalizedType.GIANT_SETS,
    "SUPERSET": NormalizedType.SUPERSET,
    "TABATA": NormalizedType.TABATA,
    "EMOM": NormalizedType.EMOM,
    "AMRAP": NormalizedType.AMRAP,
    "LADDER": NormalizedType.LADDER,
    "PYRAMID": NormalizedType.PYRAMID,
    "COMBO": NormalizedType.COMBO,
    "FINISHER": NormalizedType.FINISHER,
    "CHALLENGE": NormalizedType.CHALLENGE,
    "RANDOMIZED": NormalizedType.RANDOMIZED,
    "TRANSITION": NormalizedType.TRANSITION,
    "INTERVAL": NormalizedType.INTERVAL,
}

# Workout-type keywords that open a block, in header priority order.
# Each is also the value of its NormalizedType.
WORKOUT_KEYWORDS: Tuple[str, ...] = (
    "TABATA", "EMOM", "AMRAP", "LADDER", "PYRAMID", "COMBO", "SUPERSET", "FINISHER",
)

# Keyword → type for names like "Tabata Burner" or "Long Block - Cool it down"
NAME_KEYWORDS: List[Tuple[str, NormalizedType]] = (
    [("WARM", NormalizedType.WARMUP), ("COOL", NormalizedType.COOLDOWN)]
    + [(keyword, NormalizedType(keyword)) for keyword in WORKOUT_KEYWORDS]
    + [("GIANT", NormalizedType.GIANT_SETS), ("CHALLENGE", NormalizedType.CHALLENGE)]
)

_SEPARATORS = re.compile(r'[-_]')


def _variants(text: str) -> Tuple[str, str]:
    """Separator-insensitive forms: "WARM-UP" -> ("WARM UP", "WARMUP")."""
    return _SEPARATORS.sub(" ", text), _SEPARATORS.sub("", text)


def map_type(token) -> NormalizedType:
    """
    Map a free-text type token to a NormalizedType.

    Exact table lookup first, then a substring match in table order that
    ignores "-" and "_" separators. Anything unrecognized is INTERVAL.
    """
    if token is None:
        return NormalizedType.INTERVAL
    upper = str(token).strip().upper()
    if not upper:
        return NormalizedType.INTERVAL

    if upper in TYPE_TABLE:
        return TYPE_TABLE[upper]

    spaced, joined = _variants(upper)
    for key, normalized in TYPE_TABLE.items():
        key_spaced, key_joined = _variants(key)
        if key_spaced in spaced or key_joined in joined:
            return normalized

    return NormalizedType.INTERVAL


def infer_type(name) -> NormalizedType:
    """Guess a block type from its name by keyword, defaulting to INTERVAL."""
    upper = str(name or "").upper()
    for keyword, normalized in NAME_KEYWORDS:
        if keyword in upper:
            return normalized
    return NormalizedType.INTERVAL

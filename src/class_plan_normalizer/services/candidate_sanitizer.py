"""Shared utilities for candidate plan sanitization.

Language-model candidates arrive with a handful of recurring structural
mistakes: fenced JSON, timeline entries as objects instead of strings,
oversized entries, missing cues or types. This module fixes those before the
assembler builds Blocks. The input is never modified; a new dict is returned.
"""

import json
import logging
import re
from typing import Any, Dict, List, Optional

from class_plan_normalizer.config import DEFAULTS, PipelineDefaults
from class_plan_normalizer.errors import CandidateFormatError
from class_plan_normalizer.parsers.timeline_parser import parse_timeline_item
from class_plan_normalizer.utils import to_int

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("version", "metadata", "blocks", "time_audit")

_CODE_FENCE_RE = re.compile(r"^\s*```(?:json)?\s*\n?(.*?)\n?\s*```\s*$", re.DOTALL | re.IGNORECASE)

_METADATA_STRINGS = ("class_name", "modality", "level", "intensity_curve")
_METADATA_LISTS = ("avoid_list", "equipment")


def _load(candidate: Any) -> Dict[str, Any]:
    if isinstance(candidate, (bytes, bytearray)):
        candidate = candidate.decode("utf-8", errors="replace")
    if isinstance(candidate, str):
        text = candidate.strip()
        fenced = _CODE_FENCE_RE.match(text)
        if fenced:
            text = fenced.group(1).strip()
        try:
            candidate = json.loads(text)
        except json.JSONDecodeError as e:
            raise CandidateFormatError(f"Candidate plan is not valid JSON: {e.msg}")
    if not isinstance(candidate, dict):
        raise CandidateFormatError("Candidate plan must be a JSON object")
    return candidate


def _sanitize_entry(entry: Any, defaults: PipelineDefaults) -> Optional[str]:
    """Coerce one timeline entry to "Ns | label" (or a bare label), capping its length.

    Accepts:
      - "45s | Squats", "Squats - 45s", "0:45 | Squats", "Squats"
      - {"name": "Squats", "length_sec": 45, "rest": false}
    """
    if isinstance(entry, dict):
        label = str(entry.get("name") or entry.get("label") or "").strip()
        if not label:
            return None
        if entry.get("rest") and "rest" not in label.lower():
            label = f"{label} (REST)"
        seconds = to_int(entry.get("length_sec", entry.get("duration_sec")))
        entry = f"{seconds}s | {label}" if seconds else label

    if not isinstance(entry, str):
        return None

    item = parse_timeline_item(entry)
    if item is None:
        return None
    if not item.is_timed:
        return item.label
    seconds = item.duration_sec
    if seconds > defaults.max_candidate_entry_sec:
        logger.debug(f"[sanitize] capped {item.label!r} from {seconds}s to {defaults.max_candidate_entry_sec}s")
        seconds = defaults.max_candidate_entry_sec
    return f"{seconds}s | {item.label}"


def _sanitize_block(block: Any, number: int, defaults: PipelineDefaults) -> Dict[str, Any]:
    if not isinstance(block, dict):
        raise CandidateFormatError(f"Block {number} is not an object")

    block_type = str(block.get("type") or block.get("normalized_type") or "INTERVAL").strip()
    timeline = block.get("timeline")
    entries = timeline if isinstance(timeline, list) else []
    cues = block.get("cues")
    rpe = to_int(block.get("intensity_target_rpe"))

    return {
        "id": str(block.get("id") or f"block-{number}"),
        "name": str(block.get("name") or block_type or f"Block {number}").strip(),
        "type": block_type,
        "normalized_type": block.get("normalized_type"),
        "duration": block.get("duration"),
        "duration_sec": to_int(block.get("duration_sec")),
        "pattern": str(block["pattern"]).strip() if block.get("pattern") else None,
        "timeline": [s for s in (_sanitize_entry(e, defaults) for e in entries) if s],
        "cues": [str(c) for c in cues if str(c).strip()] if isinstance(cues, list) else [],
        "intensity_target_rpe": rpe if rpe is not None and 1 <= rpe <= 10 else None,
    }


def _sanitize_metadata(metadata: Any, defaults: PipelineDefaults) -> Dict[str, Any]:
    if not isinstance(metadata, dict):
        raise CandidateFormatError("Candidate metadata must be an object")

    clean: Dict[str, Any] = {}
    for key in _METADATA_STRINGS:
        if metadata.get(key):
            clean[key] = str(metadata[key])
    for key in _METADATA_LISTS:
        if isinstance(metadata.get(key), list):
            clean[key] = [str(v) for v in metadata[key]]

    minutes = to_int(metadata.get("duration_min"))
    clean["duration_min"] = minutes if minutes and minutes > 0 else defaults.default_class_minutes

    policy = str(metadata.get("transition_policy") or "manual").lower()
    clean["transition_policy"] = policy if policy in ("manual", "auto") else "manual"
    clean["transition_sec"] = max(0, to_int(metadata.get("transition_sec")) or 0)
    return clean


def sanitize_candidate(candidate: Any, defaults: PipelineDefaults = DEFAULTS) -> Dict[str, Any]:
    """
    Validate and normalize a candidate plan.

    Args:
        candidate: Dict, or a JSON string optionally wrapped in a ``` fence

    Returns:
        New dict with sanitized metadata and blocks

    Raises:
        CandidateFormatError: On invalid JSON, an ``error`` key, or missing fields.
    """
    data = _load(candidate)

    if data.get("error"):
        raise CandidateFormatError(str(data["error"]))

    missing = [f for f in REQUIRED_FIELDS if data.get(f) is None]
    if missing:
        raise CandidateFormatError(f"Candidate plan is missing required fields: {', '.join(missing)}")

    blocks = data["blocks"]
    if not isinstance(blocks, list):
        raise CandidateFormatError("Candidate blocks must be a list")

    sanitized_blocks: List[Dict[str, Any]] = [
        _sanitize_block(block, number, defaults) for number, block in enumerate(blocks, start=1)
    ]
    return {
        "version": data["version"],
        "metadata": _sanitize_metadata(data["metadata"], defaults),
        "blocks": sanitized_blocks,
        "time_audit": data["time_audit"],
    }

"""Plan-level stages: assembly, duration allocation and reconciliation, validation."""

from .block_assembler import assemble_from_canonical, assemble_from_candidate
from .candidate_sanitizer import sanitize_candidate
from .duration_allocator import allocate_durations
from .duration_reconciler import reconcile_durations
from .plan_pipeline import PlanPipeline
from .plan_validator import validate_plan
from .transitions import insert_transitions

__all__ = [
    "assemble_from_canonical",
    "assemble_from_candidate",
    "sanitize_candidate",
    "allocate_durations",
    "reconcile_durations",
    "PlanPipeline",
    "validate_plan",
    "insert_transitions",
]

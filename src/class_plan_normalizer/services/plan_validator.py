"""Structural validation of a finished plan."""

import logging

from class_plan_normalizer.config import DEFAULTS, PipelineDefaults
from class_plan_normalizer.errors import INCOMPLETE_STRUCTURE_MESSAGE
from class_plan_normalizer.models import NormalizedType, Plan, ValidationOutcome, ValidationReport

logger = logging.getLogger(__name__)

NON_MAIN_TYPES = {NormalizedType.WARMUP, NormalizedType.COOLDOWN, NormalizedType.TRANSITION}

NO_WARMUP_WARNING = "No warmup block detected - consider adding one for safety"
NO_COOLDOWN_WARNING = "No cooldown block detected - consider adding one for recovery"
NO_MAIN_WARNING = "No main workout content detected"


def validate_plan(plan: Plan, target_sec: int, defaults: PipelineDefaults = DEFAULTS) -> ValidationReport:
    """
    Check a plan's structure.

    Only a plan with no blocks, or with no timeline entries anywhere, is a
    critical failure. Everything else produces warnings.
    """
    if not plan.blocks or all(not block.timeline for block in plan.blocks):
        logger.warning(f"[validate] critical: {INCOMPLETE_STRUCTURE_MESSAGE}")
        return ValidationReport(
            is_valid=False,
            errors=[INCOMPLETE_STRUCTURE_MESSAGE],
            outcome=ValidationOutcome.CRITICAL_FAILURE,
        )

    types = {NormalizedType(block.normalized_type) for block in plan.blocks}
    warnings = []
    if NormalizedType.WARMUP not in types:
        warnings.append(NO_WARMUP_WARNING)
    if NormalizedType.COOLDOWN not in types:
        warnings.append(NO_COOLDOWN_WARNING)
    if not types - NON_MAIN_TYPES:
        warnings.append(NO_MAIN_WARNING)

    total = plan.total_duration_sec
    allowed = defaults.validator_drift_multiplier * defaults.soft_buffer_for(target_sec)
    if abs(total - target_sec) > allowed:
        warnings.append(
            f"Plan duration ({round(total / 60, 1)} min) differs significantly "
            f"from target ({round(target_sec / 60, 1)} min)"
        )

    for warning in warnings:
        logger.warning(f"[validate] {warning}")

    return ValidationReport(
        is_valid=True,
        warnings=warnings,
        outcome=ValidationOutcome.OK_WITH_WARNINGS if warnings else ValidationOutcome.OK,
    )

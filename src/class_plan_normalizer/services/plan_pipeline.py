"""
Plan Pipeline

Runs one request through every stage:

    RAW -> CLEANED -> CANONICAL -> ASSEMBLED -> RECONCILED -> VALIDATED

Structured candidates enter at ASSEMBLED; their text stages are recorded as
pass-through. Failures never escape: they come back as PlanResult(success=False).
"""

import logging
from typing import Any, List, Optional

from class_plan_normalizer.config import DEFAULTS, PipelineDefaults
from class_plan_normalizer.errors import PlanParseError
from class_plan_normalizer.models import (
    Plan,
    PlanMetadata,
    PlanResult,
    PlanStage,
    ValidationOutcome,
)
from class_plan_normalizer.parsers.canonicalizer import canonicalize
from class_plan_normalizer.parsers.text_cleaner import clean_text

from .block_assembler import assemble_from_canonical, assemble_from_candidate
from .duration_reconciler import reconcile_durations
from .plan_validator import validate_plan
from .transitions import insert_transitions

logger = logging.getLogger(__name__)

TEXT_STAGES = [PlanStage.RAW, PlanStage.CLEANED, PlanStage.CANONICAL]


class PlanPipeline:
    """Turn raw text or a candidate plan into a reconciled, validated class plan."""

    def __init__(self, defaults: Optional[PipelineDefaults] = None):
        self.defaults = defaults or DEFAULTS

    def from_text(
        self,
        text: str,
        target_minutes: Optional[int] = None,
        metadata: Optional[PlanMetadata] = None,
    ) -> PlanResult:
        """
        Build a plan from pasted or extracted text.

        Args:
            text: Raw text, as extracted from the upload
            target_minutes: Requested class length; falls back to the metadata or the default
            metadata: Class-level metadata supplied alongside the text

        Returns:
            PlanResult
        """
        stages: List[PlanStage] = [PlanStage.RAW]
        try:
            cleaned = clean_text(text or "")
            stages.append(PlanStage.CLEANED)

            canonical = canonicalize(cleaned, self.defaults)
            stages.append(PlanStage.CANONICAL)

            blocks = assemble_from_canonical(canonical, self.defaults, fallback_text=cleaned)
            stages.append(PlanStage.ASSEMBLED)

            metadata = metadata or PlanMetadata(duration_min=self.defaults.default_class_minutes)
            if target_minutes:
                metadata = metadata.model_copy(update={"duration_min": target_minutes})
            plan = Plan(metadata=metadata).with_blocks(blocks)
            return self._finish(plan, stages)
        except PlanParseError as e:
            logger.warning(f"[pipeline] text rejected at {stages[-1].value}: {e.message}")
            return PlanResult(success=False, error=e.message, stages=stages)
        except Exception as e:
            logger.exception("[pipeline] unexpected failure while building plan from text")
            return PlanResult(success=False, error=f"Failed to build class plan: {e}", stages=stages)

    def from_candidate(self, candidate: Any, target_minutes: Optional[int] = None) -> PlanResult:
        """Build a plan from a structured candidate (dict or JSON string)."""
        stages: List[PlanStage] = list(TEXT_STAGES)
        try:
            plan = assemble_from_candidate(candidate, self.defaults)
            stages.append(PlanStage.ASSEMBLED)
            if target_minutes:
                plan = plan.with_metadata(duration_min=target_minutes)
            return self._finish(plan, stages)
        except PlanParseError as e:
            logger.warning(f"[pipeline] candidate rejected: {e.message}")
            return PlanResult(success=False, error=e.message, stages=stages)
        except Exception as e:
            logger.exception("[pipeline] unexpected failure while building plan from candidate")
            return PlanResult(success=False, error=f"Failed to build class plan: {e}", stages=stages)

    def _finish(self, plan: Plan, stages: List[PlanStage]) -> PlanResult:
        plan = insert_transitions(plan, self.defaults)
        target_sec = plan.metadata.duration_min * 60

        reconciled = reconcile_durations(plan, target_sec, self.defaults)
        stages.append(PlanStage.RECONCILED)

        report = validate_plan(reconciled.plan, target_sec, self.defaults)
        stages.append(PlanStage.VALIDATED)

        if report.outcome == ValidationOutcome.CRITICAL_FAILURE:
            return PlanResult(
                success=False,
                error="; ".join(report.errors),
                stages=stages,
                outcome=report.outcome,
            )

        warnings = []
        if reconciled.repaired and reconciled.message:
            warnings.append(reconciled.message)
        warnings.extend(report.warnings)

        logger.info(
            f"[pipeline] {len(reconciled.plan.blocks)} blocks, "
            f"{reconciled.plan.total_duration_sec}s for a {target_sec}s target ({report.outcome})"
        )
        return PlanResult(
            success=True,
            plan=reconciled.plan,
            warning="; ".join(warnings) or None,
            stages=stages,
            outcome=report.outcome,
        )

"""API routes for class plan normalization."""

import logging
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Body
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from class_plan_normalizer.config import settings
from class_plan_normalizer.errors import PlanParseError
from class_plan_normalizer.models import PlanMetadata, PlanResult
from class_plan_normalizer.parsers.canonicalizer import canonicalize
from class_plan_normalizer.parsers.text_cleaner import clean_text
from class_plan_normalizer.services.block_assembler import assemble_from_candidate
from class_plan_normalizer.services.duration_reconciler import reconcile_durations
from class_plan_normalizer.services.plan_pipeline import PlanPipeline

logger = logging.getLogger(__name__)

router = APIRouter()

defaults = settings.pipeline_defaults()
pipeline = PlanPipeline(defaults)


class TextPlanRequest(BaseModel):
    """Raw text plus optional class metadata."""
    text: str
    target_minutes: Optional[int] = Field(default=None, ge=1)
    class_name: Optional[str] = None
    modality: Optional[str] = None
    level: Optional[str] = None
    transition_policy: Literal["manual", "auto"] = "manual"
    transition_sec: int = Field(default=0, ge=0)
    avoid_list: List[str] = Field(default_factory=list)
    equipment: List[str] = Field(default_factory=list)

    def to_metadata(self) -> PlanMetadata:
        fields = self.model_dump(
            exclude={"text", "target_minutes"},
            exclude_none=True,
        )
        fields["duration_min"] = self.target_minutes or defaults.default_class_minutes
        return PlanMetadata(**fields)


class CandidatePlanRequest(BaseModel):
    candidate: Any = Field(..., description="Candidate plan as an object or a JSON string")
    target_minutes: Optional[int] = Field(default=None, ge=1)


class ReconcileRequest(BaseModel):
    plan: Dict[str, Any]
    target_minutes: int = Field(..., ge=1)


def _result_response(result: PlanResult) -> JSONResponse:
    return JSONResponse(content=result.to_payload(), status_code=200 if result.success else 422)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------


@router.post("/plans/from-text")
def plan_from_text(request: TextPlanRequest):
    """Build a reconciled class plan from pasted or extracted text."""
    result = pipeline.from_text(request.text, request.target_minutes, request.to_metadata())
    return _result_response(result)


@router.post("/plans/from-candidate")
def plan_from_candidate(request: CandidatePlanRequest):
    """Build a reconciled class plan from a language-model candidate."""
    result = pipeline.from_candidate(request.candidate, request.target_minutes)
    return _result_response(result)


@router.post("/plans/reconcile")
def reconcile_plan(request: ReconcileRequest):
    """Re-run duration reconciliation on an existing plan against a new target."""
    try:
        plan = assemble_from_candidate(request.plan, defaults)
    except PlanParseError as e:
        return JSONResponse(content={"error": e.message}, status_code=422)

    plan = plan.with_metadata(duration_min=request.target_minutes)
    result = reconcile_durations(plan, request.target_minutes * 60, defaults)
    return JSONResponse(
        content={
            "plan": result.plan.to_payload(),
            "was_modified": result.was_modified,
            "exhausted": result.exhausted,
            "message": result.message,
        }
    )


# ---------------------------------------------------------------------------
# Debug
# ---------------------------------------------------------------------------


@router.post("/text/canonical")
def text_to_canonical(text: str = Body(..., embed=True)):
    """Show the canonical form the assembler would see for ``text``."""
    return {"canonical": canonicalize(clean_text(text), defaults)}

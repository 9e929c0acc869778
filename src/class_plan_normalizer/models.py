"""
Plan Models

Pydantic models for the class plan schema every pipeline stage reads and
produces. Plans are rebuilt rather than mutated: the ``with_*`` helpers return
new objects with derived fields (durations, offsets, time audit) recomputed.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from class_plan_normalizer.utils import format_mmss


class NormalizedType(str, Enum):
    """Closed set of block types the timer UI knows how to render."""
    WARMUP = "WARMUP"
    INTERVAL = "INTERVAL"
    COOLDOWN = "COOLDOWN"
    COMBO = "COMBO"
    TABATA = "TABATA"
    EMOM = "EMOM"
    PYRAMID = "PYRAMID"
    RANDOMIZED = "RANDOMIZED"
    LADDER = "LADDER"
    FINISHER = "FINISHER"
    TRANSITION = "TRANSITION"
    AMRAP = "AMRAP"
    SUPERSET = "SUPERSET"
    GIANT_SETS = "GIANT_SETS"
    CHALLENGE = "CHALLENGE"


class TimelineEntry(BaseModel):
    """One timed unit (exercise, rest or transition) inside a block."""
    duration_sec: int = Field(..., ge=5)
    label: str
    is_rest: bool = False
    start_sec: int = Field(default=0, ge=0, description="Offset inside the owning block")

    def to_line(self) -> str:
        return f"{self.duration_sec}s | {self.label}"


class Block(BaseModel):
    """A contiguous segment of a class with one workout type."""
    id: str
    name: str
    type: str = Field(default="INTERVAL", description="Free-text type as written by the source")
    normalized_type: NormalizedType = NormalizedType.INTERVAL
    duration: str = Field(default="0:00", description="Display string m:ss")
    duration_sec: int = Field(default=0, ge=0)
    start_sec: int = Field(default=0, ge=0, description="Offset inside the plan")
    pattern: Optional[str] = None
    intensity_target_rpe: Optional[int] = Field(default=None, ge=1, le=10)
    timeline: List[TimelineEntry] = Field(default_factory=list)
    cues: List[str] = Field(default_factory=list)

    class Config:
        use_enum_values = True

    @classmethod
    def build(cls, *, timeline: List[TimelineEntry], **fields: Any) -> "Block":
        """Construct a block whose duration fields are derived from ``timeline``."""
        return cls(**fields).with_timeline(timeline)

    def with_timeline(self, timeline: List[TimelineEntry]) -> "Block":
        """Return a copy holding ``timeline`` with offsets and totals recomputed."""
        placed = []
        offset = 0
        for entry in timeline:
            placed.append(entry.model_copy(update={"start_sec": offset}))
            offset += entry.duration_sec
        return self.model_copy(
            update={"timeline": placed, "duration_sec": offset, "duration": format_mmss(offset)}
        )

    def with_durations(self, durations: List[int]) -> "Block":
        """Return a copy whose entries take the given durations, in order."""
        timeline = [
            entry.model_copy(update={"duration_sec": seconds})
            for entry, seconds in zip(self.timeline, durations)
        ]
        return self.with_timeline(timeline)


class PlanMetadata(BaseModel):
    """Class-level information supplied by the instructor or the candidate."""
    class_name: str = "Uploaded Workout"
    duration_min: int = Field(default=45, ge=0, description="Requested class length")
    modality: str = "Mixed"
    level: str = "All Levels"
    intensity_curve: str = "Variable"
    transition_policy: Literal["manual", "auto"] = "manual"
    transition_sec: int = Field(default=0, ge=0)
    avoid_list: List[str] = Field(default_factory=list)
    equipment: List[str] = Field(default_factory=list)

    class Config:
        extra = "ignore"


class TimeAudit(BaseModel):
    """Derived totals, in minutes."""
    sum_min: float = 0
    buffer_min: float = 0

    @classmethod
    def for_totals(cls, total_sec: int, target_min: int) -> "TimeAudit":
        sum_min = round(total_sec / 60, 2)
        return cls(sum_min=sum_min, buffer_min=round(target_min - sum_min, 2))


class Plan(BaseModel):
    """A complete class plan: ordered blocks plus metadata."""
    version: str = "enhanced"
    metadata: PlanMetadata = Field(default_factory=PlanMetadata)
    blocks: List[Block] = Field(default_factory=list)
    time_audit: TimeAudit = Field(default_factory=TimeAudit)

    @property
    def total_duration_sec(self) -> int:
        return sum(block.duration_sec for block in self.blocks)

    def with_blocks(self, blocks: List[Block]) -> "Plan":
        """Return a copy holding ``blocks`` with block offsets and the time audit recomputed."""
        placed = []
        offset = 0
        for block in blocks:
            placed.append(block.model_copy(update={"start_sec": offset}))
            offset += block.duration_sec
        audit = TimeAudit.for_totals(offset, self.metadata.duration_min)
        return self.model_copy(update={"blocks": placed, "time_audit": audit})

    def with_metadata(self, **changes: Any) -> "Plan":
        metadata = self.metadata.model_copy(update=changes)
        return self.model_copy(update={"metadata": metadata}).with_blocks(self.blocks)

    def to_payload(self) -> Dict[str, Any]:
        """Render the external JSON shape, with timeline entries as "Ns | label" strings."""
        data = self.model_dump(mode="json")
        for block_data, block in zip(data["blocks"], self.blocks):
            block_data["timeline"] = [entry.to_line() for entry in block.timeline]
        data["total_duration_sec"] = self.total_duration_sec
        return data


class PlanStage(str, Enum):
    """Per-request pipeline states, in order."""
    RAW = "raw"
    CLEANED = "cleaned"
    CANONICAL = "canonical"
    ASSEMBLED = "assembled"
    RECONCILED = "reconciled"
    VALIDATED = "validated"


class ValidationOutcome(str, Enum):
    OK = "ok"
    OK_WITH_WARNINGS = "ok_with_warnings"
    CRITICAL_FAILURE = "critical_failure"


class ValidationReport(BaseModel):
    """Result of structural validation"""
    is_valid: bool = True
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    outcome: ValidationOutcome = ValidationOutcome.OK

    class Config:
        use_enum_values = True


class ReconcileResult(BaseModel):
    """Outcome of duration reconciliation."""
    plan: Plan
    was_modified: bool = False
    repaired: bool = Field(default=False, description="A trim or pad strategy ran")
    exhausted: bool = False
    message: Optional[str] = None


class PlanResult(BaseModel):
    """Result of running the pipeline on one request; never raised, always returned."""
    success: bool
    plan: Optional[Plan] = None
    warning: Optional[str] = None
    error: Optional[str] = None
    stages: List[PlanStage] = Field(default_factory=list)
    outcome: Optional[ValidationOutcome] = None

    class Config:
        use_enum_values = True

    def to_payload(self) -> Dict[str, Any]:
        data = self.model_dump(mode="json", exclude={"plan"})
        data["plan"] = self.plan.to_payload() if self.plan is not None else None
        return data

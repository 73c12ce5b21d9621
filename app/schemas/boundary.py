"""
Analysis results exchanged between the boundary services.

These are value objects: computed on demand, never written back as the
source of truth.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.enums import (
    AdjustmentType,
    PatternType,
    Phase,
    ProposalStatus,
    RecommendationType,
    SegmentType,
    Trend,
)


class BoundaryEffectivenessEcho(BaseModel):
    model_config = ConfigDict(frozen=True)

    questions_per_hour: float
    current_impact: float
    utilization_rate: float = Field(ge=0.0, le=1.0)


class ClassAnalytics(BaseModel):
    """Class-level snapshot for one (course, assignment) pair."""

    model_config = ConfigDict(frozen=True)

    course_id: str
    assignment_id: str
    student_count: int
    average_ai_usage: float  # interactions per hour of writing
    average_reflection_quality: float  # 0-100
    struggling_ratio: float = Field(ge=0.0, le=1.0)
    over_dependent_ratio: float = Field(ge=0.0, le=1.0)
    under_utilizing_ratio: float = Field(ge=0.0, le=1.0)
    completion_rate: float = Field(ge=0.0, le=1.0)
    average_time_to_complete: float  # seconds
    boundary_effectiveness: BoundaryEffectivenessEcho
    generated_at: datetime


class StudentMetrics(BaseModel):
    ai_usage_rate: float
    reflection_quality: float
    independence_score: float
    progress_rate: float


class SegmentedStudent(BaseModel):
    id: str
    name: str
    primary_issue: str
    metrics: StudentMetrics


class StudentSegment(BaseModel):
    type: SegmentType
    students: List[SegmentedStudent] = Field(default_factory=list)


class EffectivenessAssessment(BaseModel):
    overall: int = Field(ge=0, le=100)
    issues: List[str] = Field(default_factory=list)


class BoundaryChange(BaseModel):
    parameter: str
    current_value: Any
    recommended_value: Any
    rationale: str
    expected_impact: str


class ClassAdjustments(BaseModel):
    current_effectiveness: int
    recommended_changes: List[BoundaryChange]
    evidence: List[str]
    expected_impact: str


class IndividualAdjustment(BaseModel):
    student_id: str
    current_issue: str
    recommended_boundary: str
    duration: str
    monitoring_plan: str


class TemporalStrategy(BaseModel):
    phase: Phase
    progress: float
    current_support: str
    recommended_support: str
    rationale: str


class BoundaryRecommendation(BaseModel):
    assignment_id: str
    recommendation_type: RecommendationType
    class_adjustments: Optional[ClassAdjustments] = None
    individual_adjustments: Optional[List[IndividualAdjustment]] = None
    temporal_strategy: Optional[TemporalStrategy] = None


class RealtimeMetrics(BaseModel):
    ai_dependency_rate: float = 0.0
    struggling_rate: float = 0.0
    ai_usage_rate: float = 0.0
    average_reflection_quality: float = 0.0
    completion_rate: float = 0.0
    average_time_on_task: float = 0.0  # minutes


class PerformanceMetrics(BaseModel):
    """Rolling-window performance snapshot used for pattern detection."""

    assignment_id: str
    timestamp: datetime
    window_days: int
    metrics: RealtimeMetrics
    trends: Dict[str, Trend] = Field(default_factory=dict)


class PatternIndicator(BaseModel):
    metric: str
    value: float
    threshold: float
    direction: str  # above, below


class AdjustmentPattern(BaseModel):
    type: PatternType
    indicators: List[PatternIndicator]
    confidence: float = Field(ge=0.0, le=1.0)


class EvidenceItem(BaseModel):
    metric: str
    current_value: float
    threshold: float
    trend: Trend


class ProposedAdjustment(BaseModel):
    id: Optional[str] = None
    type: AdjustmentType
    assignment_id: str
    reason: str
    specific_change: str
    affected_students: List[str]
    expected_outcome: str
    evidence: List[EvidenceItem]
    requires_approval: bool = True
    confidence: float = 0.0
    status: Optional[ProposalStatus] = None
    educator_notes: Optional[str] = None
    created_at: Optional[datetime] = None


class GateDecision(BaseModel):
    accepted: bool
    reason: Optional[str] = None


class AdjustmentLogEntry(BaseModel):
    id: str
    proposal_id: Optional[str]
    previous_value: Dict[str, Any]
    new_value: Dict[str, Any]
    reason: str
    implemented_by: str
    implemented_at: datetime
    impact: Optional[Dict[str, Any]] = None


class EffectivenessReport(BaseModel):
    assignment_id: str
    assessment: EffectivenessAssessment
    current_boundaries: Dict[str, Any]
    adjustment_history: List[AdjustmentLogEntry]
    impact_summary: Optional[Dict[str, Any]] = None

"""
Advisory boundary recommendations.

Recommendations are analysis output only; nothing here changes an
assignment's settings. Changes go through a proposal and educator approval.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from app.models.boundary import Assignment
from app.models.enums import Phase, RecommendationType, SegmentType
from app.schemas.boundary import (
    BoundaryChange,
    BoundaryRecommendation,
    ClassAdjustments,
    ClassAnalytics,
    EffectivenessAssessment,
    IndividualAdjustment,
    SegmentedStudent,
    StudentSegment,
    TemporalStrategy,
)
from app.services.boundary_thresholds import (
    CLASS_WIDE_EFFECTIVENESS_MAX,
    EARLY_PHASE_END,
    EARLY_PHASE_STRUGGLING_RATIO,
    MIDDLE_PHASE_END,
    MIN_QUESTIONS_PER_HOUR,
    OVER_DEPENDENT_RATIO_MAX,
    QUESTIONS_PER_HOUR_STEP,
    REFLECTION_QUALITY_TARGET,
    UNDER_UTILIZATION_RATE,
    UNDER_UTILIZING_RATIO_MAX,
)

logger = logging.getLogger("app.recommendations")

# Per-segment duration and monitoring plan for individual adjustments
INDIVIDUAL_PLANS = {
    SegmentType.STRUGGLING: ("1-2 weeks", "Daily progress checks with weekly adjustments"),
    SegmentType.OVER_DEPENDENT: ("2-3 weeks", "Track independence metrics, gradual reduction"),
}


def class_changes(analytics: ClassAnalytics, settings: Dict[str, Any]) -> List[BoundaryChange]:
    """Concrete setting changes for each class-level issue, echoing the live values."""
    changes: List[BoundaryChange] = []
    questions_per_hour = analytics.boundary_effectiveness.questions_per_hour

    if analytics.over_dependent_ratio > OVER_DEPENDENT_RATIO_MAX:
        changes.append(
            BoundaryChange(
                parameter="questions_per_hour",
                current_value=questions_per_hour,
                recommended_value=max(MIN_QUESTIONS_PER_HOUR, questions_per_hour - QUESTIONS_PER_HOUR_STEP),
                rationale="High AI dependency detected - reducing access to encourage independent thinking",
                expected_impact="20-30% reduction in AI requests, improved independent problem-solving",
            )
        )
        changes.append(
            BoundaryChange(
                parameter="reflection_requirement",
                current_value=settings.get("reflection_requirement", "basic"),
                recommended_value="analytical",
                rationale="Requiring deeper reflection to ensure meaningful AI usage",
                expected_impact="Improved reflection quality and reduced superficial AI requests",
            )
        )

    if analytics.under_utilizing_ratio > UNDER_UTILIZING_RATIO_MAX:
        changes.append(
            BoundaryChange(
                parameter="proactive_prompts",
                current_value=settings.get("proactive_prompts", False),
                recommended_value=True,
                rationale="Enable proactive AI suggestions when struggle detected",
                expected_impact="Better support utilization by struggling students",
            )
        )
        changes.append(
            BoundaryChange(
                parameter="struggle_detection_sensitivity",
                current_value=settings.get("struggle_detection_sensitivity", "normal"),
                recommended_value="high",
                rationale="Increase sensitivity to detect struggling students earlier",
                expected_impact="Earlier intervention and support for at-risk students",
            )
        )

    if analytics.average_reflection_quality < REFLECTION_QUALITY_TARGET:
        changes.append(
            BoundaryChange(
                parameter="question_complexity",
                current_value=settings.get("complexity_level", "adaptive"),
                recommended_value="simplified",
                rationale="Simplify questions to improve engagement and reflection quality",
                expected_impact="15-20% improvement in reflection quality scores",
            )
        )

    return changes


def individual_boundary(student: SegmentedStudent, segment_type: SegmentType) -> str:
    if segment_type == SegmentType.OVER_DEPENDENT:
        return "Gradual reduction: 3 questions/hour week 1, 2 questions/hour week 2, with emphasis on reflection depth"
    if segment_type == SegmentType.STRUGGLING:
        if student.metrics.ai_usage_rate < UNDER_UTILIZATION_RATE:
            return "Increase access to 8 questions/hour with proactive prompts and simplified questions"
        return "Maintain current access but switch to more scaffolded, step-by-step questions"
    if segment_type == SegmentType.UNDER_UTILIZING:
        return "Enable push notifications for AI assistance, reduce barriers with quick-access prompts"
    return "Maintain current boundaries with continued monitoring"


def assignment_progress(assignment: Assignment, now: datetime) -> float:
    """
    Elapsed fraction of the assignment's timeline, clamped to [0, 1].

    Without a due date the assignment is treated as just started.
    """
    if assignment.due_date is None:
        return 0.0

    total = (assignment.due_date - assignment.created_at).total_seconds()
    if total <= 0:
        return 1.0

    elapsed = (now - assignment.created_at).total_seconds()
    return min(1.0, max(0.0, elapsed / total))


def temporal_strategy(analytics: ClassAnalytics, assignment: Assignment, now: datetime) -> TemporalStrategy:
    progress = assignment_progress(assignment, now)
    current_support = f"{analytics.boundary_effectiveness.questions_per_hour:g} questions/hour"

    if progress < EARLY_PHASE_END:
        phase = Phase.EARLY
        if analytics.struggling_ratio > EARLY_PHASE_STRUGGLING_RATIO:
            recommended = "Increase to 7-8 questions/hour with brainstorming focus"
            rationale = "Early phase requires more support for idea generation and topic exploration"
        else:
            recommended = "Maintain current level with emphasis on exploratory questions"
            rationale = "Current support level appropriate for early exploration phase"
    elif progress < MIDDLE_PHASE_END:
        phase = Phase.MIDDLE
        recommended = "Moderate at 4-5 questions/hour focusing on structure and argument development"
        rationale = "Middle phase should balance support with independence building"
    else:
        phase = Phase.LATE
        recommended = "Reduce to 2-3 questions/hour for revision and polish only"
        rationale = "Late phase should emphasize independent refinement with minimal AI assistance"

    return TemporalStrategy(
        phase=phase,
        progress=progress,
        current_support=current_support,
        recommended_support=recommended,
        rationale=rationale,
    )


def generate(
    analytics: ClassAnalytics,
    segments: List[StudentSegment],
    effectiveness: EffectivenessAssessment,
    assignment: Assignment,
    now: datetime,
) -> List[BoundaryRecommendation]:
    """
    Build class-wide, individual and temporal recommendations.

    Args:
        analytics: Class snapshot
        segments: Student segments for the same assignment
        effectiveness: Assessment of the current boundaries
        assignment: Assignment whose settings and timeline are used
        now: Reference time for the temporal phase

    Returns:
        Recommendations; the temporal one is always last
    """
    recommendations: List[BoundaryRecommendation] = []

    if effectiveness.overall < CLASS_WIDE_EFFECTIVENESS_MAX:
        recommendations.append(
            BoundaryRecommendation(
                assignment_id=assignment.id,
                recommendation_type=RecommendationType.CLASS_WIDE,
                class_adjustments=ClassAdjustments(
                    current_effectiveness=effectiveness.overall,
                    recommended_changes=class_changes(analytics, assignment.current_settings()),
                    evidence=list(effectiveness.issues),
                    expected_impact="Improved engagement and learning outcomes",
                ),
            )
        )

    by_type = {segment.type: segment for segment in segments}
    individual: List[IndividualAdjustment] = []
    for segment_type in (SegmentType.STRUGGLING, SegmentType.OVER_DEPENDENT):
        segment: Optional[StudentSegment] = by_type.get(segment_type)
        if segment is None:
            continue
        duration, monitoring_plan = INDIVIDUAL_PLANS[segment_type]
        for student in segment.students:
            individual.append(
                IndividualAdjustment(
                    student_id=student.id,
                    current_issue=student.primary_issue,
                    recommended_boundary=individual_boundary(student, segment_type),
                    duration=duration,
                    monitoring_plan=monitoring_plan,
                )
            )

    if individual:
        recommendations.append(
            BoundaryRecommendation(
                assignment_id=assignment.id,
                recommendation_type=RecommendationType.INDIVIDUAL,
                individual_adjustments=individual,
            )
        )

    recommendations.append(
        BoundaryRecommendation(
            assignment_id=assignment.id,
            recommendation_type=RecommendationType.TEMPORAL,
            temporal_strategy=temporal_strategy(analytics, assignment, now),
        )
    )

    logger.info(
        f"Generated {len(recommendations)} recommendations for assignment {assignment.id} "
        f"(effectiveness {effectiveness.overall})"
    )
    return recommendations

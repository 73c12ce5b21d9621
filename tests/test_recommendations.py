"""
Tests for recommendation generation.
"""

from datetime import datetime, timedelta

import pytest

from app.models.boundary import Assignment
from app.models.enums import Phase, RecommendationType, SegmentType
from app.schemas.boundary import (
    BoundaryEffectivenessEcho,
    ClassAnalytics,
    EffectivenessAssessment,
    SegmentedStudent,
    StudentMetrics,
    StudentSegment,
)
from app.services.recommendation_service import (
    assignment_progress,
    class_changes,
    generate,
    individual_boundary,
    temporal_strategy,
)

NOW = datetime(2025, 3, 10, 12, 0, 0)


def _assignment(progress=0.5, settings=None, due=True):
    created = NOW - timedelta(days=10 * progress)
    return Assignment(
        id="essay-1",
        course_id="course-101",
        title="Essay",
        ai_boundary_settings=settings,
        created_at=created,
        due_date=created + timedelta(days=10) if due else None,
    )


def _analytics(**overrides):
    values = dict(
        course_id="course-101",
        assignment_id="essay-1",
        student_count=10,
        average_ai_usage=2.0,
        average_reflection_quality=75.0,
        struggling_ratio=0.1,
        over_dependent_ratio=0.1,
        under_utilizing_ratio=0.0,
        completion_rate=0.9,
        average_time_to_complete=3600.0,
        generated_at=NOW,
    )
    qph = overrides.pop("questions_per_hour", 5)
    values.update(overrides)
    return ClassAnalytics(
        boundary_effectiveness=BoundaryEffectivenessEcho(questions_per_hour=qph, current_impact=80, utilization_rate=0.8),
        **values,
    )


def _student(student_id, usage=2.0, issue="issue"):
    return SegmentedStudent(
        id=student_id,
        name=student_id,
        primary_issue=issue,
        metrics=StudentMetrics(ai_usage_rate=usage, reflection_quality=50, independence_score=50, progress_rate=100),
    )


class TestTemporalStrategy:
    """Test phase selection from the assignment timeline."""

    def test_late_phase_at_eighty_percent(self):
        strategy = temporal_strategy(_analytics(), _assignment(progress=0.8), NOW)

        assert strategy.phase == Phase.LATE
        assert strategy.progress == pytest.approx(0.8)
        assert strategy.recommended_support == "Reduce to 2-3 questions/hour for revision and polish only"
        assert strategy.current_support == "5 questions/hour"

    def test_late_phase_regardless_of_other_metrics(self):
        analytics = _analytics(struggling_ratio=0.9, over_dependent_ratio=0.9, completion_rate=0.0)

        strategy = temporal_strategy(analytics, _assignment(progress=0.8), NOW)

        assert strategy.phase == Phase.LATE

    def test_middle_phase(self):
        strategy = temporal_strategy(_analytics(), _assignment(progress=0.5), NOW)

        assert strategy.phase == Phase.MIDDLE
        assert "4-5 questions/hour" in strategy.recommended_support

    def test_early_phase_with_many_struggling(self):
        strategy = temporal_strategy(_analytics(struggling_ratio=0.4), _assignment(progress=0.1), NOW)

        assert strategy.phase == Phase.EARLY
        assert strategy.recommended_support == "Increase to 7-8 questions/hour with brainstorming focus"

    def test_early_phase_maintains_support(self):
        strategy = temporal_strategy(_analytics(struggling_ratio=0.3), _assignment(progress=0.1), NOW)

        assert strategy.recommended_support == "Maintain current level with emphasis on exploratory questions"

    def test_progress_without_due_date_is_zero(self):
        assert assignment_progress(_assignment(due=False), NOW) == 0.0

    def test_progress_clamped_after_due_date(self):
        assert assignment_progress(_assignment(progress=1.5), NOW) == 1.0


class TestClassChanges:
    """Test concrete class-wide boundary changes."""

    def test_over_dependence_lowers_questions(self):
        changes = class_changes(_analytics(over_dependent_ratio=0.5, questions_per_hour=5), {"reflection_requirement": "basic"})

        by_param = {c.parameter: c for c in changes}
        assert by_param["questions_per_hour"].current_value == 5
        assert by_param["questions_per_hour"].recommended_value == 3
        assert by_param["reflection_requirement"].recommended_value == "analytical"

    def test_questions_never_below_minimum(self):
        changes = class_changes(_analytics(over_dependent_ratio=0.5, questions_per_hour=3), {})

        assert changes[0].recommended_value == 2

    def test_under_utilization_enables_prompts(self):
        changes = class_changes(_analytics(under_utilizing_ratio=0.3), {"proactive_prompts": False})

        by_param = {c.parameter: c for c in changes}
        assert by_param["proactive_prompts"].recommended_value is True
        assert by_param["struggle_detection_sensitivity"].recommended_value == "high"

    def test_low_reflection_simplifies_questions(self):
        changes = class_changes(_analytics(average_reflection_quality=40), {"complexity_level": "advanced"})

        assert [c.parameter for c in changes] == ["question_complexity"]
        assert changes[0].current_value == "advanced"
        assert changes[0].recommended_value == "simplified"


class TestIndividualBoundary:
    def test_struggling_without_usage_gets_more_access(self):
        text = individual_boundary(_student("s1", usage=0.5), SegmentType.STRUGGLING)

        assert text.startswith("Increase access to 8 questions/hour")

    def test_struggling_with_usage_gets_scaffolding(self):
        text = individual_boundary(_student("s1", usage=2), SegmentType.STRUGGLING)

        assert text.startswith("Maintain current access")

    def test_over_dependent_gradual_reduction(self):
        assert individual_boundary(_student("s1", usage=8), SegmentType.OVER_DEPENDENT).startswith("Gradual reduction")


class TestGenerate:
    """Test which recommendation kinds are emitted."""

    def test_only_temporal_for_healthy_class(self):
        recommendations = generate(
            _analytics(), [], EffectivenessAssessment(overall=90), _assignment(progress=0.8), NOW
        )

        assert [r.recommendation_type for r in recommendations] == [RecommendationType.TEMPORAL]

    def test_class_wide_below_seventy(self):
        effectiveness = EffectivenessAssessment(overall=65, issues=["40% of students show AI over-dependence"])

        recommendations = generate(
            _analytics(over_dependent_ratio=0.4), [], effectiveness, _assignment(), NOW
        )

        class_wide = recommendations[0]
        assert class_wide.recommendation_type == RecommendationType.CLASS_WIDE
        assert class_wide.class_adjustments.current_effectiveness == 65
        assert class_wide.class_adjustments.evidence == effectiveness.issues
        assert class_wide.individual_adjustments is None

    def test_no_class_wide_at_seventy(self):
        recommendations = generate(_analytics(), [], EffectivenessAssessment(overall=70), _assignment(), NOW)

        assert RecommendationType.CLASS_WIDE not in [r.recommendation_type for r in recommendations]

    def test_individual_for_struggling_and_dependent(self):
        segments = [
            StudentSegment(type=SegmentType.STRUGGLING, students=[_student("s1")]),
            StudentSegment(type=SegmentType.OVER_DEPENDENT, students=[_student("s2", usage=9)]),
            StudentSegment(type=SegmentType.THRIVING, students=[_student("s3")]),
        ]

        recommendations = generate(_analytics(), segments, EffectivenessAssessment(overall=90), _assignment(), NOW)

        individual = [r for r in recommendations if r.recommendation_type == RecommendationType.INDIVIDUAL]
        assert len(individual) == 1
        adjustments = {a.student_id: a for a in individual[0].individual_adjustments}
        assert set(adjustments) == {"s1", "s2"}
        assert adjustments["s1"].duration == "1-2 weeks"
        assert adjustments["s2"].duration == "2-3 weeks"
        assert recommendations[-1].recommendation_type == RecommendationType.TEMPORAL

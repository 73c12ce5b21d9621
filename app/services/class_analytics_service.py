"""
Class-level analytics for an assignment's AI boundaries.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.models.boundary import Assignment
from app.repositories.base import UnitOfWork
from app.schemas.boundary import BoundaryEffectivenessEcho, ClassAnalytics
from app.services.analytics_cache import AnalyticsCache
from app.services.boundary_thresholds import (
    ANALYTICS_CACHE_TTL_SECONDS,
    DEFAULT_QUESTIONS_PER_HOUR,
    OVER_DEPENDENCE_RATE,
)
from app.services.config_service import config_service
from app.services.errors import NotFoundError
from app.services.student_activity import StudentActivity, collect_student_activity, is_struggling

logger = logging.getLogger("app.analytics")

AnalyticsKey = Tuple[str, str]


def _ratio(count: int, total: int) -> float:
    return count / total if total else 0.0


def configured_questions_per_hour(settings: Dict[str, Any]) -> float:
    """Live question limit; unset, zero or non-numeric values fall back to the default."""
    value = settings.get("questions_per_hour")
    if not value:
        return DEFAULT_QUESTIONS_PER_HOUR
    if isinstance(value, bool):
        logger.warning(f"Ignoring boolean questions_per_hour setting: {value!r}")
        return DEFAULT_QUESTIONS_PER_HOUR
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-numeric questions_per_hour setting: {value!r}")
        return DEFAULT_QUESTIONS_PER_HOUR


def calculate_impact(reflection_quality: float, completion_rate: float) -> int:
    """Blend reflection quality (0-100) and completion (0-1) into a 0-100 impact score."""
    return round(reflection_quality * 0.6 + completion_rate * 100 * 0.4)


def build_class_analytics(
    course_id: str,
    assignment: Assignment,
    activity: List[StudentActivity],
    generated_at: datetime,
) -> ClassAnalytics:
    """Fold per-student summaries into one snapshot; an empty roster gives zeros."""
    total = len(activity)
    settings = assignment.current_settings()

    reflection_scores = [score for student in activity for score in student.reflection_scores]
    average_reflection = sum(reflection_scores) / len(reflection_scores) if reflection_scores else 0.0

    total_sessions = sum(student.session_count for student in activity)
    total_seconds = sum(student.session_seconds for student in activity)

    completion_rate = _ratio(sum(1 for s in activity if s.submitted), total)

    return ClassAnalytics(
        course_id=course_id,
        assignment_id=assignment.id,
        student_count=total,
        average_ai_usage=sum(s.usage_rate for s in activity) / total if total else 0.0,
        average_reflection_quality=average_reflection,
        struggling_ratio=_ratio(sum(1 for s in activity if is_struggling(s)), total),
        over_dependent_ratio=_ratio(sum(1 for s in activity if s.usage_rate > OVER_DEPENDENCE_RATE), total),
        under_utilizing_ratio=_ratio(sum(1 for s in activity if s.high_load and s.interaction_count == 0), total),
        completion_rate=completion_rate,
        average_time_to_complete=total_seconds / total_sessions if total_sessions else 0.0,
        boundary_effectiveness=BoundaryEffectivenessEcho(
            questions_per_hour=configured_questions_per_hour(settings),
            current_impact=calculate_impact(average_reflection, completion_rate),
            utilization_rate=_ratio(sum(1 for s in activity if s.interaction_count > 0), total),
        ),
        generated_at=generated_at,
    )


class ClassAnalyticsAggregator:
    """Computes and caches ``ClassAnalytics`` snapshots."""

    def __init__(
        self,
        uow: UnitOfWork,
        cache: Optional[AnalyticsCache[ClassAnalytics]] = None,
        clock: Callable[[], datetime] = config_service.now,
    ):
        self.uow = uow
        self.clock = clock
        self.cache = cache if cache is not None else AnalyticsCache(ANALYTICS_CACHE_TTL_SECONDS, clock=clock)
        self.logger = logger

    def gather(self, course_id: str, assignment_id: str) -> ClassAnalytics:
        """
        Return the class snapshot for an assignment.

        A cached snapshot is returned verbatim while it is fresh.

        Raises:
            NotFoundError: if the assignment does not exist
        """
        key: AnalyticsKey = (course_id, assignment_id)
        cached = self.cache.get(key)
        if cached is not None:
            self.logger.debug(f"Analytics cache hit for {key}")
            return cached

        assignment = self.uow.assignments.get(assignment_id)
        if assignment is None:
            raise NotFoundError("Assignment", assignment_id)

        activity = collect_student_activity(self.uow.telemetry, course_id, assignment_id)
        analytics = build_class_analytics(course_id, assignment, activity, self.clock())
        self.cache.set(key, analytics)

        self.logger.info(
            f"Computed analytics for assignment {assignment_id}: {analytics.student_count} students, "
            f"over-dependent {analytics.over_dependent_ratio:.2f}, completion {analytics.completion_rate:.2f}"
        )
        return analytics

    def invalidate_assignment(self, assignment_id: str) -> int:
        """Drop cached snapshots for an assignment after its settings change."""
        return self.cache.invalidate(lambda key: key[1] == assignment_id)

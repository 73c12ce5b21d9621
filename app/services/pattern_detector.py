"""
Rolling-window performance metrics and the usage patterns detected from them.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Tuple

from app.models.enums import PatternType, Trend
from app.repositories.base import UnitOfWork
from app.schemas.boundary import AdjustmentPattern, PatternIndicator, PerformanceMetrics, RealtimeMetrics
from app.services.boundary_thresholds import (
    COMPLETION_CHALLENGES_CONFIDENCE,
    DEPENDENCY_RATE_HIGH,
    DEPENDENCY_RATE_THRESHOLD,
    ENGAGED_USAGE_RATE_THRESHOLD,
    LOW_COMPLETION_THRESHOLD,
    LOW_ENGAGEMENT_CONFIDENCE,
    LOW_REFLECTION_THRESHOLD,
    LOW_USAGE_RATE_THRESHOLD,
    OVER_DEPENDENCE_CONFIDENCE,
    OVER_DEPENDENCE_HIGH_CONFIDENCE,
    OVER_DEPENDENCE_RATE,
    PERFORMANCE_WINDOW_DAYS,
    STRUGGLING_RATE_THRESHOLD,
    TIME_ON_TASK_THRESHOLD,
    TREND_TOLERANCE,
    UNDER_UTILIZATION_CONFIDENCE,
)
from app.services.config_service import config_service
from app.services.errors import NotFoundError
from app.services.student_activity import StudentActivity, collect_student_activity

logger = logging.getLogger("app.patterns")

ABOVE = "above"
BELOW = "below"


def realtime_metrics(activity: List[StudentActivity]) -> RealtimeMetrics:
    """Class metrics over one window of activity; zeros for an empty roster."""
    total = len(activity)
    if not total:
        return RealtimeMetrics()

    reflection_scores = [score for student in activity for score in student.reflection_scores]
    session_count = sum(student.session_count for student in activity)
    session_seconds = sum(student.session_seconds for student in activity)

    return RealtimeMetrics(
        ai_dependency_rate=sum(1 for s in activity if s.usage_rate > OVER_DEPENDENCE_RATE) / total,
        struggling_rate=sum(1 for s in activity if s.high_load) / total,
        ai_usage_rate=sum(1 for s in activity if s.interaction_count > 0) / total,
        average_reflection_quality=sum(reflection_scores) / len(reflection_scores) if reflection_scores else 0.0,
        completion_rate=sum(1 for s in activity if s.submitted) / total,
        average_time_on_task=session_seconds / session_count / 60 if session_count else 0.0,
    )


def metric_trend(current: float, previous: Optional[float]) -> Trend:
    """Relative change against the previous window; small changes count as stable."""
    if previous is None:
        return Trend.STABLE
    if previous == 0:
        return Trend.INCREASING if current > 0 else Trend.STABLE

    change = (current - previous) / abs(previous)
    if change > TREND_TOLERANCE:
        return Trend.INCREASING
    if change < -TREND_TOLERANCE:
        return Trend.DECREASING
    return Trend.STABLE


def _has_activity(activity: List[StudentActivity]) -> bool:
    return any(s.session_count or s.interaction_count for s in activity)


class PerformanceAnalyzer:
    """Builds ``PerformanceMetrics`` for the trailing window of an assignment."""

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Callable[[], datetime] = config_service.now,
        window_days: int = PERFORMANCE_WINDOW_DAYS,
    ):
        self.uow = uow
        self.clock = clock
        self.window_days = window_days

    def snapshot(self, assignment_id: str) -> Tuple[PerformanceMetrics, List[StudentActivity]]:
        """
        Metrics for the current window plus the per-student activity behind them.

        Raises:
            NotFoundError: if the assignment does not exist
        """
        assignment = self.uow.assignments.get(assignment_id)
        if assignment is None:
            raise NotFoundError("Assignment", assignment_id)

        now = self.clock()
        window = timedelta(days=self.window_days)
        window_start = now - window

        current = collect_student_activity(
            self.uow.telemetry, assignment.course_id, assignment_id, since=window_start
        )
        previous = collect_student_activity(
            self.uow.telemetry, assignment.course_id, assignment_id, since=window_start - window, until=window_start
        )

        metrics = realtime_metrics(current)
        previous_metrics = realtime_metrics(previous) if _has_activity(previous) else None

        trends: Dict[str, Trend] = {}
        for name, value in metrics.model_dump().items():
            previous_value = getattr(previous_metrics, name) if previous_metrics is not None else None
            trends[name] = metric_trend(value, previous_value)

        performance = PerformanceMetrics(
            assignment_id=assignment_id,
            timestamp=now,
            window_days=self.window_days,
            metrics=metrics,
            trends=trends,
        )
        logger.debug(f"Performance for assignment {assignment_id}: {metrics.model_dump()}")
        return performance, current

    def analyze(self, assignment_id: str) -> PerformanceMetrics:
        performance, _ = self.snapshot(assignment_id)
        return performance


class PatternDetector:
    """
    Evaluates the four pattern definitions independently.

    Several patterns can fire for the same snapshot.
    """

    def detect(self, performance: PerformanceMetrics) -> List[AdjustmentPattern]:
        m = performance.metrics
        patterns: List[AdjustmentPattern] = []

        if m.ai_dependency_rate > DEPENDENCY_RATE_THRESHOLD:
            patterns.append(
                AdjustmentPattern(
                    type=PatternType.OVER_DEPENDENCE,
                    indicators=[
                        PatternIndicator(
                            metric="ai_dependency_rate",
                            value=m.ai_dependency_rate,
                            threshold=DEPENDENCY_RATE_THRESHOLD,
                            direction=ABOVE,
                        )
                    ],
                    confidence=(
                        OVER_DEPENDENCE_HIGH_CONFIDENCE
                        if m.ai_dependency_rate > DEPENDENCY_RATE_HIGH
                        else OVER_DEPENDENCE_CONFIDENCE
                    ),
                )
            )

        if m.ai_usage_rate < LOW_USAGE_RATE_THRESHOLD and m.struggling_rate > STRUGGLING_RATE_THRESHOLD:
            patterns.append(
                AdjustmentPattern(
                    type=PatternType.UNDER_UTILIZATION,
                    indicators=[
                        PatternIndicator(
                            metric="ai_usage_rate", value=m.ai_usage_rate, threshold=LOW_USAGE_RATE_THRESHOLD, direction=BELOW
                        ),
                        PatternIndicator(
                            metric="struggling_rate",
                            value=m.struggling_rate,
                            threshold=STRUGGLING_RATE_THRESHOLD,
                            direction=ABOVE,
                        ),
                    ],
                    confidence=UNDER_UTILIZATION_CONFIDENCE,
                )
            )

        if m.average_reflection_quality < LOW_REFLECTION_THRESHOLD and m.ai_usage_rate > ENGAGED_USAGE_RATE_THRESHOLD:
            patterns.append(
                AdjustmentPattern(
                    type=PatternType.LOW_ENGAGEMENT,
                    indicators=[
                        PatternIndicator(
                            metric="average_reflection_quality",
                            value=m.average_reflection_quality,
                            threshold=LOW_REFLECTION_THRESHOLD,
                            direction=BELOW,
                        ),
                        PatternIndicator(
                            metric="ai_usage_rate",
                            value=m.ai_usage_rate,
                            threshold=ENGAGED_USAGE_RATE_THRESHOLD,
                            direction=ABOVE,
                        ),
                    ],
                    confidence=LOW_ENGAGEMENT_CONFIDENCE,
                )
            )

        if m.completion_rate < LOW_COMPLETION_THRESHOLD and m.average_time_on_task > TIME_ON_TASK_THRESHOLD:
            patterns.append(
                AdjustmentPattern(
                    type=PatternType.COMPLETION_CHALLENGES,
                    indicators=[
                        PatternIndicator(
                            metric="completion_rate",
                            value=m.completion_rate,
                            threshold=LOW_COMPLETION_THRESHOLD,
                            direction=BELOW,
                        ),
                        PatternIndicator(
                            metric="average_time_on_task",
                            value=m.average_time_on_task,
                            threshold=TIME_ON_TASK_THRESHOLD,
                            direction=ABOVE,
                        ),
                    ],
                    confidence=COMPLETION_CHALLENGES_CONFIDENCE,
                )
            )

        if patterns:
            logger.info(
                f"Detected patterns for assignment {performance.assignment_id}: "
                + ", ".join(p.type.value for p in patterns)
            )
        return patterns

"""
Scores how well the current boundaries serve the class.
"""

import logging
from typing import Callable, List, Tuple

from app.schemas.boundary import ClassAnalytics, EffectivenessAssessment
from app.services.boundary_thresholds import (
    COMPLETION_RATE_PENALTY,
    COMPLETION_RATE_TARGET,
    OVER_DEPENDENCE_PENALTY,
    OVER_DEPENDENT_RATIO_MAX,
    REFLECTION_QUALITY_PENALTY,
    REFLECTION_QUALITY_TARGET,
    UNDER_UTILIZATION_PENALTY,
    UNDER_UTILIZING_RATIO_MAX,
    UTILIZATION_RATE_PENALTY,
    UTILIZATION_RATE_TARGET,
)

logger = logging.getLogger("app.analytics.effectiveness")

MAX_SCORE = 100

# (triggered, penalty, issue text)
EFFECTIVENESS_DEDUCTIONS: List[Tuple[Callable[[ClassAnalytics], bool], int, Callable[[ClassAnalytics], str]]] = [
    (
        lambda a: a.over_dependent_ratio > OVER_DEPENDENT_RATIO_MAX,
        OVER_DEPENDENCE_PENALTY,
        lambda a: f"{round(a.over_dependent_ratio * 100)}% of students show AI over-dependence",
    ),
    (
        lambda a: a.under_utilizing_ratio > UNDER_UTILIZING_RATIO_MAX,
        UNDER_UTILIZATION_PENALTY,
        lambda a: f"{round(a.under_utilizing_ratio * 100)}% of struggling students not using AI support",
    ),
    (
        lambda a: a.average_reflection_quality < REFLECTION_QUALITY_TARGET,
        REFLECTION_QUALITY_PENALTY,
        lambda a: f"Average reflection quality ({round(a.average_reflection_quality)}%) below target",
    ),
    (
        lambda a: a.completion_rate < COMPLETION_RATE_TARGET,
        COMPLETION_RATE_PENALTY,
        lambda a: f"Low completion rate ({round(a.completion_rate * 100)}%)",
    ),
    (
        lambda a: a.boundary_effectiveness.utilization_rate < UTILIZATION_RATE_TARGET,
        UTILIZATION_RATE_PENALTY,
        lambda a: f"Low AI utilization rate ({round(a.boundary_effectiveness.utilization_rate * 100)}%)",
    ),
]


def assess(analytics: ClassAnalytics) -> EffectivenessAssessment:
    """
    Deduct a fixed penalty for each triggered issue, floored at 0.

    Pure function of the snapshot: identical input gives identical output.
    """
    score = MAX_SCORE
    issues: List[str] = []

    for triggered, penalty, describe in EFFECTIVENESS_DEDUCTIONS:
        if triggered(analytics):
            score -= penalty
            issues.append(describe(analytics))

    score = max(0, score)
    logger.debug(f"Effectiveness for assignment {analytics.assignment_id}: {score} ({len(issues)} issues)")
    return EffectivenessAssessment(overall=score, issues=issues)

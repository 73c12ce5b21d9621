"""
Turns detected patterns into boundary proposals and filters out weak ones.
"""

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, List

from app.models.enums import AdjustmentType, PatternType, Trend
from app.repositories.base import ProposalStore
from app.schemas.boundary import AdjustmentPattern, EvidenceItem, GateDecision, PerformanceMetrics, ProposedAdjustment
from app.services.boundary_thresholds import (
    LOW_REFLECTION_THRESHOLD,
    MIN_AFFECTED_STUDENTS,
    MIN_EVIDENCE_DEVIATION,
    OVER_DEPENDENCE_RATE,
    PROPOSAL_DEDUP_DAYS,
    TIME_ON_TASK_THRESHOLD,
)
from app.services.config_service import config_service
from app.services.student_activity import StudentActivity

logger = logging.getLogger("app.proposals")

PATTERN_ADJUSTMENTS: Dict[PatternType, AdjustmentType] = {
    PatternType.OVER_DEPENDENCE: AdjustmentType.REDUCE_ACCESS,
    PatternType.UNDER_UTILIZATION: AdjustmentType.INCREASE_SUPPORT,
    PatternType.LOW_ENGAGEMENT: AdjustmentType.MODIFY_COMPLEXITY,
    PatternType.COMPLETION_CHALLENGES: AdjustmentType.TEMPORAL_SHIFT,
}

METRIC_DISPLAY_NAMES = {
    "ai_dependency_rate": "AI Dependency Rate",
    "struggling_rate": "Struggling Student Rate",
    "ai_usage_rate": "AI Usage Rate",
    "average_reflection_quality": "Average Reflection Quality",
    "completion_rate": "Assignment Completion Rate",
    "average_time_on_task": "Average Time on Task",
}

TIME_ON_TASK_SECONDS = TIME_ON_TASK_THRESHOLD * 60

# Per-student version of each pattern's class-level condition
AFFECTED_PREDICATES: Dict[PatternType, Callable[[StudentActivity], bool]] = {
    PatternType.OVER_DEPENDENCE: lambda a: a.usage_rate > OVER_DEPENDENCE_RATE,
    PatternType.UNDER_UTILIZATION: lambda a: a.high_load and a.interaction_count == 0,
    PatternType.LOW_ENGAGEMENT: lambda a: a.interaction_count > 0 and a.average_reflection < LOW_REFLECTION_THRESHOLD,
    PatternType.COMPLETION_CHALLENGES: lambda a: not a.submitted and a.session_seconds > TIME_ON_TASK_SECONDS,
}


def _pct(value: float) -> int:
    return round(value * 100)


def format_metric_name(metric: str) -> str:
    return METRIC_DISPLAY_NAMES.get(metric, metric)


class ProposalGenerator:
    """Builds one ``ProposedAdjustment`` per detected pattern."""

    def affected_students(self, pattern: AdjustmentPattern, activity: List[StudentActivity]) -> List[str]:
        predicate = AFFECTED_PREDICATES[pattern.type]
        return [student.student_id for student in activity if predicate(student)]

    def generate(
        self,
        pattern: AdjustmentPattern,
        performance: PerformanceMetrics,
        activity: List[StudentActivity],
    ) -> ProposedAdjustment:
        indicators = pattern.indicators
        first = indicators[0].value

        if pattern.type == PatternType.OVER_DEPENDENCE:
            reason = f"High AI dependency detected: {_pct(first)}% of students are over-reliant on AI assistance"
            specific_change = (
                'Reduce AI question limit from current setting to 3 questions per hour, '
                'increase reflection requirements to "analytical" level'
            )
            expected_outcome = (
                "Students will develop stronger independent thinking skills and deeper engagement with their writing"
            )
        elif pattern.type == PatternType.UNDER_UTILIZATION:
            reason = (
                f"{_pct(indicators[1].value)}% of students are struggling but only "
                f"{_pct(first)}% are using AI support"
            )
            specific_change = (
                "Enable proactive AI prompts when struggle patterns detected, simplify initial question complexity"
            )
            expected_outcome = "Struggling students will receive timely support, reducing frustration and improving progress"
        elif pattern.type == PatternType.LOW_ENGAGEMENT:
            reason = (
                f"Low reflection quality ({round(first)}%) despite moderate AI usage "
                "suggests mismatched question complexity"
            )
            specific_change = 'Adjust AI question complexity to "simplified" mode, add more concrete examples in prompts'
            expected_outcome = "Improved reflection quality and deeper engagement with AI assistance"
        else:
            reason = (
                f"Low completion rate ({_pct(first)}%) with high time investment "
                "suggests need for staged support"
            )
            specific_change = (
                "Implement progressive AI support: higher access in early stages, tapering off as students progress"
            )
            expected_outcome = "Better scaffolding will help students maintain momentum and complete assignments"

        evidence = [
            EvidenceItem(
                metric=format_metric_name(indicator.metric),
                current_value=indicator.value,
                threshold=indicator.threshold,
                trend=performance.trends.get(indicator.metric, Trend.STABLE),
            )
            for indicator in indicators
        ]

        return ProposedAdjustment(
            type=PATTERN_ADJUSTMENTS[pattern.type],
            assignment_id=performance.assignment_id,
            reason=reason,
            specific_change=specific_change,
            affected_students=self.affected_students(pattern, activity),
            expected_outcome=expected_outcome,
            evidence=evidence,
            requires_approval=True,
            confidence=pattern.confidence,
        )


def evidence_deviation(evidence: List[EvidenceItem]) -> float:
    """Mean relative distance of the evidence values from their thresholds."""
    if not evidence:
        return 0.0

    total = 0.0
    for item in evidence:
        if item.threshold == 0:
            total += abs(item.current_value)
        else:
            total += abs(item.current_value - item.threshold) / abs(item.threshold)
    return total / len(evidence)


class ProposalGate:
    """Rejects duplicate, narrow or weakly supported proposals before they are stored."""

    def __init__(
        self,
        proposals: ProposalStore,
        clock: Callable[[], datetime] = config_service.now,
        dedup_days: int = PROPOSAL_DEDUP_DAYS,
    ):
        self.proposals = proposals
        self.clock = clock
        self.dedup_window = timedelta(days=dedup_days)

    def should_propose(self, proposal: ProposedAdjustment) -> GateDecision:
        since = self.clock() - self.dedup_window
        recent = self.proposals.count_recent(proposal.assignment_id, proposal.type, since)
        if recent > 0:
            return self._reject(proposal, f"A {proposal.type.value} proposal was already made in the last {self.dedup_window.days} days")

        if len(proposal.affected_students) < MIN_AFFECTED_STUDENTS:
            return self._reject(
                proposal,
                f"Only {len(proposal.affected_students)} students affected (minimum {MIN_AFFECTED_STUDENTS})",
            )

        deviation = evidence_deviation(proposal.evidence)
        if deviation <= MIN_EVIDENCE_DEVIATION:
            return self._reject(proposal, f"Evidence deviation {deviation:.3f} is too weak (needs > {MIN_EVIDENCE_DEVIATION})")

        return GateDecision(accepted=True)

    def _reject(self, proposal: ProposedAdjustment, reason: str) -> GateDecision:
        logger.warning(f"Proposal {proposal.type.value} for assignment {proposal.assignment_id} rejected: {reason}")
        return GateDecision(accepted=False, reason=reason)

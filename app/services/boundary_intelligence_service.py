"""
Boundary intelligence service.

Entry point for recommendation, monitoring and educator decisions on AI
boundary adjustments.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.boundary import Assignment
from app.repositories.base import NotificationSender, UnitOfWork
from app.repositories.unit_of_work import SqlUnitOfWork
from app.schemas.boundary import (
    AdjustmentLogEntry,
    BoundaryRecommendation,
    ClassAnalytics,
    EffectivenessReport,
    ProposedAdjustment,
)
from app.services import recommendation_service
from app.services.analytics_cache import AnalyticsCache
from app.services.approval_workflow import ApprovalWorkflow, to_log_entry, to_proposed_adjustment
from app.services.class_analytics_service import ClassAnalyticsAggregator
from app.services.config_service import config_service
from app.services.effectiveness_service import assess
from app.services.errors import NotFoundError
from app.services.notification_service import NotificationService
from app.services.pattern_detector import PatternDetector, PerformanceAnalyzer
from app.services.proposal_service import ProposalGate, ProposalGenerator
from app.services.student_segmenter import StudentSegmenter

logger = logging.getLogger("app.boundary")

ADJUSTMENT_HISTORY_LIMIT = 10


class BoundaryIntelligenceService:
    """Facade over analytics, pattern detection and the approval workflow."""

    def __init__(
        self,
        uow: UnitOfWork,
        notifier: NotificationSender,
        cache: Optional[AnalyticsCache[ClassAnalytics]] = None,
        clock: Callable[[], datetime] = config_service.now,
    ):
        self.uow = uow
        self.clock = clock
        self.analytics = ClassAnalyticsAggregator(uow, cache=cache, clock=clock)
        self.segmenter = StudentSegmenter(uow)
        self.performance = PerformanceAnalyzer(uow, clock=clock)
        self.detector = PatternDetector()
        self.generator = ProposalGenerator()
        self.gate = ProposalGate(uow.proposals, clock=clock)
        self.workflow = ApprovalWorkflow(
            uow,
            notifier,
            clock=clock,
            on_settings_changed=self.analytics.invalidate_assignment,
        )

    @classmethod
    def from_session(
        cls,
        db: Session,
        cache: Optional[AnalyticsCache[ClassAnalytics]] = None,
        clock: Callable[[], datetime] = config_service.now,
    ) -> "BoundaryIntelligenceService":
        return cls(SqlUnitOfWork(db), NotificationService(db, clock=clock), cache=cache, clock=clock)

    def _get_assignment(self, assignment_id: str) -> Assignment:
        assignment = self.uow.assignments.get(assignment_id)
        if assignment is None:
            raise NotFoundError("Assignment", assignment_id)
        return assignment

    def get_recommendations(self, assignment_id: str) -> List[BoundaryRecommendation]:
        """
        Analyze the class and recommend boundary changes.

        Args:
            assignment_id: Assignment to analyze

        Returns:
            Class-wide, individual and temporal recommendations
        """
        assignment = self._get_assignment(assignment_id)

        analytics = self.analytics.gather(assignment.course_id, assignment_id)
        segments = self.segmenter.segment(assignment.course_id, assignment_id)
        effectiveness = assess(analytics)

        return recommendation_service.generate(analytics, segments, effectiveness, assignment, self.clock())

    def monitor_and_propose(self, assignment_id: str) -> List[ProposedAdjustment]:
        """
        Detect problematic usage patterns and submit gated proposals.

        Returns:
            Proposals created by this run (possibly empty)
        """
        performance, activity = self.performance.snapshot(assignment_id)
        patterns = self.detector.detect(performance)

        created: List[ProposedAdjustment] = []
        for pattern in patterns:
            proposal = self.generator.generate(pattern, performance, activity)
            decision = self.gate.should_propose(proposal)
            if not decision.accepted:
                continue
            created.append(self.workflow.submit_for_approval(proposal))

        logger.info(
            f"Monitoring assignment {assignment_id}: {len(patterns)} patterns, {len(created)} proposals created"
        )
        return created

    def approve_proposal(self, proposal_id: str, actor_id: str, notes: Optional[str] = None) -> ProposedAdjustment:
        return self.workflow.approve(proposal_id, actor_id, notes)

    def reject_proposal(self, proposal_id: str, actor_id: str, reason: str) -> ProposedAdjustment:
        return self.workflow.reject(proposal_id, actor_id, reason)

    def record_impact_metrics(self, log_id: str, impact_metrics: Dict[str, Any]) -> AdjustmentLogEntry:
        return self.workflow.record_impact_metrics(log_id, impact_metrics)

    def get_effectiveness(self, assignment_id: str) -> EffectivenessReport:
        """Effectiveness assessment with the current settings and recent adjustment history."""
        assignment = self._get_assignment(assignment_id)
        analytics = self.analytics.gather(assignment.course_id, assignment_id)

        history = [
            to_log_entry(entry)
            for entry in self.uow.adjustment_logs.list_for_assignment(assignment_id, limit=ADJUSTMENT_HISTORY_LIMIT)
        ]

        return EffectivenessReport(
            assignment_id=assignment_id,
            assessment=assess(analytics),
            current_boundaries=assignment.current_settings(),
            adjustment_history=history,
            impact_summary=history[0].impact if history else None,
        )

    def list_pending_proposals(self, assignment_id: Optional[str] = None) -> List[ProposedAdjustment]:
        return [to_proposed_adjustment(p) for p in self.uow.proposals.list_pending(assignment_id)]

    def get_proposal(self, proposal_id: str) -> ProposedAdjustment:
        proposal = self.uow.proposals.get(proposal_id)
        if proposal is None:
            raise NotFoundError("Proposal", proposal_id)
        return to_proposed_adjustment(proposal)

"""
Educator approval workflow for boundary proposals.

A proposal leaves ``pending`` exactly once, either approved (its settings are
applied and logged) or rejected. Notifications go out only after the
decision has been committed.
"""

import copy
import logging
import threading
from datetime import datetime
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from app.models.boundary import BoundaryAdjustmentLog, BoundaryProposal
from app.models.enums import AdjustmentType, NotificationPriority, ProposalStatus
from app.repositories.base import NotificationSender, UnitOfWork
from app.schemas.boundary import AdjustmentLogEntry, EvidenceItem, ProposedAdjustment
from app.services.config_service import config_service
from app.services.errors import BoundaryError, InvalidStateError, NotFoundError, ValidationError

logger = logging.getLogger("app.approval")

ALLOWED_TRANSITIONS: Dict[ProposalStatus, FrozenSet[ProposalStatus]] = {
    ProposalStatus.PENDING: frozenset({ProposalStatus.APPROVED, ProposalStatus.REJECTED}),
}

TEMPORAL_SCHEDULE = {
    "early": {"questions_per_hour": 8, "complexity": "simplified"},
    "middle": {"questions_per_hour": 5, "complexity": "adaptive"},
    "late": {"questions_per_hour": 2, "complexity": "advanced"},
}

SETTINGS_UPDATE_ATTEMPTS = 3

STUDENT_NOTIFICATION_TITLE = "AI Support Settings Updated"
STUDENT_NOTIFICATION_MESSAGE = (
    "Your educator has adjusted the AI support settings for this assignment to better support your learning."
)

ASSIGNMENT_LOCK_STRIPES = 64
_assignment_locks: List[threading.Lock] = [threading.Lock() for _ in range(ASSIGNMENT_LOCK_STRIPES)]


def assignment_lock(assignment_id: str) -> threading.Lock:
    """
    Process-wide lock serializing approvals for one assignment.

    Assignments share a fixed pool of locks, so unrelated assignments may
    occasionally wait on each other but the pool never grows.
    """
    return _assignment_locks[hash(assignment_id) % ASSIGNMENT_LOCK_STRIPES]


def can_transition(current: ProposalStatus, target: ProposalStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_transition(proposal: BoundaryProposal, target: ProposalStatus) -> None:
    if not can_transition(proposal.status, target):
        raise InvalidStateError(
            f"Proposal {proposal.id} is {ProposalStatus(proposal.status).value} and cannot become {target.value}"
        )


def calculate_new_boundaries(adjustment_type: AdjustmentType, current: Dict[str, Any]) -> Dict[str, Any]:
    """Settings after applying an adjustment; ``current`` is left untouched."""
    settings = copy.deepcopy(current)

    if adjustment_type == AdjustmentType.REDUCE_ACCESS:
        settings["questions_per_hour"] = 3
        settings["reflection_requirement"] = "analytical"
    elif adjustment_type == AdjustmentType.INCREASE_SUPPORT:
        settings["proactive_prompts"] = True
        settings["complexity_level"] = "simplified"
        settings["struggle_detection"] = True
    elif adjustment_type == AdjustmentType.MODIFY_COMPLEXITY:
        settings["complexity_level"] = "simplified"
        settings["include_examples"] = True
    elif adjustment_type == AdjustmentType.TEMPORAL_SHIFT:
        settings["temporal_strategy"] = copy.deepcopy(TEMPORAL_SCHEDULE)
    else:
        raise ValidationError(f"Unknown adjustment type: {adjustment_type}")

    return settings


def to_proposed_adjustment(proposal: BoundaryProposal) -> ProposedAdjustment:
    return ProposedAdjustment(
        id=proposal.id,
        type=proposal.type,
        assignment_id=proposal.assignment_id,
        reason=proposal.reason,
        specific_change=proposal.specific_change,
        affected_students=list(proposal.affected_students or []),
        expected_outcome=proposal.expected_outcome,
        evidence=[EvidenceItem(**item) for item in proposal.evidence or []],
        requires_approval=True,
        confidence=proposal.confidence,
        status=proposal.status,
        educator_notes=proposal.educator_notes,
        created_at=proposal.created_at,
    )


def to_log_entry(entry: BoundaryAdjustmentLog) -> AdjustmentLogEntry:
    return AdjustmentLogEntry(
        id=entry.id,
        proposal_id=entry.proposal_id,
        previous_value=entry.previous_value,
        new_value=entry.new_value,
        reason=entry.reason,
        implemented_by=entry.implemented_by,
        implemented_at=entry.created_at,
        impact=entry.impact_metrics,
    )


def _require_text(value: Optional[str], field: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")
    return value.strip()


class ApprovalWorkflow:
    """Submits proposals and applies educator decisions."""

    def __init__(
        self,
        uow: UnitOfWork,
        notifier: NotificationSender,
        clock: Callable[[], datetime] = config_service.now,
        on_settings_changed: Optional[Callable[[str], Any]] = None,
        max_attempts: int = SETTINGS_UPDATE_ATTEMPTS,
    ):
        self.uow = uow
        self.notifier = notifier
        self.clock = clock
        self.on_settings_changed = on_settings_changed
        self.max_attempts = max_attempts

    def submit_for_approval(self, proposal: ProposedAdjustment) -> ProposedAdjustment:
        """
        Persist a gated proposal as pending and notify the instructor.

        Raises:
            NotFoundError: if the assignment does not exist
        """
        assignment = self.uow.assignments.get(proposal.assignment_id)
        if assignment is None:
            raise NotFoundError("Assignment", proposal.assignment_id)

        now = self.clock()
        row = BoundaryProposal(
            assignment_id=proposal.assignment_id,
            type=proposal.type,
            reason=proposal.reason,
            specific_change=proposal.specific_change,
            affected_students=list(proposal.affected_students),
            expected_outcome=proposal.expected_outcome,
            evidence=[item.model_dump(mode="json") for item in proposal.evidence],
            confidence=proposal.confidence,
            status=ProposalStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

        try:
            self.uow.proposals.add(row)
            self.uow.commit()
        except Exception as e:
            self.uow.rollback()
            logger.error(f"Error submitting proposal for assignment {proposal.assignment_id}: {e}")
            raise

        stored = to_proposed_adjustment(row)
        logger.info(f"Boundary proposal {stored.id} ({stored.type.value}) submitted for assignment {assignment.id}")

        if assignment.instructor_id:
            self.notifier.create_notification(
                recipient_id=assignment.instructor_id,
                type="boundary_proposal",
                title="AI Boundary Adjustment Proposed",
                message=f'A new boundary adjustment has been proposed for "{assignment.title}": {stored.reason}',
                priority=NotificationPriority.MEDIUM,
                metadata={
                    "proposal_id": stored.id,
                    "assignment_id": stored.assignment_id,
                    "type": stored.type.value,
                    "affected_count": len(stored.affected_students),
                },
            )
        else:
            logger.warning(f"Assignment {assignment.id} has no instructor; proposal {stored.id} not announced")

        return stored

    def approve(self, proposal_id: str, actor_id: str, notes: Optional[str] = None) -> ProposedAdjustment:
        """
        Approve a pending proposal and apply its settings.

        Args:
            proposal_id: Proposal to approve
            actor_id: Approving educator
            notes: Optional educator notes, kept on the proposal and the log entry

        Raises:
            ValidationError: if actor_id is blank
            NotFoundError: if the proposal or its assignment does not exist
            InvalidStateError: if the proposal is no longer pending
        """
        actor_id = _require_text(actor_id, "actor_id")

        proposal = self.uow.proposals.get(proposal_id)
        if proposal is None:
            raise NotFoundError("Proposal", proposal_id)
        ensure_transition(proposal, ProposalStatus.APPROVED)

        assignment_id = proposal.assignment_id
        affected_students: List[str] = list(dict.fromkeys(proposal.affected_students or []))

        with assignment_lock(assignment_id):
            try:
                now = self.clock()
                if not self.uow.proposals.transition(
                    proposal_id,
                    ProposalStatus.PENDING,
                    {
                        "status": ProposalStatus.APPROVED,
                        "approved_by": actor_id,
                        "approved_at": now,
                        "implemented_at": now,
                        "educator_notes": notes,
                        "updated_at": now,
                    },
                ):
                    raise InvalidStateError(f"Proposal {proposal_id} was already processed")

                previous, new = self._apply_settings(assignment_id, proposal.type, now)

                self.uow.adjustment_logs.add(
                    BoundaryAdjustmentLog(
                        assignment_id=assignment_id,
                        proposal_id=proposal_id,
                        previous_value=previous,
                        new_value=new,
                        reason=proposal.reason,
                        implemented_by=actor_id,
                        educator_notes=notes,
                        created_at=now,
                    )
                )
                self.uow.commit()
            except BoundaryError:
                self.uow.rollback()
                raise
            except Exception as e:
                self.uow.rollback()
                logger.error(f"Error approving proposal {proposal_id}: {e}")
                raise

        logger.info(f"Proposal {proposal_id} approved by {actor_id}; settings updated for assignment {assignment_id}")

        if self.on_settings_changed is not None:
            self.on_settings_changed(assignment_id)

        for student_id in affected_students:
            self.notifier.create_notification(
                recipient_id=student_id,
                type="boundary_adjusted",
                title=STUDENT_NOTIFICATION_TITLE,
                message=STUDENT_NOTIFICATION_MESSAGE,
                priority=NotificationPriority.LOW,
                metadata={"assignment_id": assignment_id, "proposal_id": proposal_id},
            )

        return to_proposed_adjustment(self.uow.proposals.get(proposal_id))

    def _apply_settings(self, assignment_id: str, adjustment_type: AdjustmentType, now: datetime):
        """Conditional settings write, re-reading and recomputing on version conflicts."""
        for attempt in range(1, self.max_attempts + 1):
            assignment = self.uow.assignments.get(assignment_id)
            if assignment is None:
                raise NotFoundError("Assignment", assignment_id)

            previous = assignment.current_settings()
            new = calculate_new_boundaries(adjustment_type, previous)
            if self.uow.assignments.update_settings(assignment_id, new, assignment.settings_version, now):
                return previous, new

            logger.warning(f"Retrying settings update for assignment {assignment_id} (attempt {attempt})")

        raise InvalidStateError(f"Settings for assignment {assignment_id} kept changing; gave up after {self.max_attempts} attempts")

    def reject(self, proposal_id: str, actor_id: str, reason: str) -> ProposedAdjustment:
        """
        Reject a pending proposal. Settings are not touched and students are not notified.

        Raises:
            ValidationError: if actor_id or reason is blank
            NotFoundError: if the proposal does not exist
            InvalidStateError: if the proposal is no longer pending
        """
        actor_id = _require_text(actor_id, "actor_id")
        reason = _require_text(reason, "Rejection reason")

        proposal = self.uow.proposals.get(proposal_id)
        if proposal is None:
            raise NotFoundError("Proposal", proposal_id)
        ensure_transition(proposal, ProposalStatus.REJECTED)

        try:
            now = self.clock()
            if not self.uow.proposals.transition(
                proposal_id,
                ProposalStatus.PENDING,
                {
                    "status": ProposalStatus.REJECTED,
                    "approved_by": actor_id,
                    "rejection_reason": reason,
                    "updated_at": now,
                },
            ):
                raise InvalidStateError(f"Proposal {proposal_id} was already processed")
            self.uow.commit()
        except BoundaryError:
            self.uow.rollback()
            raise
        except Exception as e:
            self.uow.rollback()
            logger.error(f"Error rejecting proposal {proposal_id}: {e}")
            raise

        logger.info(f"Proposal {proposal_id} rejected by {actor_id}: {reason}")
        return to_proposed_adjustment(self.uow.proposals.get(proposal_id))

    def record_impact_metrics(self, log_id: str, impact_metrics: Dict[str, Any]) -> AdjustmentLogEntry:
        """
        Attach measured impact to an adjustment log entry. Allowed once per entry.

        Raises:
            NotFoundError: if the log entry does not exist
            InvalidStateError: if impact metrics were already recorded
        """
        entry = self.uow.adjustment_logs.get(log_id)
        if entry is None:
            raise NotFoundError("Adjustment log", log_id)

        try:
            if not self.uow.adjustment_logs.set_impact_metrics(log_id, impact_metrics):
                raise InvalidStateError(f"Impact metrics already recorded for adjustment log {log_id}")
            self.uow.commit()
        except BoundaryError:
            self.uow.rollback()
            raise
        except Exception as e:
            self.uow.rollback()
            logger.error(f"Error recording impact metrics for adjustment log {log_id}: {e}")
            raise

        logger.info(f"Impact metrics recorded for adjustment log {log_id}")
        return to_log_entry(self.uow.adjustment_logs.get(log_id))

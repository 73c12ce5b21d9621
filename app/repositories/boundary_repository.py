"""
Persistence for assignments' boundary settings, proposals and the adjustment log.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import and_, desc, or_
from sqlalchemy.orm import Session

from app.models.boundary import Assignment, BoundaryAdjustmentLog, BoundaryProposal
from app.models.enums import AdjustmentType, ProposalStatus

logger = logging.getLogger("app.boundary.repository")


class AssignmentRepository:
    def __init__(self, db: Session):
        self.db = db

    def get(self, assignment_id: str) -> Optional[Assignment]:
        # Always re-read so a retried approval sees the latest settings
        return self.db.query(Assignment).populate_existing().filter(Assignment.id == assignment_id).first()

    def list_open(self, now: datetime) -> List[Assignment]:
        """Assignments without a due date or with one still ahead."""
        return (
            self.db.query(Assignment)
            .filter(or_(Assignment.due_date.is_(None), Assignment.due_date > now))
            .order_by(Assignment.id)
            .all()
        )

    def update_settings(self, assignment_id: str, settings: Dict[str, Any], expected_version: int, now: datetime) -> bool:
        """
        Conditionally replace the boundary settings.

        Returns False when another writer bumped ``settings_version`` first.
        """
        updated = (
            self.db.query(Assignment)
            .filter(and_(Assignment.id == assignment_id, Assignment.settings_version == expected_version))
            .update(
                {
                    Assignment.ai_boundary_settings: settings,
                    Assignment.settings_version: expected_version + 1,
                    Assignment.updated_at: now,
                },
                synchronize_session=False,
            )
        )
        if not updated:
            logger.warning(f"Settings version conflict on assignment {assignment_id} (expected {expected_version})")
        return updated == 1


class ProposalRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, proposal: BoundaryProposal) -> BoundaryProposal:
        self.db.add(proposal)
        self.db.flush()
        return proposal

    def get(self, proposal_id: str) -> Optional[BoundaryProposal]:
        return (
            self.db.query(BoundaryProposal)
            .populate_existing()
            .filter(BoundaryProposal.id == proposal_id)
            .first()
        )

    def count_recent(self, assignment_id: str, adjustment_type: AdjustmentType, since: datetime) -> int:
        return (
            self.db.query(BoundaryProposal)
            .filter(
                and_(
                    BoundaryProposal.assignment_id == assignment_id,
                    BoundaryProposal.type == adjustment_type,
                    BoundaryProposal.created_at >= since,
                )
            )
            .count()
        )

    def list_pending(self, assignment_id: Optional[str] = None) -> List[BoundaryProposal]:
        query = self.db.query(BoundaryProposal).filter(BoundaryProposal.status == ProposalStatus.PENDING)
        if assignment_id:
            query = query.filter(BoundaryProposal.assignment_id == assignment_id)
        return query.order_by(desc(BoundaryProposal.created_at)).all()

    def transition(self, proposal_id: str, from_status: ProposalStatus, values: Dict[str, Any]) -> bool:
        """
        Apply ``values`` only if the proposal is still in ``from_status``.

        Returns False when the proposal already moved on.
        """
        updated = (
            self.db.query(BoundaryProposal)
            .filter(and_(BoundaryProposal.id == proposal_id, BoundaryProposal.status == from_status))
            .update(values, synchronize_session=False)
        )
        return updated == 1


class AdjustmentLogRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, entry: BoundaryAdjustmentLog) -> BoundaryAdjustmentLog:
        self.db.add(entry)
        self.db.flush()
        return entry

    def get(self, log_id: str) -> Optional[BoundaryAdjustmentLog]:
        return self.db.query(BoundaryAdjustmentLog).filter(BoundaryAdjustmentLog.id == log_id).first()

    def list_for_assignment(self, assignment_id: str, limit: int = 10) -> List[BoundaryAdjustmentLog]:
        return (
            self.db.query(BoundaryAdjustmentLog)
            .filter(BoundaryAdjustmentLog.assignment_id == assignment_id)
            .order_by(desc(BoundaryAdjustmentLog.created_at))
            .limit(limit)
            .all()
        )

    def set_impact_metrics(self, log_id: str, impact_metrics: Dict[str, Any]) -> bool:
        """Attach measured impact once; entries are otherwise immutable."""
        entry = self.get(log_id)
        if entry is None or entry.impact_metrics is not None:
            return False

        entry.impact_metrics = dict(impact_metrics)
        self.db.flush()
        return True

"""
Assignment boundary configuration, proposals and adjustment audit trail.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime
from sqlmodel import JSON, Column, Field, SQLModel, Text

from app.models.enums import AdjustmentType, NotificationPriority, ProposalStatus

DEFAULT_BOUNDARY_SETTINGS: Dict[str, Any] = {
    "questions_per_hour": 5,
    "reflection_requirement": "basic",
    "complexity_level": "adaptive",
    "proactive_prompts": False,
}


def _new_id() -> str:
    return str(uuid.uuid4())


class Assignment(SQLModel, table=True):
    """Assignment with its live AI boundary configuration."""

    __tablename__ = "assignments"

    id: str = Field(primary_key=True, max_length=50)
    course_id: str = Field(index=True, max_length=50)
    title: str = Field(max_length=500)
    instructor_id: Optional[str] = Field(default=None, max_length=50)
    ai_boundary_settings: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    # Bumped on every settings write; used for conditional updates
    settings_version: int = Field(default=0)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)
    due_date: Optional[datetime] = Field(default=None, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)

    def current_settings(self) -> Dict[str, Any]:
        """Live settings, or the platform defaults when none were configured."""
        return dict(self.ai_boundary_settings or DEFAULT_BOUNDARY_SETTINGS)


class BoundaryProposal(SQLModel, table=True):
    """
    Proposed boundary adjustment awaiting an educator decision.

    Every transition out of ``pending`` records the acting educator.
    """

    __tablename__ = "boundary_proposals"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=50)
    assignment_id: str = Field(foreign_key="assignments.id", index=True, max_length=50)
    type: AdjustmentType = Field(index=True)
    reason: str = Field(sa_column=Column(Text, nullable=False))
    specific_change: str = Field(sa_column=Column(Text, nullable=False))
    affected_students: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    expected_outcome: str = Field(sa_column=Column(Text, nullable=False))
    evidence: List[Dict[str, Any]] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    confidence: float = Field(default=0.0)
    status: ProposalStatus = Field(default=ProposalStatus.PENDING, index=True)

    # Decision
    approved_by: Optional[str] = Field(default=None, max_length=50)
    approved_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    implemented_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    educator_notes: Optional[str] = Field(default=None, sa_column=Column(Text))
    rejection_reason: Optional[str] = Field(default=None, sa_column=Column(Text))

    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime, index=True)
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)


class BoundaryAdjustmentLog(SQLModel, table=True):
    """Append-only audit entry for an applied boundary change."""

    __tablename__ = "boundary_adjustment_logs"

    id: str = Field(default_factory=_new_id, primary_key=True, max_length=50)
    assignment_id: str = Field(foreign_key="assignments.id", index=True, max_length=50)
    proposal_id: Optional[str] = Field(default=None, foreign_key="boundary_proposals.id", index=True, max_length=50)
    previous_value: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    new_value: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))
    reason: str = Field(sa_column=Column(Text, nullable=False))
    implemented_by: str = Field(max_length=50)
    educator_notes: Optional[str] = Field(default=None, sa_column=Column(Text))
    # Filled once, after the change has been in effect long enough to measure
    impact_metrics: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime, index=True)


class Notification(SQLModel, table=True):
    """In-app notification queued for delivery by the notification service."""

    __tablename__ = "notifications"

    id: Optional[int] = Field(default=None, primary_key=True)
    recipient_id: str = Field(index=True, max_length=50)
    type: str = Field(index=True, max_length=50)  # boundary_proposal, boundary_adjusted
    title: str = Field(max_length=255)
    message: str = Field(sa_column=Column(Text, nullable=False))
    priority: NotificationPriority = Field(default=NotificationPriority.MEDIUM)
    extra: Dict[str, Any] = Field(default_factory=dict, sa_column=Column("metadata", JSON))
    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime, index=True)

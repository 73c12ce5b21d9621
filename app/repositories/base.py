"""
Narrow read/write interfaces the boundary services depend on.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from app.models.boundary import Assignment, BoundaryAdjustmentLog, BoundaryProposal
from app.models.enums import AdjustmentType, NotificationPriority, ProposalStatus
from app.models.telemetry import AIInteractionLog, AssignmentSubmission, Student, StudentProfile, WritingSession


class TelemetryReader(Protocol):
    def get_roster(self, course_id: str) -> List[Tuple[Student, Optional[StudentProfile]]]: ...

    def get_sessions(
        self,
        assignment_id: str,
        student_ids: Sequence[str],
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[WritingSession]: ...

    def get_interactions(
        self,
        assignment_id: str,
        student_ids: Sequence[str],
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[AIInteractionLog]: ...

    def get_submissions(self, assignment_id: str, student_ids: Sequence[str]) -> List[AssignmentSubmission]: ...


class AssignmentStore(Protocol):
    def get(self, assignment_id: str) -> Optional[Assignment]: ...

    def list_open(self, now: datetime) -> List[Assignment]: ...

    def update_settings(
        self, assignment_id: str, settings: Dict[str, Any], expected_version: int, now: datetime
    ) -> bool: ...


class ProposalStore(Protocol):
    def add(self, proposal: BoundaryProposal) -> BoundaryProposal: ...

    def get(self, proposal_id: str) -> Optional[BoundaryProposal]: ...

    def count_recent(self, assignment_id: str, adjustment_type: AdjustmentType, since: datetime) -> int: ...

    def list_pending(self, assignment_id: Optional[str] = None) -> List[BoundaryProposal]: ...

    def transition(
        self, proposal_id: str, from_status: ProposalStatus, values: Dict[str, Any]
    ) -> bool: ...


class AdjustmentLogStore(Protocol):
    def add(self, entry: BoundaryAdjustmentLog) -> BoundaryAdjustmentLog: ...

    def get(self, log_id: str) -> Optional[BoundaryAdjustmentLog]: ...

    def list_for_assignment(self, assignment_id: str, limit: int = 10) -> List[BoundaryAdjustmentLog]: ...

    def set_impact_metrics(self, log_id: str, impact_metrics: Dict[str, Any]) -> bool: ...


class UnitOfWork(Protocol):
    telemetry: TelemetryReader
    assignments: AssignmentStore
    proposals: ProposalStore
    adjustment_logs: AdjustmentLogStore

    def commit(self) -> None: ...

    def rollback(self) -> None: ...


class NotificationSender(Protocol):
    def create_notification(
        self,
        recipient_id: str,
        type: str,
        title: str,
        message: str,
        priority: NotificationPriority = NotificationPriority.MEDIUM,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """Queue a notification; returns False instead of raising on failure."""
        ...

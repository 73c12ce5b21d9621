"""
Bundles the boundary repositories around a single database session.
"""

from sqlalchemy.orm import Session

from app.repositories.boundary_repository import AdjustmentLogRepository, AssignmentRepository, ProposalRepository
from app.repositories.telemetry_repository import TelemetryRepository


class SqlUnitOfWork:
    """Repositories sharing one session; the caller decides when to commit."""

    def __init__(self, db: Session):
        self.db = db
        self.telemetry = TelemetryRepository(db)
        self.assignments = AssignmentRepository(db)
        self.proposals = ProposalRepository(db)
        self.adjustment_logs = AdjustmentLogRepository(db)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

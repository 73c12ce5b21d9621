"""
Read-only access to student telemetry.
"""

import logging
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import and_
from sqlalchemy.orm import Session

from app.models.telemetry import (
    AIInteractionLog,
    AssignmentSubmission,
    CourseEnrollment,
    Student,
    StudentProfile,
    WritingSession,
)

logger = logging.getLogger("app.telemetry")


class TelemetryRepository:
    """Queries roster, writing sessions, AI interactions and submissions."""

    def __init__(self, db: Session):
        self.db = db

    def get_roster(self, course_id: str) -> List[Tuple[Student, Optional[StudentProfile]]]:
        rows = (
            self.db.query(Student, StudentProfile)
            .join(CourseEnrollment, CourseEnrollment.student_id == Student.id)
            .outerjoin(StudentProfile, StudentProfile.student_id == Student.id)
            .filter(CourseEnrollment.course_id == course_id)
            .order_by(Student.id)
            .distinct()
            .all()
        )
        logger.debug(f"Loaded roster for course {course_id}: {len(rows)} students")
        return [(student, profile) for student, profile in rows]

    def get_sessions(
        self,
        assignment_id: str,
        student_ids: Sequence[str],
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[WritingSession]:
        if not student_ids:
            return []

        conditions = [WritingSession.assignment_id == assignment_id, WritingSession.user_id.in_(student_ids)]
        if since is not None:
            conditions.append(WritingSession.start_time >= since)
        if until is not None:
            conditions.append(WritingSession.start_time < until)

        return self.db.query(WritingSession).filter(and_(*conditions)).all()

    def get_interactions(
        self,
        assignment_id: str,
        student_ids: Sequence[str],
        since: Optional[datetime] = None,
        until: Optional[datetime] = None,
    ) -> List[AIInteractionLog]:
        if not student_ids:
            return []

        conditions = [AIInteractionLog.assignment_id == assignment_id, AIInteractionLog.student_id.in_(student_ids)]
        if since is not None:
            conditions.append(AIInteractionLog.created_at >= since)
        if until is not None:
            conditions.append(AIInteractionLog.created_at < until)

        return self.db.query(AIInteractionLog).filter(and_(*conditions)).all()

    def get_submissions(self, assignment_id: str, student_ids: Sequence[str]) -> List[AssignmentSubmission]:
        if not student_ids:
            return []

        return (
            self.db.query(AssignmentSubmission)
            .filter(
                and_(
                    AssignmentSubmission.assignment_id == assignment_id,
                    AssignmentSubmission.author_id.in_(student_ids),
                )
            )
            .all()
        )

"""
Pytest configuration and fixtures for boundary intelligence tests.
"""

import os
import tempfile
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlmodel import SQLModel

# Register every table on SQLModel.metadata
import app.models.boundary  # noqa: F401
import app.models.telemetry  # noqa: F401
from app.models.boundary import Assignment, Notification
from app.models.telemetry import (
    AIInteractionLog,
    AssignmentSubmission,
    CourseEnrollment,
    Student,
    StudentProfile,
    WritingSession,
)
from app.repositories.unit_of_work import SqlUnitOfWork
from app.services.analytics_cache import AnalyticsCache
from app.services.boundary_intelligence_service import BoundaryIntelligenceService
from app.services.notification_service import NotificationService

FIXED_NOW = datetime(2025, 3, 10, 12, 0, 0)
COURSE_ID = "course-101"
ASSIGNMENT_ID = "essay-1"
INSTRUCTOR_ID = "teacher-1"


class FakeClock:
    """Settable clock; tests move it forward explicitly."""

    def __init__(self, now: datetime = FIXED_NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class ClassFactory:
    """Builds rosters and telemetry for one course."""

    def __init__(self, db: Session, now: datetime):
        self.db = db
        self.now = now
        self._counter = 0

    def assignment(
        self,
        assignment_id: str = ASSIGNMENT_ID,
        course_id: str = COURSE_ID,
        settings: Optional[Dict] = None,
        created_at: Optional[datetime] = None,
        due_date: Optional[datetime] = None,
        instructor_id: Optional[str] = INSTRUCTOR_ID,
    ) -> Assignment:
        assignment = Assignment(
            id=assignment_id,
            course_id=course_id,
            title="Argumentative Essay",
            instructor_id=instructor_id,
            ai_boundary_settings=settings,
            created_at=created_at or self.now - timedelta(days=10),
            due_date=due_date,
        )
        self.db.add(assignment)
        self.db.commit()
        return assignment

    def student(
        self,
        course_id: str = COURSE_ID,
        cognitive_load: Optional[str] = None,
        independence_trend: Optional[str] = None,
        quality_without_ai: Optional[float] = None,
        with_profile: bool = True,
    ) -> Student:
        self._counter += 1
        student = Student(id=f"student-{self._counter:02d}", first_name="Student", last_name=str(self._counter))
        self.db.add(student)
        self.db.add(CourseEnrollment(course_id=course_id, student_id=student.id))
        if with_profile:
            self.db.add(
                StudentProfile(
                    student_id=student.id,
                    current_cognitive_load=cognitive_load,
                    independence_trend=independence_trend,
                    quality_without_ai=quality_without_ai,
                )
            )
        self.db.commit()
        return student

    def session(
        self,
        student: Student,
        assignment_id: str = ASSIGNMENT_ID,
        seconds: Optional[int] = 3600,
        words: int = 500,
        start_time: Optional[datetime] = None,
    ) -> WritingSession:
        session = WritingSession(
            user_id=student.id,
            assignment_id=assignment_id,
            duration=seconds,
            words_added=words,
            start_time=start_time or self.now - timedelta(days=1),
        )
        self.db.add(session)
        self.db.commit()
        return session

    def interactions(
        self,
        student: Student,
        count: int,
        assignment_id: str = ASSIGNMENT_ID,
        score: Optional[float] = None,
        created_at: Optional[datetime] = None,
    ) -> List[AIInteractionLog]:
        logs = [
            AIInteractionLog(
                student_id=student.id,
                assignment_id=assignment_id,
                reflection_quality_score=score,
                created_at=created_at or self.now - timedelta(days=1),
            )
            for _ in range(count)
        ]
        self.db.add_all(logs)
        self.db.commit()
        return logs

    def submission(self, student: Student, assignment_id: str = ASSIGNMENT_ID, submitted: bool = True):
        submission = AssignmentSubmission(
            assignment_id=assignment_id,
            author_id=student.id,
            submitted_at=self.now - timedelta(hours=2) if submitted else None,
        )
        self.db.add(submission)
        self.db.commit()
        return submission

    def active_student(self, interactions: int, hours: float = 1, **profile) -> Student:
        """Student with one writing session and ``interactions`` AI requests during it."""
        student = self.student(**profile)
        self.session(student, seconds=int(hours * 3600))
        if interactions:
            self.interactions(student, interactions)
        return student


class RecordingNotifier:
    """Notification sender that records calls and can be told to fail."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: List[Dict] = []

    def create_notification(self, recipient_id, type, title, message, priority=None, metadata=None) -> bool:
        if self.fail:
            return False
        self.sent.append(
            {
                "recipient_id": recipient_id,
                "type": type,
                "title": title,
                "message": message,
                "priority": priority,
                "metadata": metadata or {},
            }
        )
        return True


@pytest.fixture(scope="function")
def isolated_db_session():
    """Create an isolated database session for each test."""
    # Create temporary database file
    fd, temp_db = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    # Create engine for this test
    engine = create_engine(f"sqlite:///{temp_db}", connect_args={"check_same_thread": False})
    SQLModel.metadata.create_all(bind=engine)

    # Create session
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()

    try:
        yield session
    finally:
        session.close()
        engine.dispose()
        # Clean up temp file
        try:
            os.unlink(temp_db)
        except OSError:
            pass


@pytest.fixture
def clock():
    """Clock frozen at FIXED_NOW."""
    return FakeClock()


@pytest.fixture
def factory(isolated_db_session, clock):
    """Roster and telemetry factory bound to the test database."""
    return ClassFactory(isolated_db_session, clock.now)


@pytest.fixture
def uow(isolated_db_session):
    return SqlUnitOfWork(isolated_db_session)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def service(uow, notifier, clock):
    """Facade wired to the test database, a recording notifier and the fake clock."""
    return BoundaryIntelligenceService(uow, notifier, cache=AnalyticsCache(600, clock=clock), clock=clock)


@pytest.fixture
def db_service(isolated_db_session, clock):
    """Facade that stores notifications in the test database."""
    return BoundaryIntelligenceService.from_session(
        isolated_db_session, cache=AnalyticsCache(600, clock=clock), clock=clock
    )


def notifications_for(db: Session, recipient_id: str) -> List[Notification]:
    return db.query(Notification).filter(Notification.recipient_id == recipient_id).all()

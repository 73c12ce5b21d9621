"""
Student telemetry models.

These tables are written by the writing platform; the boundary subsystem
only reads them.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


class Student(SQLModel, table=True):
    """Student model."""

    __tablename__ = "students"

    id: str = Field(primary_key=True, max_length=50)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part) or self.id


class CourseEnrollment(SQLModel, table=True):
    """Course roster entry."""

    __tablename__ = "course_enrollments"

    id: Optional[int] = Field(default=None, primary_key=True)
    course_id: str = Field(index=True, max_length=50)
    student_id: str = Field(foreign_key="students.id", index=True, max_length=50)
    enrolled_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)


class StudentProfile(SQLModel, table=True):
    """Learning profile maintained by the profiling service."""

    __tablename__ = "student_profiles"

    student_id: str = Field(foreign_key="students.id", primary_key=True, max_length=50)
    current_cognitive_load: Optional[str] = Field(default=None, max_length=20)  # low, optimal, high, overload
    independence_trend: Optional[str] = Field(default=None, max_length=20)  # increasing, stable, decreasing
    quality_without_ai: Optional[float] = Field(default=None)  # 0-100
    updated_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)


class WritingSession(SQLModel, table=True):
    """Writing session on an assignment document."""

    __tablename__ = "writing_sessions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: str = Field(foreign_key="students.id", index=True, max_length=50)
    assignment_id: str = Field(foreign_key="assignments.id", index=True, max_length=50)
    start_time: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime, index=True)
    duration: Optional[int] = Field(default=None)  # seconds
    words_added: int = Field(default=0)


class AIInteractionLog(SQLModel, table=True):
    """Single AI assistance request, optionally scored for reflection quality."""

    __tablename__ = "ai_interaction_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    student_id: str = Field(foreign_key="students.id", index=True, max_length=50)
    assignment_id: str = Field(foreign_key="assignments.id", index=True, max_length=50)
    reflection_quality_score: Optional[float] = Field(default=None)  # 0-100
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime, index=True)


class AssignmentSubmission(SQLModel, table=True):
    """Submission record; ``submitted_at`` stays empty for drafts."""

    __tablename__ = "assignment_submissions"

    id: Optional[int] = Field(default=None, primary_key=True)
    assignment_id: str = Field(foreign_key="assignments.id", index=True, max_length=50)
    author_id: str = Field(foreign_key="students.id", index=True, max_length=50)
    submitted_at: Optional[datetime] = Field(default=None, sa_type=DateTime)
    created_at: datetime = Field(default_factory=datetime.utcnow, sa_type=DateTime)

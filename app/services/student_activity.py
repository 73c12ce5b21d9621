"""
Per-student activity summaries built from raw telemetry.

Analytics, segmentation, pattern detection and affected-student selection all
work from the same summary so their per-student numbers agree.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional

from app.repositories.base import TelemetryReader
from app.services.boundary_thresholds import (
    DECREASING_TREND,
    DEFAULT_INDEPENDENCE_SCORE,
    HIGH_LOAD_LEVELS,
)

logger = logging.getLogger("app.analytics.activity")

SECONDS_PER_HOUR = 3600


@dataclass
class StudentActivity:
    student_id: str
    name: str
    cognitive_load: Optional[str] = None
    independence_trend: Optional[str] = None
    quality_without_ai: Optional[float] = None
    interaction_count: int = 0
    session_count: int = 0
    session_seconds: int = 0
    reflection_scores: List[float] = field(default_factory=list)
    progress_rate: float = 0.0  # words per hour in the latest session
    submitted: bool = False

    @property
    def usage_rate(self) -> float:
        return usage_rate(self.interaction_count, self.session_seconds)

    @property
    def average_reflection(self) -> float:
        if not self.reflection_scores:
            return 0.0
        return sum(self.reflection_scores) / len(self.reflection_scores)

    @property
    def independence_score(self) -> float:
        if self.quality_without_ai is None:
            return DEFAULT_INDEPENDENCE_SCORE
        return self.quality_without_ai

    @property
    def high_load(self) -> bool:
        return is_high_load(self.cognitive_load)


def usage_rate(interaction_count: int, session_seconds: float) -> float:
    """AI interactions per hour of writing; 0 without any recorded writing time."""
    if session_seconds <= 0:
        return 0.0
    return interaction_count / (session_seconds / SECONDS_PER_HOUR)


def is_high_load(cognitive_load: Optional[str]) -> bool:
    return cognitive_load in HIGH_LOAD_LEVELS


def is_struggling(activity: StudentActivity) -> bool:
    """High cognitive load or a declining independence trend."""
    return activity.high_load or activity.independence_trend == DECREASING_TREND


def collect_student_activity(
    telemetry: TelemetryReader,
    course_id: str,
    assignment_id: str,
    since: Optional[datetime] = None,
    until: Optional[datetime] = None,
) -> List[StudentActivity]:
    """
    Summarize every enrolled student's work on an assignment.

    Args:
        telemetry: Telemetry reader
        course_id: Course whose roster is summarized
        assignment_id: Assignment the sessions and interactions belong to
        since: Optional lower bound for sessions and interactions
        until: Optional upper bound (exclusive)

    Returns:
        One summary per enrolled student, in roster order
    """
    roster = telemetry.get_roster(course_id)
    if not roster:
        logger.info(f"Empty roster for course {course_id}")
        return []

    activities: Dict[str, StudentActivity] = {}
    for student, profile in roster:
        activities[student.id] = StudentActivity(
            student_id=student.id,
            name=student.display_name,
            cognitive_load=profile.current_cognitive_load if profile else None,
            independence_trend=profile.independence_trend if profile else None,
            quality_without_ai=profile.quality_without_ai if profile else None,
        )

    student_ids = list(activities)

    sessions_by_student = defaultdict(list)
    for session in telemetry.get_sessions(assignment_id, student_ids, since=since, until=until):
        sessions_by_student[session.user_id].append(session)

    for student_id, sessions in sessions_by_student.items():
        activity = activities[student_id]
        activity.session_count = len(sessions)
        activity.session_seconds = sum(s.duration or 0 for s in sessions)

        latest = max(sessions, key=lambda s: s.start_time)
        latest_hours = (latest.duration or 1) / SECONDS_PER_HOUR
        activity.progress_rate = (latest.words_added or 0) / latest_hours

    for interaction in telemetry.get_interactions(assignment_id, student_ids, since=since, until=until):
        activity = activities[interaction.student_id]
        activity.interaction_count += 1
        if interaction.reflection_quality_score is not None:
            activity.reflection_scores.append(interaction.reflection_quality_score)

    for submission in telemetry.get_submissions(assignment_id, student_ids):
        if submission.submitted_at is not None:
            activities[submission.author_id].submitted = True

    return list(activities.values())

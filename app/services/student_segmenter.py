"""
Segments students by how they use AI assistance.
"""

import logging
from typing import Callable, Dict, List, Optional, Tuple

from app.models.enums import SegmentType
from app.repositories.base import UnitOfWork
from app.schemas.boundary import SegmentedStudent, StudentMetrics, StudentSegment
from app.services.boundary_thresholds import (
    OVER_DEPENDENCE_RATE,
    THRIVING_INDEPENDENCE_MIN,
    THRIVING_REFLECTION_MIN,
    UNDER_UTILIZATION_RATE,
)
from app.services.student_activity import StudentActivity, collect_student_activity

logger = logging.getLogger("app.segmentation")

SegmentRule = Tuple[Callable[[StudentActivity], bool], SegmentType, str]

# Evaluated top to bottom, first match wins. Dependency is checked before
# cognitive load so a dependent student who also struggles lands in over-dependent.
SEGMENT_RULES: List[SegmentRule] = [
    (
        lambda a: a.usage_rate > OVER_DEPENDENCE_RATE,
        SegmentType.OVER_DEPENDENT,
        "Excessive AI dependency",
    ),
    (
        lambda a: a.high_load and a.usage_rate < UNDER_UTILIZATION_RATE,
        SegmentType.UNDER_UTILIZING,
        "Struggling without using available support",
    ),
    (
        lambda a: a.high_load,
        SegmentType.STRUGGLING,
        "High cognitive load despite AI usage",
    ),
    (
        lambda a: a.average_reflection >= THRIVING_REFLECTION_MIN and a.independence_score >= THRIVING_INDEPENDENCE_MIN,
        SegmentType.THRIVING,
        "Excellent balance of AI usage and independence",
    ),
    (
        lambda a: True,
        SegmentType.PROGRESSING,
        "Making steady progress",
    ),
]

SEGMENT_ORDER = [
    SegmentType.THRIVING,
    SegmentType.PROGRESSING,
    SegmentType.STRUGGLING,
    SegmentType.OVER_DEPENDENT,
    SegmentType.UNDER_UTILIZING,
]


def classify(activity: StudentActivity) -> Tuple[SegmentType, str]:
    """Return the segment and primary issue for one student."""
    for predicate, segment_type, primary_issue in SEGMENT_RULES:
        if predicate(activity):
            return segment_type, primary_issue
    # The last rule always matches
    raise AssertionError("segment rules are not exhaustive")


def group_segments(activity: List[StudentActivity]) -> List[StudentSegment]:
    """Place every student in exactly one segment, omitting empty segments."""
    grouped: Dict[SegmentType, List[SegmentedStudent]] = {segment_type: [] for segment_type in SEGMENT_ORDER}

    for student in activity:
        segment_type, primary_issue = classify(student)
        grouped[segment_type].append(
            SegmentedStudent(
                id=student.student_id,
                name=student.name,
                primary_issue=primary_issue,
                metrics=StudentMetrics(
                    ai_usage_rate=student.usage_rate,
                    reflection_quality=student.average_reflection,
                    independence_score=student.independence_score,
                    progress_rate=student.progress_rate,
                ),
            )
        )

    return [
        StudentSegment(type=segment_type, students=students)
        for segment_type, students in grouped.items()
        if students
    ]


class StudentSegmenter:
    """Recomputes segments on every call; segments are never stored."""

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    def segment(
        self,
        course_id: str,
        assignment_id: str,
        activity: Optional[List[StudentActivity]] = None,
    ) -> List[StudentSegment]:
        if activity is None:
            activity = collect_student_activity(self.uow.telemetry, course_id, assignment_id)

        segments = group_segments(activity)
        logger.info(
            f"Segmented {len(activity)} students for assignment {assignment_id}: "
            + ", ".join(f"{s.type.value}={len(s.students)}" for s in segments)
        )
        return segments

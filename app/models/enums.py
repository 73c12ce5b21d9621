"""
Closed vocabularies shared by tables and analysis results.
"""
from enum import Enum


class CognitiveLoad(str, Enum):
    LOW = "low"
    OPTIMAL = "optimal"
    HIGH = "high"
    OVERLOAD = "overload"


class SegmentType(str, Enum):
    THRIVING = "thriving"
    PROGRESSING = "progressing"
    STRUGGLING = "struggling"
    OVER_DEPENDENT = "over-dependent"
    UNDER_UTILIZING = "under-utilizing"


class RecommendationType(str, Enum):
    CLASS_WIDE = "class_wide"
    INDIVIDUAL = "individual"
    TEMPORAL = "temporal"


class Phase(str, Enum):
    EARLY = "early"
    MIDDLE = "middle"
    LATE = "late"


class Trend(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class PatternType(str, Enum):
    OVER_DEPENDENCE = "over_dependence"
    UNDER_UTILIZATION = "under_utilization"
    LOW_ENGAGEMENT = "low_engagement"
    COMPLETION_CHALLENGES = "completion_challenges"


class AdjustmentType(str, Enum):
    REDUCE_ACCESS = "reduce_access"
    INCREASE_SUPPORT = "increase_support"
    MODIFY_COMPLEXITY = "modify_complexity"
    TEMPORAL_SHIFT = "temporal_shift"


class ProposalStatus(str, Enum):
    """
    Lifecycle of a boundary proposal.

    Approval also stamps ``implemented_at``; there is no separate state for it.
    """

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class NotificationPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

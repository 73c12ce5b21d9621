"""
Calibration constants for boundary analysis.

The values are hand-tuned; keep them named here rather than inlined.
"""

from app.models.enums import CognitiveLoad
from app.services.config_service import config_service

# Per-student classification
OVER_DEPENDENCE_RATE = 5.0  # AI interactions per hour of writing
UNDER_UTILIZATION_RATE = 1.0  # AI interactions per hour of writing
THRIVING_REFLECTION_MIN = 70.0
THRIVING_INDEPENDENCE_MIN = 70.0
DEFAULT_INDEPENDENCE_SCORE = 50.0
HIGH_LOAD_LEVELS = frozenset({CognitiveLoad.HIGH.value, CognitiveLoad.OVERLOAD.value})
DECREASING_TREND = "decreasing"

DEFAULT_QUESTIONS_PER_HOUR = 5

# Effectiveness deductions
OVER_DEPENDENT_RATIO_MAX = 0.3
UNDER_UTILIZING_RATIO_MAX = 0.2
REFLECTION_QUALITY_TARGET = 60.0
COMPLETION_RATE_TARGET = 0.7
UTILIZATION_RATE_TARGET = 0.5

OVER_DEPENDENCE_PENALTY = 20
UNDER_UTILIZATION_PENALTY = 15
REFLECTION_QUALITY_PENALTY = 15
COMPLETION_RATE_PENALTY = 10
UTILIZATION_RATE_PENALTY = 10

# Recommendations
CLASS_WIDE_EFFECTIVENESS_MAX = 70
MIN_QUESTIONS_PER_HOUR = 2
QUESTIONS_PER_HOUR_STEP = 2
EARLY_PHASE_STRUGGLING_RATIO = 0.3
EARLY_PHASE_END = 1 / 3
MIDDLE_PHASE_END = 2 / 3

# Pattern detection
DEPENDENCY_RATE_THRESHOLD = 0.6
DEPENDENCY_RATE_HIGH = 0.7
LOW_USAGE_RATE_THRESHOLD = 0.3
STRUGGLING_RATE_THRESHOLD = 0.4
LOW_REFLECTION_THRESHOLD = 40.0
ENGAGED_USAGE_RATE_THRESHOLD = 0.5
LOW_COMPLETION_THRESHOLD = 0.5
TIME_ON_TASK_THRESHOLD = 120.0  # minutes

OVER_DEPENDENCE_CONFIDENCE = 0.7
OVER_DEPENDENCE_HIGH_CONFIDENCE = 0.9
UNDER_UTILIZATION_CONFIDENCE = 0.8
LOW_ENGAGEMENT_CONFIDENCE = 0.75
COMPLETION_CHALLENGES_CONFIDENCE = 0.85

# Relative change between windows below which a metric counts as stable
TREND_TOLERANCE = 0.1

# Proposal gate
MIN_AFFECTED_STUDENTS = 3
MIN_EVIDENCE_DEVIATION = 0.2

# Windows and cache lifetimes
PERFORMANCE_WINDOW_DAYS = config_service.get_int("PERFORMANCE_WINDOW_DAYS", 7)
PROPOSAL_DEDUP_DAYS = config_service.get_int("PROPOSAL_DEDUP_DAYS", 7)
ANALYTICS_CACHE_TTL_SECONDS = config_service.get_int("ANALYTICS_CACHE_TTL_SECONDS", 600)

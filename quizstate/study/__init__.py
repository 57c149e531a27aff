"""
Study features built on the synchronized state.

- quiz_config: validated quiz configuration record
- quiz_engine: question filtering, session creation, scoring
- missions: XP, levels and streaks
- stats: hierarchical accuracy statistics
- analysis: learner insights
- state: StudyState, the wired set of synced stores
"""

from .analysis import ReviewStatus, SubjectInsight, least_covered_subject, review_status, weakest_subject
from .missions import LevelInfo, initial_mission_state, level_info, register_activity, xp_for_level
from .quiz_config import QuizConfig, round_name
from .quiz_engine import QuizResult, calculate_score, create_session_questions, filter_questions
from .state import StudyState
from .stats import CategoryNode, StatNode, calculate_hierarchy_stats

__all__ = [
    "QuizConfig",
    "round_name",
    "QuizResult",
    "filter_questions",
    "create_session_questions",
    "calculate_score",
    "LevelInfo",
    "level_info",
    "xp_for_level",
    "initial_mission_state",
    "register_activity",
    "CategoryNode",
    "StatNode",
    "calculate_hierarchy_stats",
    "SubjectInsight",
    "ReviewStatus",
    "weakest_subject",
    "least_covered_subject",
    "review_status",
    "StudyState",
]

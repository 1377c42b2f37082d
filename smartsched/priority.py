import math
from datetime import date, datetime, time
from typing import Any, Optional

from smartsched.schemas import PerformanceAggregate

DIFFICULTY_SCORE = {"easy": 1, "medium": 2, "hard": 3}
DEFAULT_HOURS_BY_DIFFICULTY = {"easy": 1.5, "medium": 3.0, "hard": 5.0}

NEVER_STUDIED_BOOST = 8
EXAM_PANIC_DAYS = 3
EXAM_PANIC_BOOST = 15
COMPLETION_PENALTY = 15

SECONDS_PER_DAY = 86400


def _days_between(later: datetime, earlier: datetime) -> int:
    """Whole days from earlier to later, rounded up"""
    return math.ceil((later - earlier).total_seconds() / SECONDS_PER_DAY)


class PriorityScorer:
    """
    Additive priority formula for study topics.
    Higher score = studied sooner. Scores are not clamped and may be negative.
    """

    @staticmethod
    def calculate_topic_priority(
        topic: Any,
        subject: Any,
        performance: Optional[PerformanceAggregate] = None,
        now: Optional[datetime] = None
    ) -> float:
        """
        Score a topic from its subject, its own attributes and past sessions.

        Args:
            topic: Object with difficulty, importance, is_completed
            subject: Object with priority_level, exam_date
            performance: Completed-session rollup, None if never studied
            now: Reference time (defaults to now)

        Returns:
            Score rounded to 2 decimals
        """
        now = now or datetime.now()
        priority = 0.0

        # Subject importance (3x)
        priority += (subject.priority_level or 3) * 3

        # Topic difficulty (2x)
        priority += DIFFICULTY_SCORE.get(topic.difficulty, 2) * 2

        # Exam urgency (5x), skipped entirely without an exam date
        if subject.exam_date:
            priority += PriorityScorer.exam_urgency_boost(subject.exam_date, now)

        # Topic importance (2x)
        priority += (topic.importance or 3) * 2

        priority += PriorityScorer.performance_boost(performance)

        if topic.is_completed:
            priority -= COMPLETION_PENALTY

        if performance and performance.last_studied:
            priority += PriorityScorer.spaced_repetition_boost(performance.last_studied, now)

        return round(priority, 2)

    @staticmethod
    def exam_urgency_boost(exam_date: date, now: datetime) -> float:
        """Urgency term: min(10, 30 / days) x 5, plus a flat boost inside 3 days"""
        exam_start = datetime.combine(exam_date, time.min)
        days_remaining = max(1, _days_between(exam_start, now))
        urgency = min(10, 30 / days_remaining)
        boost = urgency * 5
        if days_remaining <= EXAM_PANIC_DAYS:
            boost += EXAM_PANIC_BOOST
        return boost

    @staticmethod
    def performance_boost(performance: Optional[PerformanceAggregate]) -> int:
        """Weak topics go up, mastered topics go slightly down"""
        if performance is None or performance.session_count == 0:
            return NEVER_STUDIED_BOOST

        avg_score = performance.avg_score
        if avg_score < 40:
            return 8
        if avg_score < 60:
            return 5
        if avg_score < 75:
            return 3
        if avg_score >= 90:
            return -2
        return 0

    @staticmethod
    def spaced_repetition_boost(last_studied: datetime, now: datetime) -> int:
        """Revision boost growing with days since the topic was last studied"""
        days_since = _days_between(now, last_studied)
        if days_since >= 30:
            return 6
        if days_since >= 14:
            return 4
        if days_since >= 7:
            return 2
        if days_since >= 3:
            return 1
        return 0

    @staticmethod
    def task_priority(priority_score: float) -> int:
        """Map a raw score onto the 1-5 task priority scale"""
        return max(1, min(5, math.ceil(priority_score / 10)))

    @staticmethod
    def default_hours(difficulty: Optional[str]) -> float:
        """Rule-based study-time estimate for a topic without one"""
        return DEFAULT_HOURS_BY_DIFFICULTY.get(difficulty, 3.0)

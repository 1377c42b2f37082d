"""Topic ranking: joins topics, subjects and session performance into one ordered list."""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from smartsched import crud
from smartsched.priority import PriorityScorer
from smartsched.schemas import PerformanceAggregate, RankedTopic

logger = logging.getLogger(__name__)

DEFAULT_ESTIMATED_HOURS = 1.0


def estimated_hours(topic) -> float:
    """Stored estimate, or one hour when the topic has none"""
    if topic.estimated_hours is None:
        return DEFAULT_ESTIMATED_HOURS
    return float(topic.estimated_hours)


def build_ranked_topic(
    topic,
    subject,
    performance: Optional[PerformanceAggregate],
    priority_score: float,
    remaining_hours: float,
    is_revision: bool = False
) -> RankedTopic:
    return RankedTopic(
        topic_id=topic.id,
        name=topic.name,
        subject_id=subject.id,
        subject_name=subject.name,
        subject_color=subject.color,
        subject_priority=subject.priority_level,
        exam_date=subject.exam_date,
        difficulty=topic.difficulty,
        importance=topic.importance,
        estimated_hours=topic.estimated_hours,
        is_completed=bool(topic.is_completed),
        updated_at=topic.updated_at,
        priority_score=priority_score,
        performance=performance,
        remaining_hours=remaining_hours,
        is_revision=is_revision
    )


def rank_topics(db: Session, user_id: int, now: Optional[datetime] = None) -> List[RankedTopic]:
    """
    Rank a learner's incomplete topics, highest priority first.

    Performance comes from a single aggregation query; remaining hours are
    derived here on every call and never stored. The sort is stable, so equal
    scores keep the fetch order (subject priority desc, importance desc).

    Returns:
        Ranked topics, empty when the learner has nothing eligible
    """
    now = now or datetime.now()
    rows = crud.get_schedulable_topics(db, user_id)
    if not rows:
        return []

    performance_map = crud.get_performance_by_topic(db, user_id)

    ranked = []
    for topic, subject in rows:
        performance = performance_map.get(topic.id)
        spent_hours = (performance.total_minutes if performance else 0) / 60
        ranked.append(build_ranked_topic(
            topic,
            subject,
            performance,
            priority_score=PriorityScorer.calculate_topic_priority(topic, subject, performance, now),
            remaining_hours=max(0.0, estimated_hours(topic) - spent_hours)
        ))

    ranked.sort(key=lambda t: t.priority_score, reverse=True)
    logger.debug("Ranked %d topics for user %s", len(ranked), user_id)
    return ranked

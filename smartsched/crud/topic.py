from sqlalchemy.orm import Session
from smartsched.models import Subject, Topic
from smartsched.priority import PriorityScorer
from smartsched.schemas import TopicCreate
from typing import List, Tuple

def create_topic(db: Session, topic: TopicCreate) -> Topic:
    """Create a topic, estimating study hours from difficulty when not given"""
    data = topic.model_dump()
    if data["estimated_hours"] is None:
        data["estimated_hours"] = PriorityScorer.default_hours(data["difficulty"])
    db_topic = Topic(**data)
    db.add(db_topic)
    db.commit()
    db.refresh(db_topic)
    return db_topic

def get_schedulable_topics(db: Session, user_id: int) -> List[Tuple[Topic, Subject]]:
    """
    Get incomplete topics of a learner's non-archived subjects.

    Ordered by subject priority, then topic importance; the ranker relies on
    this order to break score ties.
    """
    return db.query(Topic, Subject).join(
        Subject, Topic.subject_id == Subject.id
    ).filter(
        Subject.user_id == user_id,
        Subject.is_archived.is_(False),
        Topic.is_completed.is_(False)
    ).order_by(
        Subject.priority_level.desc(),
        Topic.importance.desc(),
        Topic.id
    ).all()

def count_topics(db: Session, user_id: int) -> int:
    """Count all topics (completed or not) of non-archived subjects"""
    return db.query(Topic).join(
        Subject, Topic.subject_id == Subject.id
    ).filter(
        Subject.user_id == user_id,
        Subject.is_archived.is_(False)
    ).count()

def get_revision_topics(db: Session, user_id: int, limit: int = 10) -> List[Tuple[Topic, Subject]]:
    """Get the least recently updated topics across a learner's subjects"""
    return db.query(Topic, Subject).join(
        Subject, Topic.subject_id == Subject.id
    ).filter(
        Subject.user_id == user_id,
        Subject.is_archived.is_(False)
    ).order_by(Topic.updated_at.asc(), Topic.id).limit(limit).all()

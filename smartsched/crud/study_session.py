from sqlalchemy import func
from sqlalchemy.orm import Session
from smartsched.models import StudySession
from smartsched.schemas import StudySessionCreate, PerformanceAggregate
from datetime import date, datetime, time, timedelta
from typing import Dict, Tuple

def record_study_session(db: Session, user_id: int, session: StudySessionCreate) -> StudySession:
    """Record a study session; end time is derived from the actual minutes"""
    db_session = StudySession(
        user_id=user_id,
        end_time=session.start_time + timedelta(minutes=session.actual_minutes),
        planned_minutes=session.actual_minutes,
        **session.model_dump()
    )
    db.add(db_session)
    db.commit()
    db.refresh(db_session)
    return db_session

def get_performance_by_topic(db: Session, user_id: int) -> Dict[int, PerformanceAggregate]:
    """
    Aggregate completed sessions per topic in a single grouped query.

    Returns:
        Mapping topic_id -> PerformanceAggregate (quality scaled 1-5 -> 0-100)
    """
    rows = db.query(
        StudySession.topic_id,
        func.avg(StudySession.quality_rating),
        func.count(StudySession.id),
        func.max(StudySession.start_time),
        func.sum(StudySession.actual_minutes)
    ).filter(
        StudySession.user_id == user_id,
        StudySession.topic_id.isnot(None),
        StudySession.status == "completed"
    ).group_by(StudySession.topic_id).all()

    performance = {}
    for topic_id, avg_quality, count, last_studied, total_minutes in rows:
        performance[topic_id] = PerformanceAggregate(
            avg_score=float(avg_quality) * 20 if avg_quality is not None else 0.0,
            session_count=int(count),
            last_studied=last_studied,
            total_minutes=int(total_minutes or 0)
        )
    return performance

def get_session_totals_for_day(db: Session, user_id: int, day: date) -> Tuple[int, int]:
    """Get (study minutes, session count) of completed sessions started on a day"""
    start = datetime.combine(day, time.min)
    minutes, count = db.query(
        func.coalesce(func.sum(StudySession.actual_minutes), 0),
        func.count(StudySession.id)
    ).filter(
        StudySession.user_id == user_id,
        StudySession.status == "completed",
        StudySession.start_time >= start,
        StudySession.start_time < start + timedelta(days=1)
    ).one()
    return int(minutes), int(count)

from sqlalchemy.orm import Session
from smartsched.models import Subject
from smartsched.schemas import SubjectCreate
from typing import List

def create_subject(db: Session, user_id: int, subject: SubjectCreate) -> Subject:
    """Create a subject for a learner"""
    data = subject.model_dump(exclude_none=True)
    db_subject = Subject(user_id=user_id, **data)
    db.add(db_subject)
    db.commit()
    db.refresh(db_subject)
    return db_subject

def get_active_subjects(db: Session, user_id: int) -> List[Subject]:
    """Get non-archived subjects for a learner"""
    return db.query(Subject).filter(
        Subject.user_id == user_id,
        Subject.is_archived.is_(False)
    ).order_by(Subject.priority_level.desc(), Subject.id).all()

def count_active_subjects(db: Session, user_id: int) -> int:
    """Count non-archived subjects for a learner"""
    return db.query(Subject).filter(
        Subject.user_id == user_id,
        Subject.is_archived.is_(False)
    ).count()

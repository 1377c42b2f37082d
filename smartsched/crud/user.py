from sqlalchemy.orm import Session
from smartsched.config import settings
from smartsched.models import User
from smartsched.schemas import UserCreate, Preferences
from typing import Optional

def create_user(db: Session, user: UserCreate) -> User:
    """Create a new learner profile"""
    db_user = User(**user.model_dump())
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user

def get_user(db: Session, user_id: int) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()

def update_user(db: Session, user_id: int, user_data: dict) -> Optional[User]:
    """Update learner profile"""
    db_user = get_user(db, user_id)
    if db_user:
        for key, value in user_data.items():
            setattr(db_user, key, value)
        db.commit()
        db.refresh(db_user)
    return db_user

def get_preferences(db: Session, user_id: int) -> Preferences:
    """
    Get study preferences for a learner.

    Unknown learners get the configured defaults. A stored daily_study_hours of
    None is passed through so the scheduler can tell "missing" from "zero".
    """
    user = get_user(db, user_id)
    if user is None:
        return Preferences(
            daily_study_hours=settings.default_daily_study_hours,
            preferred_study_time=settings.default_study_time,
            timezone=settings.default_timezone
        )
    return Preferences(
        daily_study_hours=user.daily_study_hours,
        preferred_study_time=user.preferred_study_time or settings.default_study_time,
        timezone=user.timezone or settings.default_timezone
    )

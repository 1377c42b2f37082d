"""Shared fixtures: in-memory database, fixed clock, scheduler service."""

from datetime import date, datetime

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from smartsched.crud import create_subject, create_topic, create_user
from smartsched.database import init_db
from smartsched.scheduler import LearnerLocks, SchedulerService
from smartsched.schemas import SubjectCreate, TopicCreate, UserCreate

# Monday morning
NOW = datetime(2024, 3, 4, 9, 0)
TODAY = NOW.date()


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def service(session_factory):
    """Scheduler pinned to NOW that never rotates on the random draw"""
    return SchedulerService(
        session_factory=session_factory,
        rng=lambda: 0.0,
        clock=lambda: NOW,
        locks=LearnerLocks(),
    )


@pytest.fixture
def learner(db):
    return create_user(db, UserCreate(name="Asha", daily_study_hours=2.0))


def add_subject(db, user_id, name="Physics", priority=3, exam_date: date = None):
    return create_subject(db, user_id, SubjectCreate(name=name, priority_level=priority, exam_date=exam_date))


def add_topic(db, subject_id, name="Kinematics", difficulty="medium", importance=3, hours=2.0):
    return create_topic(db, TopicCreate(
        subject_id=subject_id,
        name=name,
        difficulty=difficulty,
        importance=importance,
        estimated_hours=hours,
    ))

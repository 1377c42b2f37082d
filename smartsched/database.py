from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from smartsched.config import settings


def build_engine(database_url: str):
    """Create an engine, relaxing SQLite's same-thread check"""
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True)


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind=None):
    """Create all tables"""
    import smartsched.models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=bind or engine)


@contextmanager
def session_scope(factory: sessionmaker = SessionLocal) -> Generator[Session, None, None]:
    """Yield a session that commits on success and rolls back on error"""
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

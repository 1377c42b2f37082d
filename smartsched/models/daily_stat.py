from sqlalchemy import Column, Integer, Date, DateTime, ForeignKey, UniqueConstraint
from datetime import datetime
from smartsched.database import Base

class DailyStat(Base):
    """Per-day rollup of a learner's study activity"""
    __tablename__ = "daily_stats"
    __table_args__ = (UniqueConstraint("user_id", "stat_date", name="uq_daily_stats_user_date"),)
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    stat_date = Column(Date, nullable=False)
    study_minutes = Column(Integer, default=0)
    tasks_completed = Column(Integer, default=0)
    tasks_planned = Column(Integer, default=0)
    sessions_count = Column(Integer, default=0)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

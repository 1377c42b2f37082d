from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from smartsched.database import Base

class StudySession(Base):
    """Record of a timed study session, the only performance signal"""
    __tablename__ = "study_sessions"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id"))
    task_id = Column(Integer, ForeignKey("tasks.id"))
    
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime)
    planned_minutes = Column(Integer)
    actual_minutes = Column(Integer)
    status = Column(String, default="active", index=True)  # active/completed/cancelled
    quality_rating = Column(Integer)  # 1-5, learner self-assessed
    notes = Column(String)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    
    user = relationship("User", back_populates="study_sessions")

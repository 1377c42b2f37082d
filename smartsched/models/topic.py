from sqlalchemy import Column, Integer, String, Float, DateTime, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from smartsched.database import Base

class Topic(Base):
    """Unit of study inside a subject"""
    __tablename__ = "topics"
    
    id = Column(Integer, primary_key=True, index=True)
    subject_id = Column(Integer, ForeignKey("subjects.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    difficulty = Column(String, default="medium")  # easy/medium/hard
    importance = Column(Integer, default=3)  # 1-5
    estimated_hours = Column(Float, default=1.0)  # total study time expected
    is_completed = Column(Boolean, default=False, nullable=False)
    completed_at = Column(DateTime)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    subject = relationship("Subject", back_populates="topics")

from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.orm import relationship
from datetime import datetime
from smartsched.database import Base

class User(Base):
    """Learner profile with study preferences"""
    __tablename__ = "users"
    
    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True)
    daily_study_hours = Column(Float, default=4.0)  # nullable: provider falls back to defaults
    preferred_study_time = Column(String, default="morning")  # morning/afternoon/evening/night
    timezone = Column(String, default="Asia/Kolkata")
    created_at = Column(DateTime, default=datetime.utcnow)
    
    subjects = relationship("Subject", back_populates="user")
    study_sessions = relationship("StudySession", back_populates="user")
    tasks = relationship("Task", back_populates="user")

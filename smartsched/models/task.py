from sqlalchemy import Column, Integer, String, Float, Date, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
from smartsched.database import Base

TASK_STATUSES = ("pending", "in_progress", "completed", "skipped", "overdue")
TERMINAL_STATUSES = ("completed", "skipped")

class Task(Base):
    """A scheduled unit of work on a given day"""
    __tablename__ = "tasks"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    topic_id = Column(Integer, ForeignKey("topics.id"))  # null for non-study tasks
    title = Column(String, nullable=False)
    description = Column(Text)
    task_type = Column(String, default="study")  # study/revision/practice/assignment
    
    scheduled_date = Column(Date, index=True)
    estimated_minutes = Column(Integer, default=30)
    priority = Column(Integer, default=3)  # 1-5
    priority_score = Column(Float, default=0.0)
    status = Column(String, default="pending", index=True)
    completed_at = Column(DateTime)
    
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    
    user = relationship("User", back_populates="tasks")
    topic = relationship("Topic")

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from datetime import datetime
from smartsched.database import Base

class ProgressLog(Base):
    """Append-only record of topic progress events"""
    __tablename__ = "progress_logs"
    
    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"))
    topic_id = Column(Integer, ForeignKey("topics.id"))
    completion_percentage = Column(Integer, default=0)  # 0-100
    notes = Column(String)
    logged_at = Column(DateTime, default=datetime.utcnow)

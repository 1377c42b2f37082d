from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date, datetime

class UserCreate(BaseModel):
    """Schema for creating a learner profile"""
    name: str
    email: Optional[str] = None
    daily_study_hours: Optional[float] = 4.0
    preferred_study_time: Optional[str] = "morning"
    timezone: Optional[str] = "Asia/Kolkata"

class SubjectCreate(BaseModel):
    """Schema for creating a subject"""
    name: str
    priority_level: int = Field(3, ge=1, le=5)
    exam_date: Optional[date] = None
    color: Optional[str] = None

class TopicCreate(BaseModel):
    """Schema for creating a topic (estimate derived from difficulty if omitted)"""
    subject_id: int
    name: str
    difficulty: str = Field("medium", pattern="^(easy|medium|hard)$")
    importance: int = Field(3, ge=1, le=5)
    estimated_hours: Optional[float] = None

class StudySessionCreate(BaseModel):
    """Schema for recording a finished study session"""
    topic_id: Optional[int] = None
    task_id: Optional[int] = None
    start_time: datetime
    actual_minutes: int = Field(ge=0)
    quality_rating: Optional[int] = Field(None, ge=1, le=5)
    status: str = "completed"
    notes: Optional[str] = None

class Preferences(BaseModel):
    """Learner study preferences as seen by the scheduler"""
    daily_study_hours: Optional[float] = 4.0
    preferred_study_time: str = "morning"
    timezone: str = "Asia/Kolkata"

class PerformanceAggregate(BaseModel):
    """Completed-session rollup for one topic, recomputed on every ranking pass"""
    avg_score: float = 0.0  # quality rating x 20, 0-100 scale
    session_count: int = 0
    last_studied: Optional[datetime] = None
    total_minutes: int = 0

class RankedTopic(BaseModel):
    """Topic joined with its subject and the derived scheduling fields"""
    topic_id: int
    name: str
    subject_id: int
    subject_name: str
    subject_color: Optional[str] = None
    subject_priority: Optional[int] = None
    exam_date: Optional[date] = None
    difficulty: Optional[str] = None
    importance: Optional[int] = None
    estimated_hours: Optional[float] = None
    is_completed: bool = False
    updated_at: Optional[datetime] = None

    priority_score: float
    performance: Optional[PerformanceAggregate] = None
    remaining_hours: float
    is_revision: bool = False

class TaskOut(BaseModel):
    """Schema for a task as returned to callers"""
    id: int
    user_id: int
    topic_id: Optional[int] = None
    title: str
    description: Optional[str] = None
    task_type: str
    scheduled_date: Optional[date] = None
    estimated_minutes: int
    priority: int
    priority_score: float
    status: str
    completed_at: Optional[datetime] = None
    topic_name: Optional[str] = None
    subject_name: Optional[str] = None
    subject_color: Optional[str] = None

    class Config:
        from_attributes = True

class ScheduleResult(BaseModel):
    """Outcome of a schedule generation run"""
    success: bool
    message: str
    code: str  # scheduled/no_subjects/no_topics/all_completed/nothing_scheduled/internal_error
    tasks: List[TaskOut] = []
    tasks_count: int = 0

class TaskActionResult(BaseModel):
    """Outcome of a complete/skip call"""
    success: bool
    message: str
    changed: bool = True
    task: Optional[TaskOut] = None
    rescheduled_task: Optional[TaskOut] = None

class WeeklyTasks(BaseModel):
    """Seven-day task window, flat and grouped by date"""
    start_date: date
    tasks: List[TaskOut]
    tasks_by_date: Dict[date, List[TaskOut]]

class ScheduleStats(BaseModel):
    """Dashboard counters for today and the coming week"""
    today_pending: int = 0
    today_completed: int = 0
    today_skipped: int = 0
    today_minutes_remaining: int = 0
    week_tasks: int = 0

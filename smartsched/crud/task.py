from sqlalchemy import func
from sqlalchemy.orm import Session
from smartsched.models import Task
from smartsched.models.task import TERMINAL_STATUSES
from datetime import date, datetime
from typing import List, Optional, Tuple

AUTO_TASK_TYPE = "study"

def create_task(db: Session, user_id: int, **fields) -> Task:
    """Stage a new task in the current transaction"""
    db_task = Task(user_id=user_id, **fields)
    db.add(db_task)
    db.flush()
    return db_task

def get_user_task(db: Session, user_id: int, task_id: int) -> Optional[Task]:
    """Get a task only if it belongs to the learner"""
    return db.query(Task).filter(
        Task.id == task_id,
        Task.user_id == user_id
    ).first()

def delete_pending_auto_tasks(db: Session, user_id: int, since: date) -> int:
    """Delete pending auto-generated tasks scheduled on or after `since`"""
    deleted = db.query(Task).filter(
        Task.user_id == user_id,
        Task.scheduled_date >= since,
        Task.status == "pending",
        Task.task_type == AUTO_TASK_TYPE
    ).delete(synchronize_session=False)
    db.flush()
    return deleted

def get_committed_minutes(
    db: Session,
    user_id: int,
    day: date,
    manual_only: bool = False,
    exclude_statuses: Tuple[str, ...] = TERMINAL_STATUSES
) -> int:
    """
    Sum estimated minutes of tasks on a day, ignoring the excluded statuses.

    Args:
        manual_only: Count only tasks the generator does not own (non-study types)
        exclude_statuses: Statuses that no longer take time on that day
    """
    query = db.query(func.coalesce(func.sum(Task.estimated_minutes), 0)).filter(
        Task.user_id == user_id,
        Task.scheduled_date == day,
        Task.status.not_in(exclude_statuses)
    )
    if manual_only:
        query = query.filter(Task.task_type != AUTO_TASK_TYPE)
    return int(query.scalar())

def set_task_status(
    db: Session,
    task_id: int,
    expected_status: str,
    new_status: str,
    completed_at: Optional[datetime] = None
) -> bool:
    """
    Compare-and-swap a task's status.

    Returns False when another writer changed the status first.
    """
    values = {"status": new_status, "updated_at": datetime.utcnow()}
    if completed_at is not None:
        values["completed_at"] = completed_at
    updated = db.query(Task).filter(
        Task.id == task_id,
        Task.status == expected_status
    ).update(values, synchronize_session=False)
    return updated == 1

def get_tasks_for_day(db: Session, user_id: int, day: date, include_completed: bool = True) -> List[Task]:
    """Get a learner's tasks for one day, most urgent first"""
    query = db.query(Task).filter(
        Task.user_id == user_id,
        Task.scheduled_date == day
    )
    if not include_completed:
        query = query.filter(Task.status != "completed")
    return query.order_by(Task.priority_score.desc(), Task.priority.asc(), Task.id).all()

def get_tasks_between(db: Session, user_id: int, start: date, end: date) -> List[Task]:
    """Get tasks with start <= scheduled_date < end, by date then score"""
    return db.query(Task).filter(
        Task.user_id == user_id,
        Task.scheduled_date >= start,
        Task.scheduled_date < end
    ).order_by(Task.scheduled_date.asc(), Task.priority_score.desc(), Task.id).all()

def count_tasks(db: Session, user_id: int, day: date, status: Optional[str] = None) -> int:
    """Count a learner's tasks on a day, optionally with one status"""
    query = db.query(Task).filter(
        Task.user_id == user_id,
        Task.scheduled_date == day
    )
    if status is not None:
        query = query.filter(Task.status == status)
    return query.count()

def sum_pending_minutes(db: Session, user_id: int, day: date) -> int:
    """Sum estimated minutes of pending tasks on a day"""
    return int(db.query(func.coalesce(func.sum(Task.estimated_minutes), 0)).filter(
        Task.user_id == user_id,
        Task.scheduled_date == day,
        Task.status == "pending"
    ).scalar())

def count_tasks_after(db: Session, user_id: int, start: date, end: date) -> int:
    """Count tasks with start < scheduled_date <= end"""
    return db.query(Task).filter(
        Task.user_id == user_id,
        Task.scheduled_date > start,
        Task.scheduled_date <= end
    ).count()

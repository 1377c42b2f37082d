"""Task lifecycle transitions: completion and skip-with-reschedule."""

import logging
from datetime import date, datetime, timedelta

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from smartsched import crud
from smartsched.config import settings
from smartsched.exceptions import TaskConflictError, TaskNotFoundError
from smartsched.helpers import task_to_out
from smartsched.models import Task
from smartsched.models.task import TERMINAL_STATUSES
from smartsched.schemas import TaskActionResult

logger = logging.getLogger(__name__)

RESCHEDULE_PREFIX = "[Rescheduled] "
RESCHEDULE_PRIORITY_BUMP = 1
RESCHEDULE_SCORE_BUMP = 5
MAX_TASK_PRIORITY = 5


def _require_task(db: Session, user_id: int, task_id: int) -> Task:
    task = crud.get_user_task(db, user_id, task_id)
    if task is None:
        raise TaskNotFoundError(task_id, user_id)
    return task


def _already_done(task: Task) -> TaskActionResult:
    return TaskActionResult(
        success=True,
        changed=False,
        message=f"Task already {task.status}",
        task=task_to_out(task)
    )


def _transition(db: Session, task: Task, new_status: str, completed_at: datetime = None) -> bool:
    """
    Move a task to new_status unless another writer got there first.

    Returns False if the task was concurrently moved to a terminal state
    (the caller treats that as a no-op).
    """
    observed = task.status
    if crud.set_task_status(db, task.id, observed, new_status, completed_at=completed_at):
        db.refresh(task)
        return True

    db.refresh(task)
    if task.status in TERMINAL_STATUSES:
        return False
    raise TaskConflictError(task.id, observed, task.status)


def complete_task(db: Session, user_id: int, task_id: int, now: datetime) -> TaskActionResult:
    """
    Mark a learner's task completed.

    Completing a completed or skipped task is a no-op (changed=False). The
    progress log entry is best-effort and never fails the completion.

    Raises:
        TaskNotFoundError: task missing or owned by someone else
    """
    task = _require_task(db, user_id, task_id)
    if task.status in TERMINAL_STATUSES:
        return _already_done(task)

    if not _transition(db, task, "completed", completed_at=now):
        return _already_done(task)

    if task.topic_id is not None:
        try:
            with db.begin_nested():
                crud.log_progress(
                    db,
                    user_id=user_id,
                    topic_id=task.topic_id,
                    task_id=task.id,
                    completion_percentage=100,
                    notes="Task completed"
                )
        except SQLAlchemyError:
            logger.warning("Could not log progress for task %s", task.id, exc_info=True)

    logger.info("User %s completed task %s", user_id, task.id)
    return TaskActionResult(
        success=True,
        message="Task completed successfully",
        task=task_to_out(task)
    )


def find_reschedule_date(
    db: Session,
    user_id: int,
    minutes: int,
    today: date,
    lookahead_days: int = None,
    daily_cap_minutes: int = None
) -> date:
    """First day after today where open tasks plus `minutes` stay under the cap, else tomorrow"""
    lookahead_days = lookahead_days or settings.reschedule_lookahead_days
    daily_cap_minutes = daily_cap_minutes or settings.reschedule_daily_cap_minutes

    for offset in range(1, lookahead_days + 1):
        candidate = today + timedelta(days=offset)
        committed = crud.get_committed_minutes(db, user_id, candidate)
        if committed + minutes <= daily_cap_minutes:
            return candidate
    return today + timedelta(days=1)


def skip_task(db: Session, user_id: int, task_id: int, reason: str, today: date) -> TaskActionResult:
    """
    Skip a task and re-insert a boosted copy on the next day with room.

    The skipped task stays terminal; the clone gets priority +1 (max 5) and
    priority_score +5 so it resurfaces ahead of its old position.

    Raises:
        TaskNotFoundError: task missing or owned by someone else
    """
    task = _require_task(db, user_id, task_id)
    if task.status in TERMINAL_STATUSES:
        return _already_done(task)

    if not _transition(db, task, "skipped"):
        return _already_done(task)

    minutes = task.estimated_minutes or 0
    next_date = find_reschedule_date(db, user_id, minutes, today)

    description = f"Rescheduled from {task.scheduled_date}."
    if reason:
        description += f" Reason: {reason}"

    clone = crud.create_task(
        db,
        user_id,
        topic_id=task.topic_id,
        title=f"{RESCHEDULE_PREFIX}{task.title}",
        description=description,
        task_type=task.task_type,
        scheduled_date=next_date,
        estimated_minutes=task.estimated_minutes,
        priority=min(MAX_TASK_PRIORITY, (task.priority or 3) + RESCHEDULE_PRIORITY_BUMP),
        priority_score=(task.priority_score or 0) + RESCHEDULE_SCORE_BUMP,
        status="pending"
    )

    logger.info("User %s skipped task %s, rescheduled as %s on %s", user_id, task.id, clone.id, next_date)
    return TaskActionResult(
        success=True,
        message=f"Task skipped and rescheduled to {next_date:%Y-%m-%d}",
        task=task_to_out(task),
        rescheduled_task=task_to_out(clone)
    )

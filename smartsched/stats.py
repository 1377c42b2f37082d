"""Daily rollups and dashboard counters"""

from datetime import date, timedelta

from sqlalchemy.orm import Session

from smartsched import crud
from smartsched.models import DailyStat
from smartsched.schemas import ScheduleStats


def refresh_daily_stats(db: Session, user_id: int, day: date) -> DailyStat:
    """Recompute one day's rollup from sessions and tasks, then upsert it"""
    study_minutes, sessions_count = crud.get_session_totals_for_day(db, user_id, day)
    return crud.upsert_daily_stat(
        db,
        user_id,
        day,
        study_minutes=study_minutes,
        sessions_count=sessions_count,
        tasks_planned=crud.count_tasks(db, user_id, day),
        tasks_completed=crud.count_tasks(db, user_id, day, status="completed")
    )


def schedule_stats(db: Session, user_id: int, today: date) -> ScheduleStats:
    return ScheduleStats(
        today_pending=crud.count_tasks(db, user_id, today, status="pending"),
        today_completed=crud.count_tasks(db, user_id, today, status="completed"),
        today_skipped=crud.count_tasks(db, user_id, today, status="skipped"),
        today_minutes_remaining=crud.sum_pending_minutes(db, user_id, today),
        week_tasks=crud.count_tasks_after(db, user_id, today, today + timedelta(days=7))
    )

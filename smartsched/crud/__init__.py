from smartsched.crud.user import create_user, get_user, update_user, get_preferences
from smartsched.crud.subject import create_subject, get_active_subjects, count_active_subjects
from smartsched.crud.topic import (
    create_topic,
    get_schedulable_topics,
    count_topics,
    get_revision_topics
)
from smartsched.crud.study_session import (
    record_study_session,
    get_performance_by_topic,
    get_session_totals_for_day
)
from smartsched.crud.task import (
    create_task,
    get_user_task,
    delete_pending_auto_tasks,
    get_committed_minutes,
    set_task_status,
    get_tasks_for_day,
    get_tasks_between,
    count_tasks,
    sum_pending_minutes,
    count_tasks_after
)
from smartsched.crud.progress_log import log_progress
from smartsched.crud.daily_stat import get_daily_stat, upsert_daily_stat

__all__ = [
    "create_user",
    "get_user",
    "update_user",
    "get_preferences",
    "create_subject",
    "get_active_subjects",
    "count_active_subjects",
    "create_topic",
    "get_schedulable_topics",
    "count_topics",
    "get_revision_topics",
    "record_study_session",
    "get_performance_by_topic",
    "get_session_totals_for_day",
    "create_task",
    "get_user_task",
    "delete_pending_auto_tasks",
    "get_committed_minutes",
    "set_task_status",
    "get_tasks_for_day",
    "get_tasks_between",
    "count_tasks",
    "sum_pending_minutes",
    "count_tasks_after",
    "log_progress",
    "get_daily_stat",
    "upsert_daily_stat",
]

from smartsched.models.user import User
from smartsched.models.subject import Subject
from smartsched.models.topic import Topic
from smartsched.models.study_session import StudySession
from smartsched.models.task import Task
from smartsched.models.progress_log import ProgressLog
from smartsched.models.daily_stat import DailyStat

__all__ = [
    "User",
    "Subject",
    "Topic",
    "StudySession",
    "Task",
    "ProgressLog",
    "DailyStat"
]

"""Conversion helpers between ORM rows and API schemas"""

from typing import Optional

from smartsched.models import Task
from smartsched.schemas import TaskOut


def task_to_out(
    task: Task,
    topic_name: Optional[str] = None,
    subject_name: Optional[str] = None,
    subject_color: Optional[str] = None
) -> TaskOut:
    """Convert a Task row, filling topic/subject names from its relationship when not given"""
    out = TaskOut.model_validate(task)
    topic = task.topic
    if topic is not None:
        out.topic_name = topic_name or topic.name
        out.subject_name = subject_name or topic.subject.name
        out.subject_color = subject_color or topic.subject.color
    else:
        out.topic_name = topic_name
        out.subject_name = subject_name
        out.subject_color = subject_color
    return out

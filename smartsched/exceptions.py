class SchedulerError(RuntimeError):
    """Base class for errors raised by the scheduling service"""


class TaskNotFoundError(SchedulerError, LookupError):
    """Task does not exist or is not owned by the requesting learner"""

    def __init__(self, task_id: int, user_id: int):
        super().__init__(f"Task {task_id} not found for user {user_id}")
        self.task_id = task_id
        self.user_id = user_id


class TaskConflictError(SchedulerError):
    """Task status changed underneath a complete/skip call"""

    def __init__(self, task_id: int, expected_status: str, actual_status: str):
        super().__init__(
            f"Task {task_id} moved from '{expected_status}' to '{actual_status}' during update"
        )
        self.task_id = task_id
        self.expected_status = expected_status
        self.actual_status = actual_status

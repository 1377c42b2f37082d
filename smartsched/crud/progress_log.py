from sqlalchemy.orm import Session
from smartsched.models import ProgressLog
from typing import Optional

def log_progress(
    db: Session,
    user_id: int,
    topic_id: int,
    task_id: Optional[int] = None,
    completion_percentage: int = 100,
    notes: Optional[str] = None
) -> ProgressLog:
    """Append a progress event (caller owns the transaction)"""
    entry = ProgressLog(
        user_id=user_id,
        task_id=task_id,
        topic_id=topic_id,
        completion_percentage=completion_percentage,
        notes=notes
    )
    db.add(entry)
    db.flush()
    return entry

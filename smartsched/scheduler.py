import logging
import math
import random
import threading
import weakref
from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, List, Optional, Sequence, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from smartsched import crud, lifecycle, stats
from smartsched.config import settings
from smartsched.crud.task import AUTO_TASK_TYPE
from smartsched.database import SessionLocal, session_scope
from smartsched.helpers import task_to_out
from smartsched.priority import PriorityScorer
from smartsched.ranking import build_ranked_topic, estimated_hours, rank_topics
from smartsched.schemas import (
    Preferences,
    RankedTopic,
    ScheduleResult,
    ScheduleStats,
    TaskActionResult,
    TaskOut,
    WeeklyTasks,
)

logger = logging.getLogger(__name__)

MIN_DAILY_MINUTES = 30
MAX_DAILY_MINUTES = 480

MIN_SESSION_MINUTES = 25
MAX_SESSION_MINUTES = 60
REVISION_SESSION_MINUTES = 30
SESSION_STEP_MINUTES = 5

MAX_SESSIONS_PER_TOPIC_PER_DAY = 2
ROTATION_THRESHOLD = 0.6
MAX_CYCLES = 3
REPLENISH_FRACTION = 0.3

REVISION_POOL_SIZE = 10
REVISION_PRIORITY_SCORE = 20
REVISION_REMAINING_HOURS = 0.5

# Manual tasks keep their minutes on the day until they are completed
MANUAL_DONE_STATUSES = ("completed",)

NO_SUBJECTS_MESSAGE = "No subjects found. Please add subjects and topics first before generating a schedule."
NO_TOPICS_MESSAGE = "No topics available for scheduling. Add topics to your subjects first."
ALL_COMPLETED_MESSAGE = (
    "All topics completed! Add new subjects and topics or mark topics as incomplete for revision."
)
NOTHING_SCHEDULED_MESSAGE = "Could not generate any tasks. Please check your topics have estimated hours set."
INTERNAL_ERROR_MESSAGE = "An error occurred while generating the schedule. Please try again."


@dataclass
class PlannedSession:
    """One allocated study block, before it is persisted"""
    topic: RankedTopic
    scheduled_date: date
    minutes: int


def resolve_daily_minutes(daily_study_hours: Optional[float]) -> int:
    """Daily capacity in minutes: missing -> default hours, then clamped to [30, 480]"""
    if daily_study_hours is None:
        daily_study_hours = settings.default_daily_study_hours
    minutes = round(daily_study_hours * 60)
    return max(MIN_DAILY_MINUTES, min(MAX_DAILY_MINUTES, minutes))


def session_minutes(topic: RankedTopic, remaining_minutes: int) -> int:
    """Desired block length, rounded to 5 minutes, never below the minimum session"""
    wanted = REVISION_SESSION_MINUTES if topic.is_revision else topic.remaining_hours * 60
    wanted = min(wanted, MAX_SESSION_MINUTES, remaining_minutes)
    # round half up, not banker's rounding
    rounded = math.floor(wanted / SESSION_STEP_MINUTES + 0.5) * SESSION_STEP_MINUTES
    return max(MIN_SESSION_MINUTES, int(rounded))


def allocate_sessions(
    topics: Sequence[RankedTopic],
    start: date,
    days: int,
    daily_minutes: int,
    committed_minutes: Callable[[date], int],
    rng: Callable[[], float] = random.random
) -> List[PlannedSession]:
    """
    Greedy round-robin packing of ranked topics into daily study blocks.

    A single cursor walks the pool across all days. Each placement moves the
    cursor on when the topic is exhausted, has two blocks today, or a random
    draw exceeds ROTATION_THRESHOLD. When the cursor runs off the end (checked
    after each day) it wraps, at most MAX_CYCLES times, and every non-revision
    topic gets back at least REPLENISH_FRACTION of its estimate.

    Args:
        topics: Pool in priority order (copied, the caller's objects are not mutated)
        start: First day of the horizon
        days: Horizon length
        daily_minutes: Capacity per day before manual commitments
        committed_minutes: Minutes already taken by manual tasks on a day
        rng: Uniform [0, 1) source for the rotation draw

    Returns:
        Planned sessions in placement order
    """
    pool = [topic.model_copy() for topic in topics]
    planned = []
    cursor = 0
    cycles = 0

    for offset in range(days):
        day = start + timedelta(days=offset)
        remaining = daily_minutes - committed_minutes(day)

        # Day already (almost) full of manual work
        if remaining < MIN_SESSION_MINUTES:
            continue

        placed_today = Counter()

        while remaining >= MIN_SESSION_MINUTES and cursor < len(pool):
            topic = pool[cursor]

            if not topic.is_revision and topic.remaining_hours <= 0:
                cursor += 1
                continue

            minutes = session_minutes(topic, remaining)
            if minutes > remaining:
                cursor += 1
                continue

            planned.append(PlannedSession(topic=topic, scheduled_date=day, minutes=minutes))
            remaining -= minutes
            placed_today[topic.topic_id] += 1

            if not topic.is_revision:
                topic.remaining_hours -= minutes / 60

            if (
                topic.remaining_hours <= 0
                or placed_today[topic.topic_id] >= MAX_SESSIONS_PER_TOPIC_PER_DAY
                or rng() > ROTATION_THRESHOLD
            ):
                cursor += 1

        if cursor >= len(pool) and cycles < MAX_CYCLES:
            cursor = 0
            cycles += 1
            for topic in pool:
                if not topic.is_revision:
                    floor = estimated_hours(topic) * REPLENISH_FRACTION
                    topic.remaining_hours = max(floor, topic.remaining_hours)

    return planned


class LearnerLocks:
    """
    Process-local mutex per learner, serializing purge-then-insert runs.

    Entries are weakly held: a learner's lock lives only while some caller
    still references it, so the registry does not grow with every learner seen.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[int, threading.Lock]" = weakref.WeakValueDictionary()

    def for_learner(self, user_id: int) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = self._locks[user_id] = threading.Lock()
            return lock


learner_locks = LearnerLocks()


class SchedulerService:
    """
    Study scheduling engine for one process.

    Holds no per-call state: the session factory, random source and clock are
    injected so tests can pin them.
    """

    def __init__(
        self,
        session_factory: sessionmaker = SessionLocal,
        rng: Callable[[], float] = random.random,
        clock: Callable[[], datetime] = datetime.now,
        locks: LearnerLocks = learner_locks
    ):
        self.session_factory = session_factory
        self.rng = rng
        self.clock = clock
        self.locks = locks

    def today(self) -> date:
        return self.clock().date()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_preferences(self, user_id: int) -> Preferences:
        with session_scope(self.session_factory) as db:
            return crud.get_preferences(db, user_id)

    def get_prioritized_topics(self, user_id: int) -> List[RankedTopic]:
        with session_scope(self.session_factory) as db:
            return rank_topics(db, user_id, self.clock())

    def get_todays_tasks(self, user_id: int) -> List[TaskOut]:
        """Today's open tasks, highest score first"""
        with session_scope(self.session_factory) as db:
            tasks = crud.get_tasks_for_day(db, user_id, self.today(), include_completed=False)
            return [task_to_out(task) for task in tasks]

    def get_weekly_tasks(self, user_id: int, start: Optional[date] = None) -> WeeklyTasks:
        """Seven days of tasks from start (default today), also grouped by date"""
        start = start or self.today()
        with session_scope(self.session_factory) as db:
            tasks = [
                task_to_out(task)
                for task in crud.get_tasks_between(db, user_id, start, start + timedelta(days=7))
            ]
        by_date = defaultdict(list)
        for task in tasks:
            by_date[task.scheduled_date].append(task)
        return WeeklyTasks(start_date=start, tasks=tasks, tasks_by_date=dict(by_date))

    def get_schedule_stats(self, user_id: int) -> ScheduleStats:
        with session_scope(self.session_factory) as db:
            return stats.schedule_stats(db, user_id, self.today())

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_schedule(self, user_id: int, days: int = 7) -> ScheduleResult:
        """
        Rank topics and lay them out as study tasks over the next `days` days.

        Pending auto-generated tasks from today on are purged first, in the same
        transaction and under a per-learner lock, so repeated calls replace the
        plan instead of stacking on it. Empty pools come back as
        success=False with a code; database failures are logged and reported
        as code "internal_error".
        """
        if days <= 0:
            logger.warning("Requested %s schedule days, nothing to plan", days)
            return ScheduleResult(
                success=False,
                code="nothing_scheduled",
                message=f"Cannot plan a schedule over {days} days."
            )

        bounded = min(days, settings.max_schedule_days)
        if bounded != days:
            logger.warning("Requested %s schedule days, using %s", days, bounded)

        try:
            with self.locks.for_learner(user_id):
                with session_scope(self.session_factory) as db:
                    return self._generate(db, user_id, bounded)
        except SQLAlchemyError:
            logger.exception("Error generating schedule for user %s", user_id)
            return ScheduleResult(success=False, code="internal_error", message=INTERNAL_ERROR_MESSAGE)

    def _generate(self, db: Session, user_id: int, days: int) -> ScheduleResult:
        now = self.clock()
        today = now.date()

        preferences = crud.get_preferences(db, user_id)
        daily_minutes = resolve_daily_minutes(preferences.daily_study_hours)

        pool, failure = self._resolve_pool(db, user_id, now)
        if failure is not None:
            logger.info("No schedule for user %s: %s", user_id, failure.code)
            return failure

        purged = crud.delete_pending_auto_tasks(db, user_id, today)
        logger.debug("Purged %d pending auto-generated tasks for user %s", purged, user_id)

        planned = allocate_sessions(
            pool,
            start=today,
            days=days,
            daily_minutes=daily_minutes,
            committed_minutes=lambda day: crud.get_committed_minutes(
                db, user_id, day, manual_only=True, exclude_statuses=MANUAL_DONE_STATUSES
            ),
            rng=self.rng
        )

        if not planned:
            return ScheduleResult(success=False, code="nothing_scheduled", message=NOTHING_SCHEDULED_MESSAGE)

        tasks = []
        for block in planned:
            topic = block.topic
            task = crud.create_task(
                db,
                user_id,
                topic_id=topic.topic_id,
                title=f"Study: {topic.name}",
                description=f"Auto-generated study session for {topic.subject_name} - {topic.name}",
                task_type=AUTO_TASK_TYPE,
                scheduled_date=block.scheduled_date,
                estimated_minutes=block.minutes,
                priority=PriorityScorer.task_priority(topic.priority_score),
                priority_score=topic.priority_score,
                status="pending"
            )
            tasks.append(task_to_out(task, topic.name, topic.subject_name, topic.subject_color))

        logger.info(
            "Generated %d tasks for user %s over %d days (%d min/day)",
            len(tasks), user_id, days, daily_minutes
        )
        return ScheduleResult(
            success=True,
            code="scheduled",
            message=f"Generated {len(tasks)} study tasks for the next {days} days",
            tasks=tasks,
            tasks_count=len(tasks)
        )

    def _resolve_pool(
        self, db: Session, user_id: int, now: datetime
    ) -> Tuple[List[RankedTopic], Optional[ScheduleResult]]:
        """Ranked topics, or the revision pool when everything is completed"""
        ranked = rank_topics(db, user_id, now)
        if ranked:
            return ranked, None

        if crud.count_active_subjects(db, user_id) == 0:
            return [], ScheduleResult(success=False, code="no_subjects", message=NO_SUBJECTS_MESSAGE)

        if crud.count_topics(db, user_id) == 0:
            return [], ScheduleResult(success=False, code="no_topics", message=NO_TOPICS_MESSAGE)

        revision = [
            build_ranked_topic(
                topic,
                subject,
                performance=None,
                priority_score=REVISION_PRIORITY_SCORE,
                remaining_hours=REVISION_REMAINING_HOURS,
                is_revision=True
            )
            for topic, subject in crud.get_revision_topics(db, user_id, REVISION_POOL_SIZE)
        ]
        if not revision:
            return [], ScheduleResult(success=False, code="all_completed", message=ALL_COMPLETED_MESSAGE)

        logger.info("All topics completed for user %s, scheduling %d revision topics", user_id, len(revision))
        return revision, None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def complete_task(self, user_id: int, task_id: int) -> TaskActionResult:
        """
        Complete a task, then refresh today's rollup.

        Raises:
            TaskNotFoundError: task missing or not owned by the learner
        """
        try:
            with session_scope(self.session_factory) as db:
                result = lifecycle.complete_task(db, user_id, task_id, self.clock())
        except SQLAlchemyError:
            logger.exception("Error completing task %s for user %s", task_id, user_id)
            raise

        if result.changed:
            self.update_daily_stats(user_id)
        return result

    def skip_task(self, user_id: int, task_id: int, reason: str = "") -> TaskActionResult:
        """
        Skip a task and reschedule a boosted copy.

        Raises:
            TaskNotFoundError: task missing or not owned by the learner
        """
        try:
            with session_scope(self.session_factory) as db:
                result = lifecycle.skip_task(db, user_id, task_id, reason, self.today())
        except SQLAlchemyError:
            logger.exception("Error skipping task %s for user %s", task_id, user_id)
            raise

        if result.changed:
            self.update_daily_stats(user_id)
        return result

    def update_daily_stats(self, user_id: int) -> bool:
        """Best-effort refresh of today's rollup; failures are logged, never raised"""
        try:
            with session_scope(self.session_factory) as db:
                stats.refresh_daily_stats(db, user_id, self.today())
            return True
        except Exception:  # noqa: BLE001
            logger.exception("Error updating daily stats for user %s", user_id)
            return False


def get_scheduler() -> SchedulerService:
    """Factory returning a scheduler bound to the configured database"""
    return SchedulerService()

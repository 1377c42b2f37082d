"""Tests for schedule generation and the read-side service calls."""

import gc
import threading
import time
from collections import Counter
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from conftest import NOW, TODAY, add_subject, add_topic
from smartsched.crud import create_task, create_user, update_user
from smartsched.models import Task
from smartsched.scheduler import LearnerLocks, SchedulerService
from smartsched.schemas import UserCreate


def _task_rows(db, user_id):
    db.expire_all()
    return db.query(Task).filter(Task.user_id == user_id).order_by(Task.id).all()


def _distribution(db, user_id):
    return Counter(task.scheduled_date for task in _task_rows(db, user_id))


def test_no_subjects(service, learner):
    result = service.generate_schedule(learner.id, 7)

    assert not result.success
    assert result.code == "no_subjects"
    assert result.tasks == []


def test_subjects_without_topics_fail_differently(service, db, learner):
    add_subject(db, learner.id)

    result = service.generate_schedule(learner.id, 7)

    assert not result.success
    assert result.code == "no_topics"
    assert result.message != service.generate_schedule(create_user(db, UserCreate(name="Ravi")).id).message


def test_generates_tasks_within_daily_budget(service, db, learner):
    subject = add_subject(db, learner.id, name="Maths", priority=5)
    add_topic(db, subject.id, name="Algebra", hours=3)
    add_topic(db, subject.id, name="Geometry", hours=3)

    result = service.generate_schedule(learner.id, 5)

    assert result.success
    assert result.code == "scheduled"
    assert result.tasks_count == len(result.tasks) > 0
    per_day = Counter()
    for task in result.tasks:
        per_day[task.scheduled_date] += task.estimated_minutes
        assert task.title.startswith("Study: ")
        assert task.task_type == "study"
        assert task.status == "pending"
        assert task.subject_name == "Maths"
        assert 1 <= task.priority <= 5
    assert all(minutes <= 120 for minutes in per_day.values())
    assert min(per_day) == TODAY
    assert max(per_day) <= TODAY + timedelta(days=4)


def test_regeneration_replaces_previous_plan(service, db, learner):
    subject = add_subject(db, learner.id)
    add_topic(db, subject.id, name="Optics", hours=4)
    add_topic(db, subject.id, name="Waves", hours=2)

    first = service.generate_schedule(learner.id, 7)
    after_first = _distribution(db, learner.id)
    second = service.generate_schedule(learner.id, 7)

    assert first.tasks_count == second.tasks_count
    assert _distribution(db, learner.id) == after_first
    assert len(_task_rows(db, learner.id)) == second.tasks_count


def test_regeneration_keeps_finished_and_manual_tasks(service, db, learner):
    subject = add_subject(db, learner.id)
    topic = add_topic(db, subject.id, hours=2)
    manual = create_task(
        db, learner.id, title="Lab report", task_type="assignment",
        scheduled_date=TODAY + timedelta(days=1), estimated_minutes=100
    )
    done = create_task(
        db, learner.id, topic_id=topic.id, title="Study: Kinematics", task_type="study",
        scheduled_date=TODAY + timedelta(days=2), estimated_minutes=30, status="completed"
    )
    db.commit()

    service.generate_schedule(learner.id, 7)
    service.generate_schedule(learner.id, 7)

    ids = {task.id for task in _task_rows(db, learner.id)}
    assert {manual.id, done.id} <= ids


def test_manual_tasks_reduce_capacity(service, db, learner):
    subject = add_subject(db, learner.id)
    add_topic(db, subject.id, hours=10)
    create_task(
        db, learner.id, title="Club meeting", task_type="assignment",
        scheduled_date=TODAY, estimated_minutes=100
    )
    db.commit()

    result = service.generate_schedule(learner.id, 2)

    today_minutes = sum(t.estimated_minutes for t in result.tasks if t.scheduled_date == TODAY)
    assert today_minutes == 0
    assert any(t.scheduled_date == TODAY + timedelta(days=1) for t in result.tasks)


def test_skipped_manual_tasks_still_reduce_capacity(service, db, learner):
    """Only completing a manual task frees its time for generated study."""
    subject = add_subject(db, learner.id)
    add_topic(db, subject.id, hours=10)
    create_task(
        db, learner.id, title="Club meeting", task_type="assignment",
        scheduled_date=TODAY, estimated_minutes=100, status="skipped"
    )
    create_task(
        db, learner.id, title="Lab write-up", task_type="assignment",
        scheduled_date=TODAY + timedelta(days=1), estimated_minutes=100, status="completed"
    )
    db.commit()

    result = service.generate_schedule(learner.id, 2)

    per_day = Counter()
    for task in result.tasks:
        per_day[task.scheduled_date] += task.estimated_minutes
    assert per_day[TODAY] <= 20
    assert per_day[TODAY + timedelta(days=1)] == 120


def test_all_completed_falls_back_to_revision(service, db, learner):
    subject = add_subject(db, learner.id)
    for name in ("Atoms", "Ions"):
        topic = add_topic(db, subject.id, name=name)
        topic.is_completed = True
    db.commit()

    result = service.generate_schedule(learner.id, 3)

    assert result.success
    assert result.tasks
    assert all(task.estimated_minutes == 30 for task in result.tasks)
    assert all(task.priority_score == 20 for task in result.tasks)
    assert all(task.priority == 2 for task in result.tasks)


def test_revision_pool_prefers_least_recently_updated(service, db, learner):
    subject = add_subject(db, learner.id)
    topics = [add_topic(db, subject.id, name=f"Chapter {i}") for i in range(12)]
    for i, topic in enumerate(topics):
        topic.is_completed = True
        topic.updated_at = datetime(2024, 1, 1) + timedelta(days=i)
    db.commit()
    update_user(db, learner.id, {"daily_study_hours": 8})

    result = service.generate_schedule(learner.id, 1)

    scheduled = {task.topic_id for task in result.tasks}
    assert topics[10].id not in scheduled
    assert topics[11].id not in scheduled
    assert topics[0].id in scheduled


def test_topics_without_hours_schedule_nothing(service, db, learner):
    subject = add_subject(db, learner.id)
    add_topic(db, subject.id, hours=0)

    result = service.generate_schedule(learner.id, 7)

    assert not result.success
    assert result.code == "nothing_scheduled"


def test_zero_daily_hours_clamp_to_thirty_minutes(service, db, learner):
    update_user(db, learner.id, {"daily_study_hours": 0})
    add_topic(db, add_subject(db, learner.id).id, hours=10)

    result = service.generate_schedule(learner.id, 7)

    per_day = Counter(task.scheduled_date for task in result.tasks)
    assert len(per_day) == 7
    assert set(per_day.values()) == {1}
    assert all(25 <= task.estimated_minutes <= 30 for task in result.tasks)


def test_days_are_bounded(service, db, learner):
    subject = add_subject(db, learner.id)
    for i in range(20):
        add_topic(db, subject.id, name=f"Unit {i}", hours=4)

    result = service.generate_schedule(learner.id, 365)

    assert max(task.scheduled_date for task in result.tasks) == TODAY + timedelta(days=29)


@pytest.mark.parametrize("days", [0, -3])
def test_non_positive_horizon_schedules_nothing(service, db, learner, days):
    subject = add_subject(db, learner.id)
    topic = add_topic(db, subject.id, hours=4)
    existing = create_task(
        db, learner.id, topic_id=topic.id, title="Study: Kinematics", task_type="study",
        scheduled_date=TODAY + timedelta(days=1), estimated_minutes=30
    )
    db.commit()

    result = service.generate_schedule(learner.id, days)

    assert not result.success
    assert result.code == "nothing_scheduled"
    assert result.tasks == []
    assert [task.id for task in _task_rows(db, learner.id)] == [existing.id]


def test_concurrent_runs_for_one_learner_are_serialized(service, db, learner, monkeypatch):
    subject = add_subject(db, learner.id)
    add_topic(db, subject.id, name="Optics", hours=4)
    add_topic(db, subject.id, name="Waves", hours=2)
    user_id = learner.id
    single_run = service.generate_schedule(user_id, 7).tasks_count

    running = []
    overlaps = []
    generate = service._generate

    def slow_generate(session, learner_id, days):
        running.append(learner_id)
        overlaps.append(len(running))
        time.sleep(0.05)
        try:
            return generate(session, learner_id, days)
        finally:
            running.remove(learner_id)

    monkeypatch.setattr(service, "_generate", slow_generate)
    barrier = threading.Barrier(2)
    results = []

    def run():
        barrier.wait()
        results.append(service.generate_schedule(user_id, 7))

    threads = [threading.Thread(target=run) for _ in range(2)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)

    assert max(overlaps) == 1
    assert [r.success for r in results] == [True, True]
    assert len(_task_rows(db, user_id)) == single_run


def test_learner_locks_are_shared_per_learner():
    locks = LearnerLocks()

    first = locks.for_learner(1)

    assert locks.for_learner(1) is first
    assert locks.for_learner(2) is not first


def test_learner_locks_are_released_when_unused():
    locks = LearnerLocks()
    lock = locks.for_learner(7)
    with lock:
        pass

    del lock
    gc.collect()

    assert 7 not in locks._locks


def test_database_failure_reports_internal_error(learner):
    def broken_factory():
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    service = SchedulerService(session_factory=broken_factory, clock=lambda: NOW)

    result = service.generate_schedule(learner.id, 7)

    assert not result.success
    assert result.code == "internal_error"


def test_todays_tasks_exclude_completed(service, db, learner):
    create_task(db, learner.id, title="Read", task_type="assignment", scheduled_date=TODAY,
                estimated_minutes=20, priority_score=5)
    create_task(db, learner.id, title="Essay", task_type="assignment", scheduled_date=TODAY,
                estimated_minutes=20, priority_score=9)
    create_task(db, learner.id, title="Done", task_type="assignment", scheduled_date=TODAY,
                estimated_minutes=20, status="completed")
    create_task(db, learner.id, title="Later", task_type="assignment",
                scheduled_date=TODAY + timedelta(days=1), estimated_minutes=20)
    db.commit()

    assert [task.title for task in service.get_todays_tasks(learner.id)] == ["Essay", "Read"]


def test_weekly_tasks_grouped_by_date(service, db, learner):
    subject = add_subject(db, learner.id, name="Biology")
    add_topic(db, subject.id, name="Cells", hours=6)
    service.generate_schedule(learner.id, 10)

    week = service.get_weekly_tasks(learner.id)

    assert week.start_date == TODAY
    assert all(TODAY <= task.scheduled_date < TODAY + timedelta(days=7) for task in week.tasks)
    assert sum(len(tasks) for tasks in week.tasks_by_date.values()) == len(week.tasks)
    assert week.tasks[0].topic_name == "Cells"
    assert week.tasks[0].subject_name == "Biology"


def test_schedule_stats_counts_today(service, db, learner):
    create_task(db, learner.id, title="A", task_type="assignment", scheduled_date=TODAY, estimated_minutes=40)
    create_task(db, learner.id, title="B", task_type="assignment", scheduled_date=TODAY,
                estimated_minutes=20, status="completed")
    create_task(db, learner.id, title="C", task_type="assignment", scheduled_date=TODAY,
                estimated_minutes=20, status="skipped")
    create_task(db, learner.id, title="D", task_type="assignment",
                scheduled_date=TODAY + timedelta(days=3), estimated_minutes=20)
    db.commit()

    stats = service.get_schedule_stats(learner.id)

    assert (stats.today_pending, stats.today_completed, stats.today_skipped) == (1, 1, 1)
    assert stats.today_minutes_remaining == 40
    assert stats.week_tasks == 1


def test_preferences_for_unknown_learner_use_defaults(service):
    prefs = service.get_preferences(999)
    assert prefs.daily_study_hours == 4.0
    assert prefs.preferred_study_time == "morning"


@pytest.mark.parametrize("hours", [1.0, 3.0])
def test_prioritized_topics_carry_remaining_hours(service, db, learner, hours):
    add_topic(db, add_subject(db, learner.id).id, hours=hours)

    [topic] = service.get_prioritized_topics(learner.id)

    assert topic.remaining_hours == hours

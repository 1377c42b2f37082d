from sqlalchemy.orm import Session
from smartsched.models import DailyStat
from datetime import date
from typing import Optional

def get_daily_stat(db: Session, user_id: int, stat_date: date) -> Optional[DailyStat]:
    """Get the rollup row for one learner and day"""
    return db.query(DailyStat).filter(
        DailyStat.user_id == user_id,
        DailyStat.stat_date == stat_date
    ).first()

def upsert_daily_stat(db: Session, user_id: int, stat_date: date, **counters) -> DailyStat:
    """Insert or overwrite the (learner, day) rollup row"""
    stat = get_daily_stat(db, user_id, stat_date)
    if stat is None:
        stat = DailyStat(user_id=user_id, stat_date=stat_date)
        db.add(stat)
    for key, value in counters.items():
        setattr(stat, key, value)
    db.flush()
    return stat

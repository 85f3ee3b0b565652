from sqlmodel import Session, select
from ..models.ActivityLog import ActivityLog
from typing import Optional

GENESIS_HASH = "0" * 64

def log_event(db: Session, actor_id: int, action: str, details: Optional[str] = None) -> ActivityLog:
    """
    Appends a new event to the activity log chain.
    """
    last_entry = db.exec(select(ActivityLog).order_by(ActivityLog.id.desc())).first()
    previous_hash = last_entry.current_hash if last_entry else GENESIS_HASH

    entry = ActivityLog(
        actor_id=actor_id,
        action=action,
        details=details or "",
        previous_hash=previous_hash,
        current_hash="",
    )
    entry.current_hash = entry.calculate_hash()

    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry

def get_activity(db: Session, limit: int = 100) -> list[ActivityLog]:
    statement = select(ActivityLog).order_by(ActivityLog.id.desc()).limit(limit)
    return db.exec(statement).all()

def verify_chain(db: Session) -> bool:
    """
    Walks the log in insertion order and checks every link and hash.
    """
    previous_hash = GENESIS_HASH
    for entry in db.exec(select(ActivityLog).order_by(ActivityLog.id.asc())):
        if entry.previous_hash != previous_hash:
            return False
        if entry.calculate_hash() != entry.current_hash:
            return False
        previous_hash = entry.current_hash
    return True

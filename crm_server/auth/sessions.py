import hashlib
from datetime import datetime

from sqlmodel import Session, select

from ..core.clock import utcnow
from ..core.settings import settings
from ..models.AuthSession import AuthSession


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def invalidate_all_user_sessions(db: Session, user_id: int, user_type: str, commit: bool = True) -> int:
    statement = select(AuthSession).where(
        AuthSession.user_id == user_id,
        AuthSession.user_type == user_type,
        AuthSession.is_active == True,
    )
    now = utcnow()
    count = 0
    for record in db.exec(statement).all():
        record.is_active = False
        record.invalidated_at = now
        db.add(record)
        count += 1
    if commit:
        db.commit()
    return count


def create_session(
    db: Session,
    user_id: int,
    user_type: str,
    token: str,
    expires_at: datetime,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> AuthSession:
    """
    Stores a new active session for the token.
    Every other active session of the same user is invalidated first (single-session enforcement).
    """
    invalidate_all_user_sessions(db, user_id, user_type, commit=False)

    record = AuthSession(
        user_id=user_id,
        user_type=user_type,
        token_hash=hash_token(token),
        ip_address=ip_address,
        user_agent=user_agent[:500] if user_agent else None,
        expires_at=expires_at,
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


def validate_session(db: Session, token: str) -> bool:
    statement = select(AuthSession).where(
        AuthSession.token_hash == hash_token(token),
        AuthSession.is_active == True,
    )
    if settings.ENFORCE_TOKEN_EXPIRY:
        statement = statement.where(AuthSession.expires_at > utcnow())
    return db.exec(statement).first() is not None


def invalidate_session(db: Session, token: str) -> None:
    statement = select(AuthSession).where(AuthSession.token_hash == hash_token(token))
    record = db.exec(statement).first()
    if record is None:
        return
    record.is_active = False
    record.invalidated_at = utcnow()
    db.add(record)
    db.commit()

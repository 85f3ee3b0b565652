from sqlmodel import Session, select
from ..core.clock import utcnow
from ..models.RolePermission import RolePermission, PermissionUpdate

def get_permission_matrix(session: Session) -> list[RolePermission]:
    statement = select(RolePermission).order_by(RolePermission.role, RolePermission.feature)
    return session.exec(statement).all()

def _upsert(session: Session, data: PermissionUpdate) -> RolePermission:
    statement = select(RolePermission).where(
        RolePermission.role == data.role,
        RolePermission.feature == data.feature,
    )
    permission = session.exec(statement).first()
    if permission is None:
        permission = RolePermission(role=data.role, feature=data.feature)
    permission.can_read = data.can_read
    permission.can_write = data.can_write
    permission.updated_at = utcnow()
    session.add(permission)
    return permission

def update_permission(session: Session, data: PermissionUpdate) -> RolePermission:
    permission = _upsert(session, data)
    session.commit()
    session.refresh(permission)
    return permission

def bulk_update_permissions(session: Session, permissions: list[PermissionUpdate]) -> int:
    """
    Upserts every entry in a single transaction; nothing is written if one fails.
    """
    try:
        for data in permissions:
            _upsert(session, data)
        session.commit()
    except Exception:
        session.rollback()
        raise
    return len(permissions)

from fastapi import HTTPException, status
from sqlmodel import Session, select
from ..models.Role import ASSIGNABLE_ROLES
from ..models.RoleAssignment import RoleAssignment, RoleAssignRequest

def get_assignments(session: Session, site_id: str | None = None) -> list[RoleAssignment]:
    statement = select(RoleAssignment)
    if site_id:
        statement = statement.where(RoleAssignment.site_id == site_id)
    statement = statement.order_by(RoleAssignment.created_at.desc(), RoleAssignment.id.desc())
    return session.exec(statement).all()

def assign_role(session: Session, data: RoleAssignRequest) -> RoleAssignment:
    if data.app_role not in ASSIGNABLE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid role. Must be one of: {', '.join(ASSIGNABLE_ROLES)}"
        )

    statement = select(RoleAssignment).where(
        RoleAssignment.wp_user_id == data.wp_user_id,
        RoleAssignment.site_id == data.site_id,
    )
    assignment = session.exec(statement).first()
    if assignment is None:
        assignment = RoleAssignment(wp_user_id=data.wp_user_id, site_id=data.site_id, app_role=data.app_role)
    else:
        assignment.app_role = data.app_role

    session.add(assignment)
    session.commit()
    session.refresh(assignment)
    return assignment

def delete_assignment(session: Session, assignment_id: int) -> None:
    assignment = session.get(RoleAssignment, assignment_id)
    if assignment is None:
        return
    session.delete(assignment)
    session.commit()

def get_user_sites(session: Session, wp_user_id: str) -> list[RoleAssignment]:
    statement = select(RoleAssignment).where(RoleAssignment.wp_user_id == wp_user_id)
    return session.exec(statement).all()

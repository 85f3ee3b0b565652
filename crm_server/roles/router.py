import http
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from ..core.database import get_session
from ..activity.service import log_event
from ..auth.dependencies import require_super_admin
from ..models.Role import ASSIGNABLE_ROLES
from ..models.RoleAssignment import RoleAssignment, RoleAssignRequest
from ..models.SuperAdmin import SuperAdmin
from .service import assign_role, delete_assignment, get_assignments, get_user_sites

router = APIRouter(prefix="/roles", tags=["roles"])

@router.get("", response_model=list[str])
async def read_roles():
    """
    Roles that can be assigned to a site user.
    """
    return ASSIGNABLE_ROLES

@router.get("/assignments", response_model=list[RoleAssignment])
async def read_assignments(site_id: str | None = None, session: Session = Depends(get_session)):
    return get_assignments(session, site_id)

@router.put("/assign")
async def put_assignment(
    data: RoleAssignRequest,
    session: Session = Depends(get_session),
    current_admin: SuperAdmin = Depends(require_super_admin)
):
    assign_role(session, data)
    action = f"PUT /roles/assign {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, current_admin.id, action, f"user {data.wp_user_id} is {data.app_role} on {data.site_id}")
    return {"success": True}

@router.delete("/assignments/{assignment_id}")
async def remove_assignment(
    assignment_id: int,
    session: Session = Depends(get_session),
    current_admin: SuperAdmin = Depends(require_super_admin)
):
    delete_assignment(session, assignment_id)
    action = f"DELETE /roles/assignments/{assignment_id} {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, current_admin.id, action)
    return {"success": True}

@router.get("/user-sites", response_model=list[RoleAssignment])
async def read_user_sites(user_id: str | None = None, session: Session = Depends(get_session)):
    if not user_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="user_id is required")
    return get_user_sites(session, user_id)

import http
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from ..core.database import get_session
from ..activity.service import log_event
from ..auth.dependencies import require_super_admin
from ..models.SuperAdmin import SuperAdmin
from ..models.RolePermission import PermissionBulkUpdate, PermissionResponse, PermissionUpdate
from .service import bulk_update_permissions, get_permission_matrix, update_permission

router = APIRouter(prefix="/permissions", tags=["permissions"])

@router.get("", response_model=list[PermissionResponse])
async def read_permissions(session: Session = Depends(get_session)):
    """
    Full permission matrix. No authentication required.
    """
    return get_permission_matrix(session)

@router.put("")
async def put_permission(
    data: PermissionUpdate,
    session: Session = Depends(get_session),
    current_admin: SuperAdmin = Depends(require_super_admin)
):
    update_permission(session, data)
    action = f"PUT /permissions {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, current_admin.id, action, f"{data.role}/{data.feature} read={data.can_read} write={data.can_write}")
    return {"success": True}

@router.post("/bulk")
async def post_bulk_permissions(
    data: PermissionBulkUpdate,
    session: Session = Depends(get_session),
    current_admin: SuperAdmin = Depends(require_super_admin)
):
    if not data.permissions:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Permissions array is required")

    updated = bulk_update_permissions(session, data.permissions)
    action = f"POST /permissions/bulk {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, current_admin.id, action, f"{updated} permissions updated")
    return {"success": True, "updated": updated}

from fastapi import APIRouter, Depends
from sqlmodel import Session
from ..core.database import get_session
from ..auth.dependencies import require_super_admin
from ..models.ActivityLog import ActivityLog
from ..models.SuperAdmin import SuperAdmin
from .service import get_activity, verify_chain

router = APIRouter(prefix="/activity", tags=["activity"])

@router.get("", response_model=list[ActivityLog])
def read_activity(
    limit: int = 100,
    session: Session = Depends(get_session),
    current_admin: SuperAdmin = Depends(require_super_admin)
):
    return get_activity(session, limit)

@router.get("/verify")
def verify_activity(
    session: Session = Depends(get_session),
    current_admin: SuperAdmin = Depends(require_super_admin)
):
    return {"valid": verify_chain(session)}

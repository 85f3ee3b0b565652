import http
from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session
from ..core.database import get_session
from ..activity.service import log_event
from ..auth.dependencies import require_super_admin
from ..models.Site import SiteCreate, SiteResponse, SiteUpdate
from ..models.SuperAdmin import SuperAdmin
from .service import create_site, delete_site, get_all_sites, get_site, update_site

# Site records carry WordPress credentials, so every route is gated
router = APIRouter(prefix="/sites", tags=["sites"])

@router.get("", response_model=list[SiteResponse])
async def read_sites(
    session: Session = Depends(get_session),
    current_admin: SuperAdmin = Depends(require_super_admin)
):
    return get_all_sites(session)

@router.get("/{site_id}", response_model=SiteResponse)
async def read_site(
    site_id: str,
    session: Session = Depends(get_session),
    current_admin: SuperAdmin = Depends(require_super_admin)
):
    site = get_site(session, site_id)
    if site is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found")
    return site

@router.post("", response_model=SiteResponse, status_code=status.HTTP_201_CREATED)
async def create_new_site(
    data: SiteCreate,
    session: Session = Depends(get_session),
    current_admin: SuperAdmin = Depends(require_super_admin)
):
    site = create_site(session, data)
    action = f"POST /sites {status.HTTP_201_CREATED} {http.HTTPStatus(status.HTTP_201_CREATED).phrase}"
    log_event(session, current_admin.id, action, f"Site '{site.id}' created")
    return site

@router.put("/{site_id}", response_model=SiteResponse)
async def update_existing_site(
    site_id: str,
    data: SiteUpdate,
    session: Session = Depends(get_session),
    current_admin: SuperAdmin = Depends(require_super_admin)
):
    site = update_site(session, site_id, data)
    action = f"PUT /sites/{site_id} {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, current_admin.id, action, "Site updated")
    return site

@router.delete("/{site_id}")
async def remove_site(
    site_id: str,
    session: Session = Depends(get_session),
    current_admin: SuperAdmin = Depends(require_super_admin)
):
    delete_site(session, site_id)
    action = f"DELETE /sites/{site_id} {status.HTTP_200_OK} {http.HTTPStatus(status.HTTP_200_OK).phrase}"
    log_event(session, current_admin.id, action, "Site deleted")
    return {"success": True}

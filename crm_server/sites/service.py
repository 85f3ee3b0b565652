import secrets
import string
from fastapi import HTTPException, status
from sqlmodel import Session, select
from ..core.clock import utcnow
from ..models.Site import Site, SiteCreate, SiteUpdate

ID_ALPHABET = string.ascii_lowercase + string.digits

def generate_site_id(length: int = 9) -> str:
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))

def get_all_sites(session: Session) -> list[Site]:
    statement = select(Site).order_by(Site.created_at.asc())
    return session.exec(statement).all()

def get_site(session: Session, site_id: str) -> Site | None:
    return session.get(Site, site_id)

def create_site(session: Session, data: SiteCreate) -> Site:
    site_id = data.id or generate_site_id()
    if session.get(Site, site_id):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Site with this id already exists"
        )

    site = Site(
        id=site_id,
        name=data.name,
        url=data.url,
        username=data.username or None,
        app_password=data.app_password or None,
        is_default=data.is_default,
        assigned_admins=list(data.assigned_admins),
    )
    session.add(site)
    session.commit()
    session.refresh(site)
    return site

def update_site(session: Session, site_id: str, data: SiteUpdate) -> Site:
    site = session.get(Site, site_id)
    if site is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Site not found")

    for key, value in data.model_dump(exclude_unset=True).items():
        if key == "assigned_admins" and value is None:
            continue
        setattr(site, key, value)
    site.updated_at = utcnow()

    session.add(site)
    session.commit()
    session.refresh(site)
    return site

def delete_site(session: Session, site_id: str) -> None:
    site = session.get(Site, site_id)
    if site is None:
        return
    session.delete(site)
    session.commit()

import logging
from sqlmodel import Session, select
from .database import engine
from .settings import settings
from ..models.Role import ASSIGNABLE_ROLES, FEATURES
from ..models.RolePermission import RolePermission
from ..models.SuperAdmin import SuperAdmin
from ..auth.service import get_password_hash

logger = logging.getLogger(__name__)

# (can_read, can_write) per role; features not listed default to no access
DEFAULT_PERMISSIONS = {
    "admin": {feature: (True, True) for feature in FEATURES if feature != "permissions"},
    "lead_manager": {"leads": (True, True), "users": (True, False), "activity_logs": (True, False)},
    "seo_manager": {
        "users": (True, False),
        "activity_logs": (True, False),
        "seo_meta_tags": (True, True),
        "blogs": (True, True),
    },
    "sales_person": {"leads": (True, True)},
    "seo_person": {"seo_meta_tags": (True, True), "blogs": (True, True)},
    "client": {"leads": (True, False), "blogs": (True, False)},
}

def seed_super_admin(session: Session) -> None:
    statement = select(SuperAdmin).where(SuperAdmin.username == settings.ADMIN_USERNAME)
    if session.exec(statement).first():
        logger.info("Super admin already exists.")
        return

    logger.info("Creating initial super admin: %s", settings.ADMIN_USERNAME)
    session.add(SuperAdmin(
        username=settings.ADMIN_USERNAME,
        email=settings.ADMIN_EMAIL,
        password_hash=get_password_hash(settings.ADMIN_PASSWORD),
    ))
    session.commit()

def seed_permissions(session: Session) -> None:
    if session.exec(select(RolePermission)).first():
        return

    logger.info("Seeding permission matrix...")
    for role in ASSIGNABLE_ROLES:
        granted = DEFAULT_PERMISSIONS.get(role, {})
        for feature in FEATURES:
            can_read, can_write = granted.get(feature, (False, False))
            session.add(RolePermission(role=role, feature=feature, can_read=can_read, can_write=can_write))
    session.commit()

def init_db():
    with Session(engine) as session:
        seed_super_admin(session)
        seed_permissions(session)

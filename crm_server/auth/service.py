from passlib.context import CryptContext
from sqlmodel import Session, select

from ..models.SuperAdmin import SuperAdmin, Profile

# Password hashing
pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

def verify_password(plain_password, hashed_password):
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password):
    return pwd_context.hash(password)

def get_admin_by_username(session: Session, username: str) -> SuperAdmin | None:
    statement = select(SuperAdmin).where(SuperAdmin.username == username)
    return session.exec(statement).first()

def authenticate_admin(session: Session, username: str, password: str):
    admin = get_admin_by_username(session, username)
    if not admin:
        return False
    if not verify_password(password, admin.password_hash):
        return False
    return admin

def to_profile(admin: SuperAdmin) -> Profile:
    return Profile(id=admin.id, username=admin.username, email=admin.email)

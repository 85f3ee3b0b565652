from datetime import datetime
from sqlmodel import Field, SQLModel

from ..core.clock import utcnow

# ==========================================
# SQLModel (Database Entity)
# ==========================================
class SuperAdmin(SQLModel, table=True):
    __tablename__ = "super_admins"

    id: int | None = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True, nullable=False)
    email: str | None = Field(default=None, nullable=True)
    password_hash: str
    created_at: datetime = Field(default_factory=utcnow)

# ==========================================
# Pydantic Models (DTOs)
# ==========================================

# Properties to receive via API on login
class LoginRequest(SQLModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

# Properties to return via API
class Profile(SQLModel):
    id: int
    username: str
    email: str | None = None
    role: str = "super_admin"

class LoginResponse(SQLModel):
    token: str
    profile: Profile

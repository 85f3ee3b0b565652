from datetime import datetime
from sqlmodel import SQLModel, Field

from ..core.clock import utcnow

class AuthIdentity(SQLModel):
    id: int # Super admin ID
    username: str

class AuthSession(SQLModel, table=True):
    __tablename__ = "sessions"

    id: int | None = Field(default=None, primary_key=True)
    user_id: int = Field(index=True)
    user_type: str = Field(default="super_admin", index=True) # super_admin | wp_user
    token_hash: str = Field(unique=True, index=True) # sha256 of the raw JWT
    is_active: bool = Field(default=True, index=True)
    ip_address: str | None = Field(default=None, nullable=True)
    user_agent: str | None = Field(default=None, nullable=True)
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime
    invalidated_at: datetime | None = Field(default=None, nullable=True)

from datetime import datetime
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from ..core.clock import utcnow

class RolePermission(SQLModel, table=True):
    __tablename__ = "role_permissions"
    __table_args__ = (UniqueConstraint("role", "feature", name="unique_role_feature"),)

    id: int | None = Field(default=None, primary_key=True)
    role: str = Field(max_length=50)
    feature: str = Field(max_length=100)
    can_read: bool = Field(default=False)
    can_write: bool = Field(default=False)
    updated_at: datetime = Field(default_factory=utcnow)

class PermissionUpdate(SQLModel):
    role: str = Field(min_length=1)
    feature: str = Field(min_length=1)
    can_read: bool = False
    can_write: bool = False

class PermissionBulkUpdate(SQLModel):
    permissions: list[PermissionUpdate]

class PermissionResponse(SQLModel):
    id: int
    role: str
    feature: str
    can_read: bool
    can_write: bool

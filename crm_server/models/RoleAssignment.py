from datetime import datetime
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from ..core.clock import utcnow

class RoleAssignment(SQLModel, table=True):
    __tablename__ = "user_site_assignments"
    __table_args__ = (UniqueConstraint("wp_user_id", "site_id", name="unique_user_site"),)

    id: int | None = Field(default=None, primary_key=True)
    wp_user_id: str = Field(index=True, max_length=50)
    site_id: str = Field(index=True, max_length=50)
    app_role: str = Field(max_length=50)
    created_at: datetime = Field(default_factory=utcnow)

class RoleAssignRequest(SQLModel):
    wp_user_id: str = Field(min_length=1)
    site_id: str = Field(min_length=1)
    app_role: str = Field(min_length=1)

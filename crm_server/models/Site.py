from datetime import datetime
from sqlalchemy import Column, JSON
from sqlmodel import Field, SQLModel

from ..core.clock import utcnow

class Site(SQLModel, table=True):
    __tablename__ = "wp_sites"

    id: str = Field(primary_key=True, max_length=50)
    name: str
    url: str
    username: str | None = Field(default=None, nullable=True)
    app_password: str | None = Field(default=None, nullable=True)
    is_default: bool = Field(default=False)
    assigned_admins: list[str] = Field(default_factory=list, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

class SiteCreate(SQLModel):
    id: str | None = None
    name: str
    url: str
    username: str | None = None
    app_password: str | None = None
    is_default: bool = False
    assigned_admins: list[str] = []

# Every field optional: only what is sent gets updated
class SiteUpdate(SQLModel):
    name: str | None = None
    url: str | None = None
    username: str | None = None
    app_password: str | None = None
    is_default: bool | None = None
    assigned_admins: list[str] | None = None

class SiteResponse(SQLModel):
    id: str
    name: str
    url: str
    username: str | None = None
    app_password: str | None = None
    is_default: bool
    assigned_admins: list[str] = []
    created_at: datetime
    updated_at: datetime

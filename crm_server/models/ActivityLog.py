from datetime import datetime
from typing import Optional
from sqlmodel import Field, SQLModel
import hashlib

from ..core.clock import utcnow

class ActivityLog(SQLModel, table=True):
    __tablename__ = "activity_logs"

    id: Optional[int] = Field(default=None, primary_key=True)
    timestamp: datetime = Field(default_factory=lambda: utcnow().replace(microsecond=0))
    actor_id: int = Field(index=True)
    action: str
    details: str = ""
    previous_hash: str
    current_hash: str

    def calculate_hash(self) -> str:
        """
        SHA-256 over previous_hash + timestamp + actor_id + action + details.
        """
        data = (
            self.previous_hash +
            self.timestamp.isoformat() +
            str(self.actor_id) +
            self.action +
            self.details
        )
        return hashlib.sha256(data.encode("utf-8")).hexdigest()

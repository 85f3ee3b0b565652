# crm_cli/core/filters.py
"""
Row-level filtering for team-member roles.

Team members (sales_person, seo_person, client) only see the leads assigned
to them and the posts they authored. Every other role, and a missing
profile, sees collections untouched.
"""
from typing import Optional, Sequence, TypeVar

from .roles import is_team_member

T = TypeVar("T")


def _field(item, name: str):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


class DataFilter:
    def __init__(self, profile: Optional[dict]):
        self.profile = profile

    @property
    def is_team_member(self) -> bool:
        return bool(self.profile) and is_team_member(self.profile.get("role"))

    def filter_by_assignment(self, items: Sequence[T]) -> Sequence[T]:
        if not self.is_team_member:
            return items
        user_id = self.profile.get("id")
        return [item for item in items if _field(item, "assigned_to") == user_id]

    def filter_by_author(self, items: Sequence[T]) -> Sequence[T]:
        # WordPress returns numeric author ids; profile ids are strings
        if not self.is_team_member:
            return items
        user_id = self.profile.get("id")
        return [item for item in items if str(_field(item, "author")) == user_id]

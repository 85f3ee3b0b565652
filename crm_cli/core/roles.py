# crm_cli/core/roles.py
from enum import Enum
from typing import Optional


class Role(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    LEAD_MANAGER = "lead_manager"
    SEO_MANAGER = "seo_manager"
    SALES_PERSON = "sales_person"
    SEO_PERSON = "seo_person"
    CLIENT = "client"

    @classmethod
    def parse(cls, value) -> Optional["Role"]:
        """Returns the Role for a string, or None for unknown/empty values."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


TEAM_MEMBER_ROLES = frozenset({Role.SALES_PERSON, Role.SEO_PERSON, Role.CLIENT})


def is_team_member(role) -> bool:
    """
    Team members only see the records assigned to (or authored by) themselves.
    """
    return Role.parse(role) in TEAM_MEMBER_ROLES

from enum import Enum


class AppRole(str, Enum):
    SUPER_ADMIN = "super_admin"
    ADMIN = "admin"
    LEAD_MANAGER = "lead_manager"
    SEO_MANAGER = "seo_manager"
    SALES_PERSON = "sales_person"
    SEO_PERSON = "seo_person"
    CLIENT = "client"


# Roles that can be assigned to a WordPress user on a site
ASSIGNABLE_ROLES = [role.value for role in AppRole if role is not AppRole.SUPER_ADMIN]

FEATURES = [
    "leads",
    "users",
    "activity_logs",
    "subscriptions",
    "seo_meta_tags",
    "blogs",
    "sites",
    "ip_security",
    "permissions",
]

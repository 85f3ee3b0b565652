# crm_cli/core/credentials.py
"""
Per-site credential resolution.

Tiers are tried in order and the first one that yields a value wins:
the user's own login on the site, then the credentials stored on the site
record, then the global fallback credentials.
"""
import base64
from typing import Callable, Optional

from .errors import CredentialUnavailable
from .sites import SiteContext

CredentialProvider = Callable[[Optional[str]], Optional[str]]


def basic_auth_header(username: str, password: str) -> str:
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


class CredentialResolver:
    def __init__(
        self,
        site_sessions: Optional[dict] = None,
        site_context: Optional[SiteContext] = None,
        global_credentials: Optional[dict] = None,
    ):
        self.site_sessions = site_sessions or {}
        self.site_context = site_context
        self.global_credentials = global_credentials
        self.providers: list[CredentialProvider] = [
            self.from_site_session,
            self.from_site_record,
            self.from_global,
        ]

    def from_site_session(self, site_id: Optional[str]) -> Optional[str]:
        if site_id is None:
            return None
        cred = self.site_sessions.get(site_id) or {}
        if cred.get("username") and cred.get("app_password"):
            return basic_auth_header(cred["username"], cred["app_password"])
        return None

    def from_site_record(self, site_id: Optional[str]) -> Optional[str]:
        if site_id is None or self.site_context is None:
            return None
        site = self.site_context.get_site(site_id) or {}
        if site.get("username") and site.get("app_password"):
            return basic_auth_header(site["username"], site["app_password"])
        return None

    def from_global(self, site_id: Optional[str]) -> Optional[str]:
        creds = self.global_credentials or {}
        if creds.get("username") and creds.get("password"):
            return basic_auth_header(creds["username"], creds["password"])
        return None

    def resolve(self, site_id: Optional[str]) -> Optional[str]:
        """
        Authorization header value for the site, or None when no tier has credentials.
        """
        for provider in self.providers:
            value = provider(site_id)
            if value:
                return value
        return None

    def require(self, site_id: Optional[str]) -> str:
        value = self.resolve(site_id)
        if value is None:
            raise CredentialUnavailable(site_id)
        return value

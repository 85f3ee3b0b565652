# crm_cli/core/sites.py
"""
Current-site state and site URL normalization.

`SiteContext` owns the site list and the single current site. Anything that
depends on the current site (API clients, credentials) subscribes to it and
is told when the selection changes.
"""
import logging
from typing import Callable, Optional

from .roles import Role

logger = logging.getLogger(__name__)

REST_SUFFIX = "/wp-json"

SiteListener = Callable[[Optional[dict]], None]


class SiteContext:
    def __init__(self, sites: Optional[list[dict]] = None, current_site_id: Optional[str] = None):
        self._sites: list[dict] = list(sites or [])
        self._current_site_id = current_site_id
        self._listeners: list[SiteListener] = []

    @property
    def sites(self) -> list[dict]:
        return list(self._sites)

    def get_site(self, site_id: Optional[str]) -> Optional[dict]:
        if site_id is None:
            return None
        return next((s for s in self._sites if s.get("id") == site_id), None)

    @property
    def current_site(self) -> Optional[dict]:
        """
        The selected site, or the first one when the selection is unset or stale.
        """
        if not self._sites:
            return None
        return self.get_site(self._current_site_id) or self._sites[0]

    @property
    def current_site_id(self) -> Optional[str]:
        site = self.current_site
        return site.get("id") if site else None

    def subscribe(self, listener: SiteListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify_if_changed(self, previous_id: Optional[str]) -> None:
        if self.current_site_id == previous_id:
            return
        logger.debug("Current site changed: %s -> %s", previous_id, self.current_site_id)
        site = self.current_site
        for listener in list(self._listeners):
            listener(site)

    def set_current_site(self, site_id: str) -> bool:
        """
        Selects a site by id. Unknown ids leave the selection untouched.
        """
        if self.get_site(site_id) is None:
            return False
        previous_id = self.current_site_id
        self._current_site_id = site_id
        self._notify_if_changed(previous_id)
        return True

    def set_sites(self, sites: list[dict], current_site_id: Optional[str] = None) -> None:
        previous_id = self.current_site_id
        self._sites = list(sites)
        if current_site_id is not None:
            self._current_site_id = current_site_id
        self._notify_if_changed(previous_id)

    def remove_site(self, site_id: str) -> bool:
        site = self.get_site(site_id)
        if site is None:
            return False
        previous_id = self.current_site_id
        self._sites = [s for s in self._sites if s.get("id") != site_id]
        if self._current_site_id == site_id:
            # Fall back to the default site, else whatever comes first
            default = next((s for s in self._sites if s.get("is_default")), None)
            self._current_site_id = default.get("id") if default else None
        self._notify_if_changed(previous_id)
        return True


def normalize_site_url(url: Optional[str]) -> str:
    """
    Canonical base URL: https:// added when no scheme, one trailing slash removed.
    """
    url = (url or "").strip()
    if not url:
        return ""
    if not url.startswith("http"):
        url = "https://" + url
    if url.endswith("/"):
        url = url[:-1]
    return url


def rest_root(url: str) -> str:
    if not url:
        return ""
    if REST_SUFFIX in url:
        return url
    return url + REST_SUFFIX


def get_wp_url(context: Optional[SiteContext], legacy_url: Optional[str] = None) -> str:
    """
    Base URL of the active site: the context's current site first, then the
    legacy stored URL. An empty string means no site is configured.
    """
    site = context.current_site if context is not None else None
    if site and site.get("url"):
        return normalize_site_url(site["url"])
    return normalize_site_url(legacy_url)


def get_wp_rest_url(context: Optional[SiteContext], legacy_url: Optional[str] = None) -> str:
    return rest_root(get_wp_url(context, legacy_url))


def get_accessible_sites(context: SiteContext, user_id: str, role) -> list[dict]:
    """
    Super admins see every site, admins see the sites they are assigned to
    (plus the default one), everybody else only the current site.
    """
    parsed = Role.parse(role)
    if parsed is Role.SUPER_ADMIN:
        return context.sites
    if parsed is Role.ADMIN:
        return [
            site for site in context.sites
            if user_id in (site.get("assigned_admins") or []) or site.get("is_default")
        ]
    current = context.current_site
    return [current] if current else []

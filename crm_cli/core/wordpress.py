# crm_cli/core/wordpress.py
"""
Site-aware WordPress REST client.

`create_wordpress_api(base_url, auth_header)` returns a client whose every
call goes to that site with that Authorization header. Use
`WordPressApiProvider` to always get the client of the current site.
"""
import logging
import time
from typing import Callable, Optional

import requests

from .config import LEADS_API_BASE, REQUEST_TIMEOUT, WP_API_KEY
from .credentials import CredentialResolver
from .errors import NoSiteConfigured, WordPressApiError
from .sites import SiteContext, get_wp_rest_url

logger = logging.getLogger(__name__)

POST_STATUSES = "publish,draft,private,pending,future"


def _raise_for_response(resp: requests.Response, message: str) -> None:
    if resp.ok:
        return
    detail = None
    try:
        body = resp.json()
        if isinstance(body, dict):
            detail = body.get("message") or body.get("error")
    except ValueError:
        pass
    logger.debug("WordPress API error %s on %s: %s", resp.status_code, resp.url, resp.text[:500])
    raise WordPressApiError(
        f"{message}: {detail or f'{resp.status_code} {resp.reason}'}",
        status_code=resp.status_code,
        url=resp.url,
    )


def normalize_lead(lead: dict) -> dict:
    """
    Normalizes a lead from crm/v1: string ids, folded source, status and follow-up defaults.
    """
    source = str(lead.get("source") or "form").lower()
    if "website" in source or source == "webisite" or "form" in source:
        source = "form"

    assigned_to = lead.get("assigned_to")
    return {
        **lead,
        "id": str(lead.get("id")),
        "source": source,
        "status": lead.get("status") or "pending",
        "assigned_to": str(assigned_to) if assigned_to else None,
        "notes": lead.get("notes") or "",
        "follow_up_date": lead.get("follow_up_date") or None,
        "follow_up_status": lead.get("follow_up_status") or "pending",
        "follow_up_type": lead.get("follow_up_type") or "call",
    }


def _send(http: requests.Session, method: str, url: str, message: str, **kwargs) -> requests.Response:
    logger.debug("%s %s", method, url)
    try:
        return http.request(method, url, **kwargs)
    except requests.RequestException as e:
        raise WordPressApiError(f"{message}: {e}", url=url) from e


def _json(resp: requests.Response, message: str):
    try:
        return resp.json()
    except ValueError as e:
        # Page caches and security plugins sometimes answer with HTML
        raise WordPressApiError(f"{message}: response is not JSON", status_code=resp.status_code, url=resp.url) from e


class LeadsApi:
    """
    crm/v1 leads endpoints. They authenticate with an API key query
    parameter rather than the Authorization header.
    """

    def __init__(self, base_url: str, api_key: str = WP_API_KEY, timeout: float = REQUEST_TIMEOUT):
        if not base_url:
            raise NoSiteConfigured()
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.http = requests.Session()

    def _params(self, **extra) -> dict:
        # Cache buster, the endpoint is served through page caches on some sites
        return {"api_key": self.api_key, "_": int(time.time() * 1000), **extra}

    def _request(self, method: str, path: str, message: str, **kwargs):
        resp = _send(self.http, method, f"{self.base_url}{path}", message, timeout=self.timeout, **kwargs)
        _raise_for_response(resp, message)
        return _json(resp, message)

    def get_all(self) -> list[dict]:
        leads = self._request("GET", "/leads", "Failed to fetch leads", params=self._params())
        if not isinstance(leads, list):
            raise WordPressApiError("Failed to fetch leads: unexpected response", url=f"{self.base_url}/leads")
        logger.debug("Fetched %d leads from %s", len(leads), self.base_url)
        return [normalize_lead(lead) for lead in leads]

    def get(self, lead_id: str) -> dict:
        message = "Failed to fetch lead"
        resp = _send(self.http, "GET", f"{self.base_url}/leads/{lead_id}", message, params=self._params(), timeout=self.timeout)
        if resp.ok:
            return normalize_lead(_json(resp, message))

        logger.debug("Direct lead lookup failed (%s), scanning all leads", resp.status_code)
        for lead in self.get_all():
            if lead["id"] == str(lead_id):
                return lead
        raise WordPressApiError("Lead not found", status_code=404, url=resp.url)

    def create(self, data: dict) -> dict:
        return self._request("POST", "/lead", "Failed to create lead", params={"api_key": self.api_key}, json=data)

    def update(self, lead_id: str, data: dict) -> dict:
        return self._request("POST", f"/lead/{lead_id}", "Failed to update lead", params={"api_key": self.api_key}, json=data)

    def delete(self, lead_id: str) -> dict:
        return self._request("DELETE", f"/lead/{lead_id}", "Failed to delete lead", params={"api_key": self.api_key})


class WordPressApi:
    def __init__(self, base_url: str, auth_header: Optional[dict] = None, timeout: float = REQUEST_TIMEOUT):
        base = (base_url or "").rstrip("/")
        if not base:
            raise NoSiteConfigured()

        # Accept a site root, a /wp-json root or a full /wp/v2 base
        if not base.endswith("/wp/v2"):
            if base.endswith("/wp-json"):
                base += "/wp/v2"
            else:
                base += "/wp-json/wp/v2"

        self.wp_base_url = base
        # Root for custom namespaces such as crm/v1
        self.wp_json_base = base[: -len("/wp/v2")]
        self.auth_header = dict(auth_header or {})
        self.timeout = timeout
        self.http = requests.Session()
        self.http.headers.update(self.auth_header)

    @property
    def crm_base_url(self) -> str:
        return f"{self.wp_json_base}/crm/v1"

    def _request(self, method: str, url: str, message: str, **kwargs):
        resp = _send(self.http, method, url, message, timeout=self.timeout, **kwargs)
        _raise_for_response(resp, message)
        return _json(resp, message)

    # -- Posts ---------------------------------------------------------------

    def get_all_posts(self) -> list[dict]:
        params = {"_embed": "1", "per_page": 100, "status": POST_STATUSES, "orderby": "date", "order": "desc"}
        return self._request("GET", f"{self.wp_base_url}/posts", "Failed to fetch posts", params=params)

    def get_post(self, post_id: int) -> dict:
        return self._request("GET", f"{self.wp_base_url}/posts/{post_id}", "Failed to fetch post", params={"_embed": "1"})

    def create_post(self, data: dict) -> dict:
        return self._request("POST", f"{self.wp_base_url}/posts", "Failed to create post", json=data)

    def update_post(self, post_id: int, data: dict) -> dict:
        return self._request("POST", f"{self.wp_base_url}/posts/{post_id}", "Failed to update post", json=data)

    def delete_post(self, post_id: int, force: bool = False) -> dict:
        params = {"force": "true"} if force else None
        return self._request("DELETE", f"{self.wp_base_url}/posts/{post_id}", "Failed to delete post", params=params)

    # -- Taxonomies ----------------------------------------------------------

    def get_categories(self) -> list[dict]:
        return self._request("GET", f"{self.wp_base_url}/categories", "Failed to fetch categories", params={"per_page": 100})

    def get_tags(self) -> list[dict]:
        return self._request("GET", f"{self.wp_base_url}/tags", "Failed to fetch tags", params={"per_page": 100})

    # -- Users ---------------------------------------------------------------

    def get_users(self, role: Optional[str] = None, context: str = "edit") -> list[dict]:
        params = {"per_page": 100, "context": context}
        if role:
            params["roles"] = role
        return self._request("GET", f"{self.wp_base_url}/users", "Failed to fetch users", params=params)

    def get_current_user(self) -> dict:
        return self._request("GET", f"{self.wp_base_url}/users/me", "Failed to fetch current user", params={"context": "edit"})

    # -- CRM activity log (crm/v1) ------------------------------------------

    def log_activity(self, action: str, details: str) -> bool:
        """
        Best effort: a failure is logged and reported as False, never raised.
        """
        try:
            self._request("POST", f"{self.crm_base_url}/log", "Failed to log activity", json={"action": action, "details": details})
        except WordPressApiError as e:
            logger.warning("%s", e)
            return False
        return True

    def get_activity_logs(self, page: int = 1) -> dict:
        return self._request("GET", f"{self.crm_base_url}/logs", "Failed to fetch logs", params={"page": page})


def create_wordpress_api(base_url: str, auth_header: Optional[dict] = None) -> WordPressApi:
    return WordPressApi(base_url, auth_header)


def create_leads_api(rest_url: str) -> LeadsApi:
    """
    Leads client for a site's REST root, falling back to CRM_LEADS_API_BASE.
    """
    if rest_url:
        return LeadsApi(f"{rest_url.rstrip('/')}/crm/v1")
    return LeadsApi(LEADS_API_BASE)


class WordPressApiProvider:
    """
    Hands out the WordPress client of the current site.

    The client is rebuilt, with freshly resolved URL and credentials, whenever
    the context reports a site change; a client is never reused across sites.
    """

    def __init__(
        self,
        context: SiteContext,
        resolver: CredentialResolver,
        legacy_url: Optional[str] = None,
        factory: Callable[[str, dict], WordPressApi] = create_wordpress_api,
    ):
        self.context = context
        self.resolver = resolver
        self.legacy_url = legacy_url
        self.factory = factory
        self._client: Optional[WordPressApi] = None
        self._client_site_id: Optional[str] = None
        self._unsubscribe = context.subscribe(self._on_site_changed)

    def _on_site_changed(self, site: Optional[dict]) -> None:
        self._client = None
        self._client_site_id = None

    def get(self) -> WordPressApi:
        site_id = self.context.current_site_id
        if self._client is None or self._client_site_id != site_id:
            base_url = get_wp_rest_url(self.context, self.legacy_url)
            header = self.resolver.resolve(site_id)
            self._client = self.factory(base_url, {"Authorization": header} if header else {})
            self._client_site_id = site_id
        return self._client

    def close(self) -> None:
        self._unsubscribe()

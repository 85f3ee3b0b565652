import logging
import requests
from typing import Optional, List
from .config import BASE_URL, REQUEST_TIMEOUT

logger = logging.getLogger(__name__)


def _auth(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def api_login(username: str, password: str) -> Optional[dict]:
    """
    Logs in to the backend. Returns {"token", "profile"} or None.
    """
    url = f"{BASE_URL}/auth/login"
    try:
        resp = requests.post(url, json={"username": username, "password": password}, timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            return None
        return resp.json()
    except requests.RequestException as e:
        logger.debug("Login request failed: %s", e)
        return None


def api_logout(token: str) -> bool:
    url = f"{BASE_URL}/auth/logout"
    try:
        resp = requests.post(url, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        return resp.status_code == 200
    except requests.RequestException:
        return False


def api_get_me(token: str) -> Optional[dict]:
    url = f"{BASE_URL}/auth/me"
    try:
        resp = requests.get(url, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            return None
        return resp.json()
    except requests.RequestException:
        return None


def api_check_session(token: str) -> Optional[str]:
    """
    Returns "valid", "invalidated" (revoked server side) or "invalid".
    None means the backend could not be reached.
    """
    url = f"{BASE_URL}/auth/session-valid"
    try:
        resp = requests.get(url, headers=_auth(token), timeout=REQUEST_TIMEOUT)
    except requests.RequestException:
        return None
    if resp.status_code == 200:
        return "valid"
    try:
        code = resp.json().get("code")
    except ValueError:
        code = None
    return "invalidated" if code == "SESSION_INVALIDATED" else "invalid"


# ---------------------------------------------------------------------------
# Permissions
# ---------------------------------------------------------------------------

def api_get_permissions() -> Optional[List[dict]]:
    url = f"{BASE_URL}/permissions"
    try:
        resp = requests.get(url, timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            return None
        return resp.json()
    except requests.RequestException:
        return None


def api_update_permission(token: str, role: str, feature: str, can_read: bool, can_write: bool) -> bool:
    url = f"{BASE_URL}/permissions"
    data = {"role": role, "feature": feature, "can_read": can_read, "can_write": can_write}
    try:
        resp = requests.put(url, json=data, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        return resp.status_code == 200
    except requests.RequestException:
        return False


def api_bulk_update_permissions(token: str, permissions: List[dict]) -> Optional[int]:
    """
    Returns the number of updated entries, or None on failure.
    """
    url = f"{BASE_URL}/permissions/bulk"
    try:
        resp = requests.post(url, json={"permissions": permissions}, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            return None
        return resp.json().get("updated")
    except requests.RequestException:
        return None


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------

def api_get_roles() -> Optional[List[str]]:
    url = f"{BASE_URL}/roles"
    try:
        resp = requests.get(url, timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            return None
        return resp.json()
    except requests.RequestException:
        return None


def api_get_assignments(site_id: Optional[str] = None) -> Optional[List[dict]]:
    url = f"{BASE_URL}/roles/assignments"
    params = {"site_id": site_id} if site_id else None
    try:
        resp = requests.get(url, params=params, timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            return None
        return resp.json()
    except requests.RequestException:
        return None


def api_assign_role(token: str, wp_user_id: str, site_id: str, app_role: str) -> bool:
    url = f"{BASE_URL}/roles/assign"
    data = {"wp_user_id": wp_user_id, "site_id": site_id, "app_role": app_role}
    try:
        resp = requests.put(url, json=data, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        return resp.status_code == 200
    except requests.RequestException:
        return False


def api_delete_assignment(token: str, assignment_id: int) -> bool:
    url = f"{BASE_URL}/roles/assignments/{assignment_id}"
    try:
        resp = requests.delete(url, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        return resp.status_code == 200
    except requests.RequestException:
        return False


def api_get_user_sites(wp_user_id: str) -> Optional[List[dict]]:
    url = f"{BASE_URL}/roles/user-sites"
    try:
        resp = requests.get(url, params={"user_id": wp_user_id}, timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            return None
        return resp.json()
    except requests.RequestException:
        return None


# ---------------------------------------------------------------------------
# Sites
# ---------------------------------------------------------------------------

def api_list_sites(token: str) -> Optional[List[dict]]:
    url = f"{BASE_URL}/sites"
    try:
        resp = requests.get(url, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            return None
        return resp.json()
    except requests.RequestException:
        return None


def api_get_site(token: str, site_id: str) -> Optional[dict]:
    url = f"{BASE_URL}/sites/{site_id}"
    try:
        resp = requests.get(url, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            return None
        return resp.json()
    except requests.RequestException:
        return None


def api_create_site(token: str, site_data: dict) -> Optional[dict]:
    url = f"{BASE_URL}/sites"
    try:
        resp = requests.post(url, json=site_data, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        if resp.status_code != 201:
            return None
        return resp.json()
    except requests.RequestException:
        return None


def api_update_site(token: str, site_id: str, updates: dict) -> Optional[dict]:
    url = f"{BASE_URL}/sites/{site_id}"
    try:
        resp = requests.put(url, json=updates, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            return None
        return resp.json()
    except requests.RequestException:
        return None


def api_delete_site(token: str, site_id: str) -> bool:
    url = f"{BASE_URL}/sites/{site_id}"
    try:
        resp = requests.delete(url, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        return resp.status_code == 200
    except requests.RequestException:
        return False


# ---------------------------------------------------------------------------
# Server activity log
# ---------------------------------------------------------------------------

def api_get_activity(token: str, limit: int = 100) -> Optional[List[dict]]:
    url = f"{BASE_URL}/activity"
    try:
        resp = requests.get(url, params={"limit": limit}, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            return None
        return resp.json()
    except requests.RequestException:
        return None


def api_verify_activity(token: str) -> Optional[bool]:
    url = f"{BASE_URL}/activity/verify"
    try:
        resp = requests.get(url, headers=_auth(token), timeout=REQUEST_TIMEOUT)
        if resp.status_code != 200:
            return None
        return bool(resp.json().get("valid"))
    except requests.RequestException:
        return None

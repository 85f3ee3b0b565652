# crm_cli/core/session.py
import json
from pathlib import Path
from typing import Optional

from .config import (
    SESSION_FILE,
    SITES_FILE,
    SITE_SESSIONS_FILE,
    WP_CONFIG_FILE,
    WP_USERNAME,
    WP_APP_PASSWORD,
)


def _read_json(path: Path, default):
    """
    Reads a JSON file, returning `default` if it is missing or unreadable.
    """
    if not path.exists():
        return default
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError):
        # A corrupt file counts as no stored state
        return default


def _write_json(path: Path, data) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


# ---------------------------------------------------------------------------
# Backend session (super admin)
# ---------------------------------------------------------------------------

def save_session(access_token: str, profile: dict) -> None:
    _write_json(SESSION_FILE, {"access_token": access_token, "profile": profile})


def load_token() -> Optional[str]:
    return _read_json(SESSION_FILE, {}).get("access_token")


def load_profile() -> Optional[dict]:
    return _read_json(SESSION_FILE, {}).get("profile")


def is_logged_in() -> bool:
    return load_token() is not None


def clear_session() -> None:
    if SESSION_FILE.exists():
        SESSION_FILE.unlink()


# ---------------------------------------------------------------------------
# Site cache
# ---------------------------------------------------------------------------

def load_sites() -> tuple[list[dict], Optional[str]]:
    """
    Returns the cached site list and the persisted current site id.
    """
    data = _read_json(SITES_FILE, {})
    return data.get("sites", []), data.get("current_site_id")


def save_sites(sites: list[dict], current_site_id: Optional[str]) -> None:
    _write_json(SITES_FILE, {"sites": sites, "current_site_id": current_site_id})


# ---------------------------------------------------------------------------
# Per-site session credentials
# ---------------------------------------------------------------------------

def load_site_sessions() -> dict:
    return _read_json(SITE_SESSIONS_FILE, {})


def save_site_session(site_id: str, credential: dict) -> None:
    sessions = load_site_sessions()
    sessions[site_id] = credential
    _write_json(SITE_SESSIONS_FILE, sessions)


def clear_site_session(site_id: str) -> bool:
    sessions = load_site_sessions()
    if site_id not in sessions:
        return False
    del sessions[site_id]
    _write_json(SITE_SESSIONS_FILE, sessions)
    return True


# ---------------------------------------------------------------------------
# Legacy WordPress config (single site URL + global credentials)
# ---------------------------------------------------------------------------

def load_legacy_site_url() -> Optional[str]:
    return _read_json(WP_CONFIG_FILE, {}).get("wp_site_url")


def save_legacy_site_url(url: str) -> None:
    data = _read_json(WP_CONFIG_FILE, {})
    data["wp_site_url"] = url
    _write_json(WP_CONFIG_FILE, data)


def load_global_credentials() -> Optional[dict]:
    """
    Stored global credentials first, then the CRM_WP_* environment variables.
    """
    creds = _read_json(WP_CONFIG_FILE, {}).get("wp_credentials")
    if creds and creds.get("username") and creds.get("password"):
        return creds
    if WP_USERNAME and WP_APP_PASSWORD:
        return {"username": WP_USERNAME, "password": WP_APP_PASSWORD}
    return None


def save_global_credentials(username: str, password: str) -> None:
    data = _read_json(WP_CONFIG_FILE, {})
    data["wp_credentials"] = {"username": username, "password": password}
    _write_json(WP_CONFIG_FILE, data)

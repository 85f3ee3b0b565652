# crm_cli/core/config.py
from pathlib import Path
import os

# CRM backend (auth, roles, permissions, sites)
BASE_URL = os.environ.get("CRM_API_URL", "http://localhost:3001/api").rstrip("/")

# API key for the WordPress crm/v1 leads endpoints (same for every site)
WP_API_KEY = os.environ.get("CRM_WP_API_KEY", "")

# Leads base used when no site is selected, e.g. https://example.com/wp-json/crm/v1
LEADS_API_BASE = os.environ.get("CRM_LEADS_API_BASE", "")

# Global fallback WordPress credentials (overridden by `sites set-global`)
WP_USERNAME = os.environ.get("CRM_WP_USERNAME")
WP_APP_PASSWORD = os.environ.get("CRM_WP_APP_PASSWORD")

REQUEST_TIMEOUT = float(os.environ.get("CRM_REQUEST_TIMEOUT", "10"))

# Local data directory (token, sites, credentials)
APP_DIR = Path(os.environ.get("CRM_HOME", str(Path.home() / ".crm")))

SESSION_FILE = APP_DIR / "session.json"
SITES_FILE = APP_DIR / "sites.json"
SITE_SESSIONS_FILE = APP_DIR / "site_sessions.json"
WP_CONFIG_FILE = APP_DIR / "wp_config.json"

APP_DIR.mkdir(parents=True, exist_ok=True)

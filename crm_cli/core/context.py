# crm_cli/core/context.py
"""
Builds the runtime objects (site context, credential resolver, API provider)
from what is stored on disk.
"""
import logging
from contextlib import contextmanager
from typing import Iterator, Optional

from .credentials import CredentialResolver
from .errors import CRMClientError
from .session import (
    load_global_credentials,
    load_legacy_site_url,
    load_profile,
    load_site_sessions,
    load_sites,
    save_sites,
)
from .sites import SiteContext
from .wordpress import WordPressApi, WordPressApiProvider

logger = logging.getLogger(__name__)


def load_site_context() -> SiteContext:
    sites, current_site_id = load_sites()
    return SiteContext(sites, current_site_id)


def persist_site_context(context: SiteContext) -> None:
    save_sites(context.sites, context.current_site_id)


def build_resolver(context: SiteContext) -> CredentialResolver:
    return CredentialResolver(load_site_sessions(), context, load_global_credentials())


def build_provider(context: SiteContext) -> WordPressApiProvider:
    return WordPressApiProvider(context, build_resolver(context), load_legacy_site_url())


def active_profile(context: SiteContext) -> Optional[dict]:
    """
    The profile data is filtered for: the user logged in on the current site,
    else the backend super admin, else nobody.
    """
    site_id = context.current_site_id
    if site_id is not None:
        cred = load_site_sessions().get(site_id)
        if cred and cred.get("user_id"):
            return {"id": str(cred["user_id"]), "role": cred.get("role")}

    profile = load_profile()
    if profile and profile.get("id") is not None:
        return {"id": str(profile["id"]), "role": profile.get("role")}
    return None


@contextmanager
def open_wordpress_api(context: SiteContext) -> Iterator[WordPressApi]:
    """
    WordPress client of the current site, released when the block exits.
    """
    provider = build_provider(context)
    try:
        yield provider.get()
    finally:
        provider.close()


def log_site_activity(context: SiteContext, action: str, details: str) -> bool:
    """
    Records an action in the current site's crm/v1 activity log.
    Never raises: a site without the log endpoint just loses the entry.
    """
    try:
        with open_wordpress_api(context) as api:
            return api.log_activity(action, details)
    except CRMClientError as e:
        logger.warning("Activity not logged: %s", e)
        return False

# crm_cli/core/errors.py


class CRMClientError(Exception):
    """Base class for client-side failures."""


class NoSiteConfigured(CRMClientError):
    """No site URL is available, so there is nowhere to send requests."""

    def __init__(self, message: str = "No site configured. Add one with `crm sites add` or `crm sites sync`."):
        super().__init__(message)


class CredentialUnavailable(CRMClientError):
    """No credential tier produced a value for the site."""

    def __init__(self, site_id: str | None):
        self.site_id = site_id
        super().__init__(f"No credentials available for site '{site_id}'." if site_id else "No credentials available.")


class WordPressApiError(CRMClientError):
    def __init__(self, message: str, status_code: int | None = None, url: str | None = None):
        self.status_code = status_code
        self.url = url
        super().__init__(message)

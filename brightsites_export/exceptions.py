"""Exporter exceptions.

All failures the exporter raises on purpose are subclasses of
BrightSitesExportError so the report service can map them to a response
status in one place. Reconciliation never raises: an unresolved field simply
becomes an empty cell.
"""

from typing import Optional


class BrightSitesExportError(Exception):
    """Base class for all exporter errors."""


class RequestError(BrightSitesExportError):
    """An upstream HTTP call failed after all retry attempts.

    Attributes:
        status_code: HTTP status of the last attempt, or None when the last
            attempt failed at the transport level.
        url: The request URL without query string.
    """

    def __init__(self, message: str, status_code: Optional[int] = None, url: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class ConfigurationError(BrightSitesExportError):
    """The request names a store that is missing or not configured."""


class InvalidRequestError(BrightSitesExportError):
    """The report request carries a value that cannot be used (e.g. a bad date)."""

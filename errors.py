# errors.py
"""
Error types shared by the API functions.

- ConfigurationError  -> missing env / credentials (HTTP 500)
- InvalidInput        -> bad request body or missing fields (HTTP 400)
- StoreUnavailable    -> could not reach Airtable at all (HTTP 503)
- UpstreamError       -> Airtable / HubSpot answered with a non-2xx status

"No PDF found" is NOT an error: it is a normal found=false response.
"""

from typing import Any, Optional


class BackendError(Exception):
    """Base class for every error raised on purpose by this backend."""


class ConfigurationError(BackendError):
    pass


class InvalidInput(BackendError):
    pass


class StoreUnavailable(BackendError):
    pass


class UpstreamError(BackendError):
    def __init__(self, status: int, message: str, details: Optional[Any] = None):
        super().__init__(f"{message} (HTTP {status})")
        self.status = status
        self.message = message
        self.details = details

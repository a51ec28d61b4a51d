"""
Error Taxonomy
==============
Every failure the client surfaces derives from ``NatterClientError``.

    - ``AuthRequiredError``         - HTTP 401 on a protected call; the
                                      navigator has already been sent to the
                                      login page.  Deliberately NOT a
                                      ``RequestError`` so that callers who
                                      handle ordinary failures do not treat
                                      it as data.
    - ``RequestError``              - any other non-2xx protected response
    - ``NetworkError``              - no response at all
    - ``LoginError``                - ``POST /sessions`` was refused
    - ``CapabilityResolutionError`` - malformed capability URL, missing
                                      token, HTTP or JSON failure
    - ``ConfigError``               - invalid configuration value
"""

from __future__ import annotations

from typing import Optional


class NatterClientError(Exception):
    """Base class for all client errors."""


class AuthRequiredError(NatterClientError):
    """The server answered 401 - the session is missing or expired."""

    def __init__(self, url: str, redirect_to: str):
        super().__init__(f"Authentication required for {url}")
        self.url = url
        self.redirect_to = redirect_to


class RequestError(NatterClientError):
    """Non-success, non-401 HTTP status on a protected call."""

    def __init__(self, status: int, reason: str, url: str = ""):
        super().__init__(f"{status} {reason}".strip())
        self.status = status
        self.reason = reason
        self.url = url


class NetworkError(NatterClientError):
    """The request never produced a response."""

    def __init__(self, url: str, cause: Optional[BaseException] = None):
        detail = f": {cause}" if cause else ""
        super().__init__(f"Network failure for {url}{detail}")
        self.url = url
        self.cause = cause


class LoginError(NatterClientError):
    """Login was rejected or returned an unusable body."""

    def __init__(self, message: str, status: int = 0):
        super().__init__(message)
        self.status = status


class CapabilityResolutionError(NatterClientError):
    """A capability URL could not be resolved into JSON."""

    def __init__(self, url: str, message: str, cause: Optional[BaseException] = None):
        super().__init__(f"{message} ({url})")
        self.url = url
        self.cause = cause


class ConfigError(NatterClientError):
    pass

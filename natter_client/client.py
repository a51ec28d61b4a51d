"""
Authenticated Client
====================
Issues JSON requests carrying whatever authentication the active session
strategy attaches, and applies one decision tree to every response:

    2xx        → parsed JSON body (``None`` for an empty body)
    401        → navigator is sent to the login page, ``AuthRequiredError``
    other      → ``RequestError`` with the status text
    no answer  → ``NetworkError``

There is no retry, backoff or timeout layer here; each call is independent
and runs under aiohttp's own defaults.

Usage::

    store = SessionStore(AuthFactory.from_config(cfg))
    async with AuthenticatedClient(cfg.api_url, store) as client:
        space = await client.request("POST", "/spaces", {"name": "x", "owner": "alice"})
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional
from urllib.parse import urljoin

import aiohttp

from .auth.session_store import SessionStore
from .errors import AuthRequiredError, RequestError
from .transport import RequestDescriptor, new_http_session, send_request

logger = logging.getLogger(__name__)

_DEFAULT_LOGIN_PAGE = "/login.html"


# ---------------------------------------------------------------------------
# Navigation (host collaborator)
# ---------------------------------------------------------------------------

class Navigator:
    """Receives the redirect to the login entry point.

    The default implementation only records and logs the location; a host
    replaces it with whatever "go to the login page" means there.
    """

    def __init__(self):
        self.location: Optional[str] = None

    def redirect(self, location: str) -> None:
        self.location = location
        logger.warning(f"[CLIENT] Session required - redirecting to {location}")


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class AuthenticatedClient:
    """JSON client for protected API calls."""

    def __init__(
        self,
        base_url: str,
        session_store: SessionStore,
        *,
        navigator: Optional[Navigator] = None,
        login_page: str = _DEFAULT_LOGIN_PAGE,
        verify_tls: bool = True,
        http: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Args:
            base_url:      API origin, e.g. ``https://localhost:4567``.
            session_store: The session handle (explicit, never global).
            navigator:     Receives the login redirect on HTTP 401.
            login_page:    Login entry point, relative to ``base_url``.
            verify_tls:    Verify server certificates.
            http:          Pre-built aiohttp session (not closed by us).
        """
        self.base_url = base_url.rstrip("/")
        self.session_store = session_store
        self.navigator = navigator or Navigator()
        self.login_page = login_page
        self.verify_tls = verify_tls
        self._http = http
        self._owns_http = http is None

    async def __aenter__(self) -> "AuthenticatedClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    @property
    def http(self) -> aiohttp.ClientSession:
        if self._http is None:
            self._http = new_http_session(verify_tls=self.verify_tls)
        return self._http

    async def close(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.close()
        self._http = None

    def url_for(self, path: str) -> str:
        """Resolve *path* against the API origin (absolute URLs pass through)."""
        return urljoin(self.base_url + "/", path)

    # ── Public API ────────────────────────────────────────────────

    async def request(self, method: str, path: str, body: Any = None) -> Any:
        """Send an authenticated JSON request and return the parsed body.

        Raises:
            AuthRequiredError: HTTP 401 (after redirecting the navigator).
            RequestError:      any other non-success status.
            NetworkError:      no response.
        """
        req = RequestDescriptor(
            method=method.upper(),
            url=self.url_for(path),
            headers={"Content-Type": "application/json"},
            body=json.dumps(body) if body is not None else None,
        )
        self.session_store.attach(req)

        resp = await send_request(self.http, req)
        logger.debug(f"[CLIENT] {req.method} {path} → {resp.status}")

        if resp.ok:
            try:
                return resp.json()
            except ValueError as exc:
                raise RequestError(resp.status, f"Invalid JSON body: {exc}", req.url) from exc

        if resp.status == 401:
            location = self.url_for(self.login_page)
            self.navigator.redirect(location)
            raise AuthRequiredError(req.url, location)

        logger.warning(f"[CLIENT] {req.method} {path} failed: {resp.status} {resp.reason}")
        raise RequestError(resp.status, resp.reason, req.url)

    async def get(self, path: str) -> Any:
        return await self.request("GET", path)

    async def post(self, path: str, body: Any = None) -> Any:
        return await self.request("POST", path, body)

    async def delete(self, path: str) -> Any:
        return await self.request("DELETE", path)

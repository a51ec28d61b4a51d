"""
Cookie Session Strategy
=======================
Server-managed session cookie + double-submit anti-forgery token.

The server sets an HTTP-only session cookie on login.  A second, readable
cookie carries the anti-forgery (CSRF) token; on every state-changing request
its value is copied into the ``X-CSRF-Token`` header.  The server trusts the
header because only code running for the right origin can read the cookie.

Where the anti-forgery value comes from varies between deployments, so it is
configurable via ``csrf_source``:

    - ``"cookie"`` - the server sets the readable cookie itself
    - ``"body"``   - the server returns ``{"token": "..."}`` and the client
                     writes it into the readable cookie
"""

from __future__ import annotations

import logging
from typing import Optional

from aiohttp import CookieJar
from yarl import URL

from ..errors import LoginError
from .base_auth import RequestDescriptor, ResponseDescriptor, SessionStrategy

logger = logging.getLogger(__name__)

CSRF_SOURCES = ("cookie", "body")
DEFAULT_CSRF_COOKIE = "csrfToken"
DEFAULT_CSRF_HEADER = "X-CSRF-Token"


class CookieSessionStrategy(SessionStrategy):
    """Session cookie held in a jar this strategy owns."""

    def __init__(
        self,
        *,
        csrf_source: str = "body",
        csrf_cookie_name: str = DEFAULT_CSRF_COOKIE,
        csrf_header: str = DEFAULT_CSRF_HEADER,
        unsafe: bool = False,
    ):
        """
        Args:
            csrf_source:      ``"cookie"`` or ``"body"`` (see module doc).
            csrf_cookie_name: Name of the readable anti-forgery cookie.
            csrf_header:      Header the token is echoed in.
            unsafe:           Accept cookies from bare IP hosts (local dev).
        """
        if csrf_source not in CSRF_SOURCES:
            raise ValueError(
                f"csrf_source must be one of {CSRF_SOURCES}, got {csrf_source!r}"
            )
        self.csrf_source = csrf_source
        self.csrf_cookie_name = csrf_cookie_name
        self.csrf_header = csrf_header
        self._unsafe = unsafe
        self._jar: Optional[CookieJar] = None

    @property
    def strategy_name(self) -> str:
        return "cookie"

    @property
    def uses_cookies(self) -> bool:
        return True

    @property
    def jar(self) -> CookieJar:
        # aiohttp binds a jar to the running loop, so build it on first use.
        if self._jar is None:
            self._jar = CookieJar(unsafe=self._unsafe)
        return self._jar

    # ── Capabilities ──────────────────────────────────────────────

    def attach(self, request: RequestDescriptor) -> None:
        request.with_credentials = True
        cookies = self.jar.filter_cookies(URL(request.url))
        request.cookies.update({name: morsel.value for name, morsel in cookies.items()})

        if not request.is_state_changing:
            return

        csrf = self.csrf_token(request.url)
        if csrf:
            request.headers[self.csrf_header] = csrf
        else:
            logger.debug(
                f"[SESSION] No {self.csrf_cookie_name} cookie for "
                f"{request.method} request"
            )

    def capture(self, response: ResponseDescriptor) -> None:
        csrf_value = None
        if self.csrf_source == "body":
            try:
                body = response.json()
            except ValueError as exc:
                raise LoginError(f"Login body is not JSON: {exc}", response.status)
            csrf_value = body.get("token") if isinstance(body, dict) else None
            if not isinstance(csrf_value, str) or not csrf_value:
                raise LoginError(
                    "Login body carries no anti-forgery token", response.status
                )

        # Validated; replace the previous session in one go.
        url = URL(response.url)
        self.jar.clear()
        self.jar.update_cookies(response.cookies, url)
        if csrf_value is not None:
            self.jar.update_cookies({self.csrf_cookie_name: csrf_value}, url)

        if not self.csrf_token(response.url):
            logger.warning(
                f"[SESSION] Login succeeded but no {self.csrf_cookie_name} "
                f"cookie is readable - state-changing calls will be refused"
            )
        logger.info(f"[SESSION] Cookie session captured ({len(self.jar)} cookies)")

    def has_session(self) -> bool:
        return self._jar is not None and len(self._jar) > 0

    def clear(self) -> None:
        if self._jar is not None:
            self._jar.clear()

    # ── Helpers ───────────────────────────────────────────────────

    def csrf_token(self, url: str) -> Optional[str]:
        """Read the anti-forgery cookie visible to *url*."""
        morsel = self.jar.filter_cookies(URL(url)).get(self.csrf_cookie_name)
        return morsel.value if morsel is not None else None

"""
Transport
=========
Request/response descriptors and the single aiohttp send path shared by the
login flow, the authenticated client and the capability resolver.

Descriptors are plain dataclasses so session strategies can be exercised
without a network.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from http.cookies import SimpleCookie
from typing import Any, Dict, Optional, Union

import aiohttp
from yarl import URL

from .errors import NetworkError

logger = logging.getLogger(__name__)

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


# ---------------------------------------------------------------------------
# Descriptors
# ---------------------------------------------------------------------------

@dataclass
class RequestDescriptor:
    """An outgoing request before it is handed to the transport."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None
    with_credentials: bool = False
    """When True the transport sends ``cookies`` with the request."""
    cookies: Dict[str, str] = field(default_factory=dict)

    @property
    def is_state_changing(self) -> bool:
        return self.method.upper() not in SAFE_METHODS


@dataclass
class ResponseDescriptor:
    """A received response, reduced to what strategies and callers consume."""
    status: int
    url: str
    reason: str = ""
    body: str = ""
    cookies: SimpleCookie = field(default_factory=SimpleCookie)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        """Parse the body; an empty body parses to ``None``."""
        if not self.body:
            return None
        return json.loads(self.body)


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------

def new_http_session(*, verify_tls: bool = True) -> aiohttp.ClientSession:
    """Create an aiohttp session that never stores cookies on its own.

    Cookies only travel when a strategy attaches them, so a request without
    ``with_credentials`` is guaranteed to be cookie-free.
    """
    connector = aiohttp.TCPConnector() if verify_tls else aiohttp.TCPConnector(ssl=False)
    return aiohttp.ClientSession(
        connector=connector,
        cookie_jar=aiohttp.DummyCookieJar(),
    )


async def send_request(
    http: aiohttp.ClientSession,
    request: RequestDescriptor,
    *,
    encoded: bool = False,
) -> ResponseDescriptor:
    """Send *request* and read the whole body.

    Args:
        http:    Session to send through.
        request: The (already attached) request descriptor.
        encoded: True if ``request.url`` is fully percent-encoded and must go
                 on the wire byte-for-byte.

    Raises:
        NetworkError: if no response was received.
    """
    url: Union[str, URL] = URL(request.url, encoded=True) if encoded else request.url
    kwargs: dict = {"headers": request.headers}
    if request.body is not None:
        kwargs["data"] = request.body
    if request.with_credentials and request.cookies:
        kwargs["cookies"] = request.cookies

    try:
        async with http.request(request.method, url, **kwargs) as resp:
            body = await resp.text(errors="replace")
            return ResponseDescriptor(
                status=resp.status,
                url=str(resp.url),
                reason=resp.reason or "",
                body=body,
                cookies=resp.cookies,
            )
    except (aiohttp.ClientError, asyncio.TimeoutError) as exc:
        raise NetworkError(request.url, exc) from exc

"""
Capability URL Resolution
=========================
A capability URL carries its own access token, so following it needs no
session.  The token is handed out embedded in one of two slots:

    https://api.example/spaces/1/messages#<token>          (fragment)
    https://<token>@api.example/spaces/1/messages          (userinfo)

A deployment uses one slot consistently; ``slot`` selects it.  Resolution
moves the token into the query string, the only place the server reads it:

    https://api.example/spaces/1/messages?access_token=<token>

and empties the embedded slot so the secret does not leak again through
referrers or logs.  URLs already in the query form are accepted as-is.

Encoding:
    Fragment and userinfo have different escaping rules from a query
    string.  Tokens are percent-decoded when read from a slot and
    percent-encoded with NO safe characters when written to the query, so
    ``a/b+c=`` travels as ``a%2Fb%2Bc%3D`` and decodes back exactly.

Requests made here never carry session cookies or an Authorization header.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional
from urllib.parse import quote, unquote, urljoin, urlsplit, urlunsplit

import aiohttp

from .errors import CapabilityResolutionError, NetworkError
from .transport import RequestDescriptor, new_http_session, send_request

logger = logging.getLogger(__name__)

QUERY_PARAM = "access_token"
SLOTS = ("fragment", "userinfo")

ErrorHandler = Callable[[CapabilityResolutionError], Any]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def redact_token(token: str) -> str:
    """Short, non-secret preview of a token for log lines."""
    if len(token) <= 4:
        return "***"
    return token[:4] + "***"


def redact_url(url: str) -> str:
    """Strip every place a token could hide from *url*."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return "<malformed url>"
    host = parts.netloc.rpartition("@")[2]
    query = f"{QUERY_PARAM}=***" if QUERY_PARAM in parts.query else ""
    return urlunsplit((parts.scheme, host, parts.path, query, ""))


def _query_token(query: str, name: str) -> str:
    # parse_qs would turn "+" into a space, which corrupts tokens.
    for pair in query.split("&"):
        key, _, value = pair.partition("=")
        if unquote(key) == name:
            return unquote(value)
    return ""


# ---------------------------------------------------------------------------
# Capability URL
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CapabilityURL:
    """A parsed capability: secret-free ``base`` plus the decoded ``token``."""
    base: str
    token: str
    slot: str
    query_param_name: str = QUERY_PARAM

    @classmethod
    def parse(cls, url: str, slot: str = "fragment") -> "CapabilityURL":
        """Parse *url*, reading the token from *slot* (or the query form).

        Raises:
            CapabilityResolutionError: malformed URL or no token found.
        """
        if slot not in SLOTS:
            raise ValueError(f"slot must be one of {SLOTS}, got {slot!r}")

        try:
            parts = urlsplit(url.strip())
            parts.port  # raises ValueError for a bad port
        except (ValueError, AttributeError) as exc:
            raise CapabilityResolutionError(
                redact_url(str(url)), "Malformed capability URL", exc
            ) from exc

        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise CapabilityResolutionError(
                redact_url(url), "Capability URL must be absolute http(s)"
            )

        userinfo, _, host = parts.netloc.rpartition("@")
        path = quote(parts.path or "/", safe="/%:@!$&'()*+,;=")
        base = urlunsplit((parts.scheme, host, path, "", ""))

        raw = parts.fragment if slot == "fragment" else userinfo
        token = unquote(raw)
        found_in = slot
        if not token:
            token = _query_token(parts.query, QUERY_PARAM)
            found_in = "query"
        if not token:
            raise CapabilityResolutionError(
                redact_url(url), f"No access token in capability URL ({slot})"
            )

        return cls(base=base, token=token, slot=found_in)

    @property
    def href(self) -> str:
        """Canonical, fully encoded query form of this capability."""
        return f"{self.base}?{self.query_param_name}={quote(self.token, safe='')}"

    @property
    def redacted(self) -> str:
        return f"{self.base}?{self.query_param_name}={redact_token(self.token)}"


def rewrite_capability_url(url: str, slot: str = "fragment") -> str:
    """Move the embedded token of *url* into the ``access_token`` query.

    >>> rewrite_capability_url("https://host/caps#tok123")
    'https://host/caps?access_token=tok123'
    """
    return CapabilityURL.parse(url, slot).href


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

async def _call(fn: Callable[[Any], Any], value: Any) -> None:
    result = fn(value)
    if inspect.isawaitable(result):
        await result


class CapabilityResolver:
    """Fetches capability URLs without consulting any session."""

    def __init__(
        self,
        *,
        slot: str = "fragment",
        on_error: Optional[ErrorHandler] = None,
        verify_tls: bool = True,
        http: Optional[aiohttp.ClientSession] = None,
    ):
        """
        Args:
            slot:       Where this deployment embeds tokens.
            on_error:   Default error handler for ``resolve`` / ``traverse``.
            verify_tls: Verify server certificates.
            http:       Pre-built aiohttp session (not closed by us).  It
                        must not carry default auth headers or a cookie jar.
        """
        if slot not in SLOTS:
            raise ValueError(f"slot must be one of {SLOTS}, got {slot!r}")
        self.slot = slot
        self.on_error = on_error or self._log_error
        self.verify_tls = verify_tls
        self._http = http
        self._owns_http = http is None

    async def __aenter__(self) -> "CapabilityResolver":
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

    # ── Public API ────────────────────────────────────────────────

    async def fetch(self, url: str) -> Any:
        """Resolve *url* and return its JSON body.

        Raises:
            CapabilityResolutionError: for any resolution failure.
        """
        cap = CapabilityURL.parse(url, self.slot)
        req = RequestDescriptor(
            method="GET", url=cap.href, headers={"Accept": "application/json"}
        )
        logger.debug(f"[CAPABILITY] GET {cap.redacted} (token from {cap.slot})")

        try:
            resp = await send_request(self.http, req, encoded=True)
        except NetworkError as exc:
            raise CapabilityResolutionError(
                cap.redacted, "Network failure", exc.cause
            ) from exc

        if not resp.ok:
            raise CapabilityResolutionError(
                cap.redacted, f"HTTP {resp.status} {resp.reason}".strip()
            )
        if not resp.body:
            raise CapabilityResolutionError(cap.redacted, "Empty response body")
        try:
            return resp.json()
        except ValueError as exc:
            raise CapabilityResolutionError(
                cap.redacted, "Response is not JSON", exc
            ) from exc

    async def resolve(
        self,
        url: str,
        callback: Callable[[Any], Any],
        on_error: Optional[ErrorHandler] = None,
    ) -> None:
        """Resolve *url* and pass the JSON to *callback*.

        Failures are reported to *on_error* (or the resolver default) and
        never raised, so one broken link cannot disturb unrelated work.
        """
        try:
            data = await self.fetch(url)
        except CapabilityResolutionError as exc:
            await _call(on_error or self.on_error, exc)
            return
        await _call(callback, data)

    async def traverse(
        self,
        list_url: str,
        render: Callable[[Any], Any],
        on_error: Optional[ErrorHandler] = None,
    ) -> List[Any]:
        """Resolve a capability whose JSON is a list of capabilities.

        Elements are resolved strictly one after another: each element's
        JSON is fetched and handed to *render* (awaited if it returns an
        awaitable) before the next fetch starts, so renders follow the
        server's order.  A failing element is reported and skipped; the
        remaining elements are still attempted.

        List items may be URL strings or objects with a ``uri`` field;
        relative URLs resolve against the list's own URL.

        Returns:
            The JSON of every element that resolved, in list order.
        """
        report = on_error or self.on_error
        try:
            listing = await self.fetch(list_url)
        except CapabilityResolutionError as exc:
            await _call(report, exc)
            return []

        if not isinstance(listing, list):
            await _call(report, CapabilityResolutionError(
                redact_url(list_url), "Capability list is not a JSON array"
            ))
            return []

        list_base = CapabilityURL.parse(list_url, self.slot).base
        results: List[Any] = []
        logger.info(f"[CAPABILITY] Traversing {len(listing)} linked capabilities")

        for index, item in enumerate(listing):
            link = item.get("uri") if isinstance(item, dict) else item
            if not isinstance(link, str) or not link:
                await _call(report, CapabilityResolutionError(
                    redact_url(list_url), f"List item {index} is not a URL"
                ))
                continue

            try:
                data = await self.fetch(urljoin(list_base, link))
            except CapabilityResolutionError as exc:
                await _call(report, exc)
                continue

            await _call(render, data)
            results.append(data)

        return results

    # ── Internal ──────────────────────────────────────────────────

    @staticmethod
    def _log_error(exc: CapabilityResolutionError) -> None:
        logger.warning(f"[CAPABILITY] {exc}")

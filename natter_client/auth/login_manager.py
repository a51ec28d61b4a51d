"""
Login Manager
=============
Submits credentials once to ``POST /sessions`` and hands a successful
response to the session store.

Credentials travel either as an ``Authorization: Basic`` header (default)
or as a JSON body ``{"username": ..., "password": ...}``.

Rules:
    - Only a 2xx response is captured.
    - A refused login raises ``LoginError`` and leaves the previously stored
      session exactly as it was.
    - Credentials are never logged.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING

from ..errors import LoginError
from ..transport import RequestDescriptor, send_request
from .credentials import Credentials, basic_authorization

if TYPE_CHECKING:
    from ..client import AuthenticatedClient

logger = logging.getLogger(__name__)

CREDENTIAL_TRANSPORTS = ("basic", "json")
_DEFAULT_LOGIN_PATH = "/sessions"


class LoginManager:
    """Drives the login request for an ``AuthenticatedClient``."""

    def __init__(
        self,
        client: "AuthenticatedClient",
        *,
        login_path: str = _DEFAULT_LOGIN_PATH,
        credential_transport: str = "basic",
    ):
        if credential_transport not in CREDENTIAL_TRANSPORTS:
            raise ValueError(
                f"credential_transport must be one of {CREDENTIAL_TRANSPORTS}, "
                f"got {credential_transport!r}"
            )
        self.client = client
        self.login_path = login_path
        self.credential_transport = credential_transport

    def build_request(self, creds: Credentials) -> RequestDescriptor:
        """The login request, before it is sent."""
        req = RequestDescriptor(
            method="POST",
            url=self.client.url_for(self.login_path),
            headers={"Content-Type": "application/json"},
            with_credentials=self.client.session_store.uses_cookies,
        )
        if self.credential_transport == "basic":
            req.headers["Authorization"] = basic_authorization(creds)
        else:
            req.body = json.dumps(
                {"username": creds.username, "password": creds.password}
            )
        return req

    async def login(self, creds: Credentials) -> None:
        """Log in with *creds* and capture the resulting session.

        Raises:
            LoginError:   the server refused the login or sent no usable body.
            NetworkError: no response.
        """
        if not creds.is_complete:
            raise LoginError("Credentials incomplete - cannot login")

        req = self.build_request(creds)
        logger.info(
            f"[LOGIN] POST {self.login_path} as {creds.username} "
            f"({self.credential_transport} credentials)"
        )
        resp = await send_request(self.client.http, req)

        if not resp.ok:
            logger.error(f"[LOGIN] Login refused: {resp.status} {resp.reason}")
            raise LoginError(
                f"Login failed: {resp.status} {resp.reason}".strip(), resp.status
            )

        self.client.session_store.capture(resp)
        logger.info(
            f"[LOGIN] Logged in ({self.client.session_store.strategy_name} session)"
        )

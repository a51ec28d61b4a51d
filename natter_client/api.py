"""
Natter API
==========
Domain actions of the Natter social API, all routed through an
``AuthenticatedClient`` so they carry whichever session is active.

Space and message references are the ``uri`` values the server returns
(``/spaces/1``, ``/spaces/1/messages/7``); absolute URLs work too.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional
from urllib.parse import urlencode

from .client import AuthenticatedClient

logger = logging.getLogger(__name__)


class NatterAPI:
    """Thin wrapper over the Natter REST routes."""

    def __init__(self, client: AuthenticatedClient):
        self.client = client

    async def register_user(self, username: str, password: str) -> Dict[str, Any]:
        """``POST /users`` - returns ``{"username": ...}``."""
        return await self.client.post(
            "/users", {"username": username, "password": password}
        )

    async def create_space(self, name: str, owner: str) -> Dict[str, Any]:
        """``POST /spaces`` - returns ``{"name": ..., "uri": ...}``."""
        result = await self.client.post("/spaces", {"name": name, "owner": owner})
        if isinstance(result, dict):
            logger.info(f"[API] Created space: {result.get('name')} {result.get('uri')}")
        return result

    async def post_message(self, space_uri: str, author: str, message: str) -> Dict[str, Any]:
        return await self.client.post(
            _join(space_uri, "messages"), {"author": author, "message": message}
        )

    async def list_messages(self, space_uri: str, since: Optional[str] = None) -> List[Any]:
        path = _join(space_uri, "messages")
        if since:
            path += "?" + urlencode({"since": since})
        return await self.client.get(path)

    async def read_message(self, message_uri: str) -> Dict[str, Any]:
        return await self.client.get(message_uri)

    async def delete_message(self, message_uri: str) -> Any:
        return await self.client.delete(message_uri)

    async def add_member(self, space_uri: str, username: str, permissions: str) -> Dict[str, Any]:
        """Grant *username* the permission letters *permissions* (e.g. ``"rw"``)."""
        return await self.client.post(
            _join(space_uri, "members"),
            {"username": username, "permissions": permissions},
        )


def _join(base: str, segment: str) -> str:
    return base.rstrip("/") + "/" + segment

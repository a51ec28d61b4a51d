"""
Bearer Token Strategies
=======================
Client-held bearer token, attached as ``Authorization: Bearer <token>``.

The two variants differ only in the storage medium:

    - ``SessionStorageBearerStrategy`` - token discarded with the context
    - ``DurableStorageBearerStrategy`` - token persisted to disk
"""

from __future__ import annotations

import logging

from ..errors import LoginError
from .base_auth import RequestDescriptor, ResponseDescriptor, SessionStrategy
from .storage import TOKEN_KEY, DurableStorage, SessionScopedStorage, TokenStorage

logger = logging.getLogger(__name__)


class BearerTokenStrategy(SessionStrategy):
    """Bearer token read from / written to a ``TokenStorage``."""

    name = "bearer"

    def __init__(self, storage: TokenStorage):
        self.storage = storage

    @property
    def strategy_name(self) -> str:
        return self.name

    def attach(self, request: RequestDescriptor) -> None:
        token = self.storage.get(TOKEN_KEY)
        if token:
            request.headers["Authorization"] = f"Bearer {token}"

    def capture(self, response: ResponseDescriptor) -> None:
        try:
            body = response.json()
        except ValueError as exc:
            raise LoginError(f"Login body is not JSON: {exc}", response.status)

        token = body.get("token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            raise LoginError("Login body carries no token", response.status)

        self.storage.set(TOKEN_KEY, token)
        logger.info(f"[SESSION] Bearer token stored in {self.storage.medium}")

    def has_session(self) -> bool:
        return bool(self.storage.get(TOKEN_KEY))

    def clear(self) -> None:
        self.storage.remove(TOKEN_KEY)


class SessionStorageBearerStrategy(BearerTokenStrategy):
    name = "session-storage"

    def __init__(self, storage: SessionScopedStorage = None, *, origin: str = ""):
        super().__init__(storage or SessionScopedStorage(origin))


class DurableStorageBearerStrategy(BearerTokenStrategy):
    name = "durable-storage"

    def __init__(self, storage: DurableStorage = None, *, path: str = "", origin: str = ""):
        if storage is None:
            if not path:
                raise ValueError("durable storage needs a path")
            storage = DurableStorage(path, origin)
        super().__init__(storage)

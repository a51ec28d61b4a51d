"""
Session Store
=============
The single handle through which the client reaches the session.

The store wraps exactly one ``SessionStrategy`` and is passed explicitly to
every component that needs it - nothing reads the session from module-level
state.  It is the only object that touches the storage medium; everyone else
gets authentication through ``attach``.

Usage::

    from natter_client.auth import AuthFactory, SessionStore

    store = SessionStore(AuthFactory.from_config(cfg))
"""

from __future__ import annotations

import logging

from ..errors import LoginError
from .base_auth import RequestDescriptor, ResponseDescriptor, SessionStrategy

logger = logging.getLogger(__name__)


class SessionStore:
    """Holds the active session strategy."""

    def __init__(self, strategy: SessionStrategy):
        self.strategy = strategy

    @property
    def strategy_name(self) -> str:
        return self.strategy.strategy_name

    @property
    def uses_cookies(self) -> bool:
        return self.strategy.uses_cookies

    def attach(self, request: RequestDescriptor) -> None:
        self.strategy.attach(request)

    def capture(self, response: ResponseDescriptor) -> None:
        """Capture a session from a login *response*.

        Refuses non-success responses so a failed login can never disturb
        the stored session.
        """
        if not response.ok:
            raise LoginError(
                f"refusing to capture a session from HTTP {response.status}",
                response.status,
            )
        self.strategy.capture(response)

    def has_session(self) -> bool:
        return self.strategy.has_session()

    def clear(self) -> None:
        logger.info(f"[SESSION] Clearing {self.strategy_name} session")
        self.strategy.clear()

"""
Base Session Strategy (Abstract)
================================
Defines the contract that ALL session strategies must implement.

A strategy decides where the session artifact lives and how it rides on an
outgoing request.  It exposes exactly two capabilities:

    - ``attach(request)``  - add cookies / headers to an outgoing request
    - ``capture(response)``- pull the session artifact out of a successful
                             login response

To add a new strategy:
    1. Inherit from ``SessionStrategy`` and implement the abstract members
    2. Register it in ``auth_factory.py`` via ``AuthFactory.register()``
    3. No changes to the client or the resolver are needed.

Requests and responses are plain descriptors so that strategies can be
exercised without a network or a browser.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from ..transport import RequestDescriptor, ResponseDescriptor

logger = logging.getLogger(__name__)

__all__ = ["RequestDescriptor", "ResponseDescriptor", "SessionStrategy"]


# ---------------------------------------------------------------------------
# Abstract base strategy
# ---------------------------------------------------------------------------

class SessionStrategy(ABC):
    """Abstract base for the interchangeable session strategies."""

    @property
    @abstractmethod
    def strategy_name(self) -> str:
        """Registry key (e.g. ``'cookie'``, ``'durable-storage'``)."""
        ...

    @abstractmethod
    def attach(self, request: RequestDescriptor) -> None:
        """Mutate *request* so the server can authenticate it."""
        ...

    @abstractmethod
    def capture(self, response: ResponseDescriptor) -> None:
        """Store the session artifact carried by a 2xx login *response*.

        Must either store a complete session or raise without touching the
        stored one.
        """
        ...

    @abstractmethod
    def has_session(self) -> bool:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...

    @property
    def uses_cookies(self) -> bool:
        """True if the login request itself must carry credentials mode."""
        return False

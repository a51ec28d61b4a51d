"""
Authentication Factory
======================
Selects the session strategy named in the configuration.

Choosing between cookie, session-storage and durable-storage sessions is a
configuration value, not a code fork: the rest of the client only ever sees
the ``SessionStrategy`` interface.

Usage::

    from natter_client.auth.auth_factory import AuthFactory

    strategy = AuthFactory.from_config(cfg)
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List

from ..errors import ConfigError
from .base_auth import SessionStrategy
from .bearer_session import DurableStorageBearerStrategy, SessionStorageBearerStrategy
from .cookie_session import CookieSessionStrategy

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Strategy Registry
# ---------------------------------------------------------------------------

# Global registry: maps strategy name → builder(cfg) → strategy
_STRATEGY_REGISTRY: Dict[str, Callable[..., SessionStrategy]] = {}


class AuthFactory:
    """Registry of session strategy builders."""

    @staticmethod
    def register(name: str, builder: Callable[..., SessionStrategy]) -> None:
        """Register *builder* (called with a ``ClientRunConfig``) as *name*."""
        _STRATEGY_REGISTRY[name.lower()] = builder
        logger.debug(f"[AUTH-FACTORY] Registered strategy: {name}")

    @staticmethod
    def create(name: str, cfg) -> SessionStrategy:
        builder = _STRATEGY_REGISTRY.get(name.lower())
        if builder is None:
            raise ConfigError(
                f"Unknown auth strategy {name!r} "
                f"(choose from {', '.join(AuthFactory.list_strategies())})"
            )
        strategy = builder(cfg)
        logger.info(f"[AUTH-FACTORY] Using strategy: {strategy.strategy_name}")
        return strategy

    @staticmethod
    def from_config(cfg) -> SessionStrategy:
        return AuthFactory.create(cfg.auth_strategy, cfg)

    @staticmethod
    def list_strategies() -> List[str]:
        return list(_STRATEGY_REGISTRY.keys())


# ---------------------------------------------------------------------------
# Built-in strategies
# ---------------------------------------------------------------------------

def _auto_register() -> None:
    AuthFactory.register(
        "cookie",
        lambda cfg: CookieSessionStrategy(
            csrf_source=cfg.csrf_source,
            csrf_cookie_name=cfg.csrf_cookie_name,
            csrf_header=cfg.csrf_header,
            unsafe=cfg.unsafe_cookies,
        ),
    )
    AuthFactory.register(
        "session-storage",
        lambda cfg: SessionStorageBearerStrategy(origin=cfg.origin),
    )
    AuthFactory.register(
        "durable-storage",
        lambda cfg: DurableStorageBearerStrategy(
            path=cfg.storage_path, origin=cfg.origin
        ),
    )


_auto_register()

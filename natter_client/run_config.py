"""
Unified Run Configuration
=========================
Single source of truth for ALL client defaults.

Every component (session strategies, authenticated client, login flow,
capability resolver, CLI) is built *from* this object, so the choice of
session strategy or token slot is a configuration value rather than a code
fork.

Populate via:
  - ``ClientRunConfig()``                  → all defaults
  - ``ClientRunConfig(auth_strategy=...)`` → override one value
  - ``ClientRunConfig.from_env()``         → ``NATTER_*`` env vars / ``.env``
  - ``ClientRunConfig.from_cli_args(ns)``  → argparse Namespace
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, fields
from typing import Mapping, Optional
from urllib.parse import urlsplit

from dotenv import load_dotenv

from .errors import ConfigError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Canonical defaults - the ONLY place these values live
# ---------------------------------------------------------------------------
_DEFAULTS = {
    "api_url": "https://localhost:4567",
    "login_path": "/sessions",
    "login_page": "/login.html",
    "auth_strategy": "cookie",          # "cookie" | "session-storage" | "durable-storage"
    "credential_transport": "basic",    # "basic" | "json"
    "csrf_source": "body",              # "body" | "cookie"
    "csrf_cookie_name": "csrfToken",
    "csrf_header": "X-CSRF-Token",
    "capability_slot": "fragment",      # "fragment" | "userinfo"
    "storage_path": "natter_storage.json",
    "verify_tls": True,
    "unsafe_cookies": False,            # accept cookies from bare IP hosts
}

_CHOICES = {
    "auth_strategy": ("cookie", "session-storage", "durable-storage"),
    "credential_transport": ("basic", "json"),
    "csrf_source": ("body", "cookie"),
    "capability_slot": ("fragment", "userinfo"),
}

_ENV_PREFIX = "NATTER_"
_TRUE = {"1", "true", "yes", "on"}


@dataclass
class ClientRunConfig:
    """Unified configuration consumed by every client subsystem."""

    # ---- Endpoints ----
    api_url: str = _DEFAULTS["api_url"]
    login_path: str = _DEFAULTS["login_path"]
    login_page: str = _DEFAULTS["login_page"]

    # ---- Session ----
    auth_strategy: str = _DEFAULTS["auth_strategy"]
    credential_transport: str = _DEFAULTS["credential_transport"]
    csrf_source: str = _DEFAULTS["csrf_source"]
    csrf_cookie_name: str = _DEFAULTS["csrf_cookie_name"]
    csrf_header: str = _DEFAULTS["csrf_header"]
    storage_path: str = _DEFAULTS["storage_path"]

    # ---- Capabilities ----
    capability_slot: str = _DEFAULTS["capability_slot"]

    # ---- Transport ----
    verify_tls: bool = _DEFAULTS["verify_tls"]
    unsafe_cookies: bool = _DEFAULTS["unsafe_cookies"]

    # ---- Credentials (never logged) ----
    username: Optional[str] = None
    password: Optional[str] = None

    def __post_init__(self):
        self.validate()

    # -----------------------------------------------------------------------
    # Validation
    # -----------------------------------------------------------------------
    def validate(self) -> None:
        for name, allowed in _CHOICES.items():
            value = getattr(self, name)
            if value not in allowed:
                raise ConfigError(
                    f"{name} must be one of {', '.join(allowed)} (got {value!r})"
                )
        parts = urlsplit(self.api_url)
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise ConfigError(f"api_url must be an absolute http(s) URL (got {self.api_url!r})")
        if self.auth_strategy == "durable-storage" and not self.storage_path:
            raise ConfigError("durable-storage needs a storage_path")

    @property
    def origin(self) -> str:
        parts = urlsplit(self.api_url)
        return f"{parts.scheme}://{parts.netloc}"

    # -----------------------------------------------------------------------
    # Factory helpers
    # -----------------------------------------------------------------------
    @classmethod
    def from_env(
        cls,
        env: Optional[Mapping[str, str]] = None,
        *,
        dotenv_path: Optional[str] = None,
        **overrides,
    ) -> "ClientRunConfig":
        """Build config from ``NATTER_*`` variables.

        When *env* is None the process environment is used, after loading a
        ``.env`` file (``dotenv_path`` or the nearest one found).
        """
        if env is None:
            load_dotenv(dotenv_path)
            env = os.environ

        values = {}
        for f in fields(cls):
            raw = env.get(_ENV_PREFIX + f.name.upper())
            if raw is None or raw == "":
                continue
            if isinstance(_DEFAULTS.get(f.name), bool):
                values[f.name] = raw.strip().lower() in _TRUE
            else:
                values[f.name] = raw.strip()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    @classmethod
    def from_cli_args(cls, args, env: Optional[Mapping[str, str]] = None) -> "ClientRunConfig":
        """Build config from an argparse Namespace (``__main__.py``).

        Flags override environment values, which override defaults.
        """
        overrides = {
            "api_url": getattr(args, "api_url", None),
            "auth_strategy": getattr(args, "strategy", None),
            "credential_transport": getattr(args, "credential_transport", None),
            "csrf_source": getattr(args, "csrf_source", None),
            "capability_slot": getattr(args, "slot", None),
            "storage_path": getattr(args, "storage_path", None),
            "username": getattr(args, "username", None),
        }
        if getattr(args, "insecure", False):
            overrides["verify_tls"] = False
        return cls.from_env(env, dotenv_path=getattr(args, "env_file", None), **overrides)

    # -----------------------------------------------------------------------
    # Component builders
    # -----------------------------------------------------------------------
    def build_session_store(self):
        from .auth.auth_factory import AuthFactory
        from .auth.session_store import SessionStore
        return SessionStore(AuthFactory.from_config(self))

    def build_client(self, session_store=None, navigator=None):
        from .client import AuthenticatedClient
        return AuthenticatedClient(
            self.api_url,
            session_store or self.build_session_store(),
            navigator=navigator,
            login_page=self.login_page,
            verify_tls=self.verify_tls,
        )

    def build_login_manager(self, client):
        from .auth.login_manager import LoginManager
        return LoginManager(
            client,
            login_path=self.login_path,
            credential_transport=self.credential_transport,
        )

    def build_resolver(self, on_error=None):
        from .capability import CapabilityResolver
        return CapabilityResolver(
            slot=self.capability_slot,
            on_error=on_error,
            verify_tls=self.verify_tls,
        )

    # -----------------------------------------------------------------------
    # Logging helper
    # -----------------------------------------------------------------------
    def log_summary(self) -> None:
        """Emit a structured summary to the logger."""
        logger.info("=" * 60)
        logger.info("NATTER CLIENT CONFIG")
        logger.info("=" * 60)
        logger.info(f"  API URL:          {self.api_url}")
        logger.info(f"  Auth Strategy:    {self.auth_strategy}")
        logger.info(f"  Credentials via:  {self.credential_transport}")
        if self.auth_strategy == "cookie":
            logger.info(f"  CSRF Source:      {self.csrf_source} ({self.csrf_cookie_name} → {self.csrf_header})")
        if self.auth_strategy == "durable-storage":
            logger.info(f"  Storage File:     {self.storage_path}")
        logger.info(f"  Capability Slot:  {self.capability_slot}")
        if not self.verify_tls:
            logger.info("  TLS Verify:       DISABLED")
        logger.info("=" * 60)

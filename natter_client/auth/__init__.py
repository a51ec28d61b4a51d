"""
Authentication Module
=====================
Interchangeable session strategies behind one ``attach`` / ``capture``
interface.

Architecture:
    - ``SessionStrategy``  - abstract base class for all strategies
    - ``AuthFactory``      - builds the strategy named in the config
    - ``SessionStore``     - the explicit session handle passed to the client
    - ``LoginManager``     - one-shot credential submission to ``/sessions``
    - ``Credentials``      - credential container (resolved from env/prompt)

Built-in strategies:
    - ``CookieSessionStrategy``        - session cookie + anti-forgery header
    - ``SessionStorageBearerStrategy`` - bearer token, session-scoped storage
    - ``DurableStorageBearerStrategy`` - bearer token, durable storage

Usage::

    from natter_client.auth import AuthFactory, SessionStore

    store = SessionStore(AuthFactory.from_config(cfg))
"""

from .base_auth import SessionStrategy
from .credentials import Credentials, encode_basic, resolve_credentials
from .storage import DurableStorage, SessionScopedStorage, TokenStorage
from .cookie_session import CookieSessionStrategy
from .bearer_session import (
    BearerTokenStrategy,
    DurableStorageBearerStrategy,
    SessionStorageBearerStrategy,
)
from .auth_factory import AuthFactory
from .session_store import SessionStore
from .login_manager import LoginManager

__all__ = [
    "SessionStrategy",
    "Credentials",
    "encode_basic",
    "resolve_credentials",
    "TokenStorage",
    "SessionScopedStorage",
    "DurableStorage",
    "CookieSessionStrategy",
    "BearerTokenStrategy",
    "SessionStorageBearerStrategy",
    "DurableStorageBearerStrategy",
    "AuthFactory",
    "SessionStore",
    "LoginManager",
]

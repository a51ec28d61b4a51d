"""
Credentials
===========
Credential container, Basic-auth codec and env/prompt resolution.

The codec performs no validation of the character set - a username or
password containing control characters will break header framing, and
sanitising input is the server's concern.
"""

from __future__ import annotations

import base64
import getpass
import logging
import os
from dataclasses import dataclass
from typing import Iterable, Optional

logger = logging.getLogger(__name__)

DEFAULT_ENV_PREFIXES = ("NATTER",)


# ---------------------------------------------------------------------------
# Credentials container
# ---------------------------------------------------------------------------

@dataclass
class Credentials:
    """Plain credential container - resolved once, submitted once."""
    username: str = ""
    password: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.username and self.password)

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


# ---------------------------------------------------------------------------
# Basic-auth codec
# ---------------------------------------------------------------------------

def encode_basic(username: str, password: str) -> str:
    """Encode ``username:password`` for use after ``Basic `` in a header.

    >>> encode_basic("alice", "s3cret")
    'YWxpY2U6czNjcmV0'
    """
    raw = f"{username}:{password}".encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def basic_authorization(creds: Credentials) -> str:
    """Full ``Authorization`` header value for *creds*."""
    return "Basic " + encode_basic(creds.username, creds.password)


# ---------------------------------------------------------------------------
# Resolution (env → prompt)
# ---------------------------------------------------------------------------

def resolve_credentials(
    creds: Optional[Credentials] = None,
    *,
    prefixes: Iterable[str] = DEFAULT_ENV_PREFIXES,
    interactive: bool = True,
) -> Credentials:
    """Build ``Credentials`` from env vars + interactive prompt.

    Resolution order:
        1. Existing *creds* object (if complete) → use as-is
        2. Environment variables (``{PREFIX}_USERNAME``, ``{PREFIX}_PASSWORD``)
        3. Interactive terminal prompt (if *interactive* is True)

    The result may still be incomplete if nothing supplied a value.
    """
    if creds is None:
        creds = Credentials()

    if creds.is_complete:
        return creds

    for prefix in prefixes:
        if not creds.username:
            creds.username = os.environ.get(f"{prefix}_USERNAME", "")
        if not creds.password:
            creds.password = os.environ.get(f"{prefix}_PASSWORD", "")

    if creds.is_complete:
        logger.info("[LOGIN] Credentials resolved from environment")
        return creds

    if interactive:
        creds = _prompt_credentials(creds)

    return creds


def _prompt_credentials(creds: Credentials) -> Credentials:
    """Prompt for missing values; the password is read without echo."""
    if not creds.username:
        creds.username = input("  Username: ").strip()
    else:
        print(f"  Username: {creds.username}")

    if not creds.password:
        creds.password = getpass.getpass("  Password: ")

    return creds

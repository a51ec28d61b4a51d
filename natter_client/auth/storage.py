"""
Storage Media
=============
Where a bearer token lives between requests.

    - ``SessionScopedStorage`` - in-memory; discarded when the browsing
      context (the client process) ends.
    - ``DurableStorage``       - JSON file that survives restarts until
      ``clear()`` / ``remove()`` is called.

The durable file uses the same shape as a browser storage-state export, so a
saved session can be inspected or loaded by browser tooling::

    {"origins": [{"origin": "https://localhost:4567",
                  "localStorage": [{"name": "token", "value": "..."}]}]}

Only the session strategies read or write these objects.
"""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"


class TokenStorage(ABC):
    """Key/value storage scoped to one origin."""

    #: Human-readable medium name used in log lines.
    medium: str = "storage"

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class SessionScopedStorage(TokenStorage):
    """Storage that lives exactly as long as this object."""

    medium = "session storage"

    def __init__(self, origin: str = ""):
        self.origin = origin
        self._items: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def clear(self) -> None:
        self._items.clear()


class DurableStorage(TokenStorage):
    """Storage persisted to a storage-state JSON file on disk.

    Every write rewrites the whole file through a temporary sibling and an
    atomic rename, so a crash never leaves a half-written token behind.
    """

    medium = "durable storage"

    def __init__(self, path: str, origin: str):
        self.path = Path(path)
        self.origin = origin

    # ── Public API ────────────────────────────────────────────────

    def get(self, key: str) -> Optional[str]:
        for item in self._origin_items(self._load()):
            if item.get("name") == key:
                value = item.get("value")
                return value if isinstance(value, str) else None
        return None

    def set(self, key: str, value: str) -> None:
        state = self._load()
        items = [i for i in self._origin_items(state) if i.get("name") != key]
        items.append({"name": key, "value": value})
        self._save(self._replace_origin(state, items))

    def remove(self, key: str) -> None:
        state = self._load()
        items = [i for i in self._origin_items(state) if i.get("name") != key]
        self._save(self._replace_origin(state, items))

    def clear(self) -> None:
        state = self._load()
        self._save(self._replace_origin(state, []))

    # ── Internal ──────────────────────────────────────────────────

    def _load(self) -> dict:
        if not self.path.exists():
            return {"cookies": [], "origins": []}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError) as exc:
            logger.warning(f"[STORAGE] Corrupt storage file {self.path}: {exc}")
            return {"cookies": [], "origins": []}
        if not isinstance(data, dict):
            return {"cookies": [], "origins": []}
        data.setdefault("cookies", [])
        data.setdefault("origins", [])
        return data

    def _origin_items(self, state: dict) -> List[dict]:
        for entry in state.get("origins", []):
            if isinstance(entry, dict) and entry.get("origin") == self.origin:
                return list(entry.get("localStorage", []))
        return []

    def _replace_origin(self, state: dict, items: List[dict]) -> dict:
        origins = [
            o for o in state.get("origins", [])
            if not (isinstance(o, dict) and o.get("origin") == self.origin)
        ]
        if items:
            origins.append({"origin": self.origin, "localStorage": items})
        state["origins"] = origins
        return state

    def _save(self, state: dict) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        tmp.write_text(json.dumps(state, indent=2), encoding="utf-8")
        # Owner-only, like a browser profile.
        tmp.chmod(0o600)
        tmp.replace(self.path)
        logger.debug(f"[STORAGE] Saved {self.path}")

"""Keyed stores for computed :class:`WaveformRenderData`.

Caching is an optimisation: every provider logs and swallows I/O and
decode failures, and a miss is always ``None``.
"""

from __future__ import annotations

import contextlib
import hashlib
import json
import logging
import os
import re
import threading
from abc import ABC, abstractmethod
from typing import Any

log = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")
_STEM_CHARS = 64


def cache_key(audio_url: str) -> str:
    """Stable cache key for the render data of *audio_url*."""
    return f"waveform-data-{audio_url}"


class CacheProvider(ABC):
    """get / set / delete of JSON-serialisable values by string key."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        ...

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...


class MemoryCache(CacheProvider):
    """Process-local cache.  Values are stored as JSON text so callers
    never share mutable state through it."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            text = self._items.get(key)
        if text is None:
            return None
        return json.loads(text)

    def set(self, key, value):
        try:
            text = json.dumps(value)
        except (TypeError, ValueError) as e:
            log.warning("Failed to serialise cache entry %s: %s", key, e)
            return
        with self._lock:
            self._items[key] = text

    def delete(self, key):
        with self._lock:
            self._items.pop(key, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)


class JsonFileCache(CacheProvider):
    """One JSON file per key inside *directory*.

    File names are *prefix*, the last 64 characters of the key sanitised
    to ``[A-Za-z0-9._-]``, and the SHA-256 of the full key.  Keys that
    sanitise alike still get distinct files.
    Writes go to a ``.tmp`` sibling that replaces the entry when complete.
    """

    def __init__(self, directory: str, prefix: str = "") -> None:
        self.directory = directory
        self.prefix = prefix

    def path_for(self, key: str) -> str:
        stem = _UNSAFE_CHARS.sub("_", key)[-_STEM_CHARS:]
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return os.path.join(self.directory, f"{self.prefix}{stem}-{digest}.json")

    def get(self, key):
        path = self.path_for(key)
        if not os.path.isfile(path):
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            log.warning("Failed to read cached data %s: %s", path, e)
            return None

    def set(self, key, value):
        path = self.path_for(key)
        tmp = path + ".tmp"
        try:
            os.makedirs(self.directory, exist_ok=True)
            with open(tmp, "w", encoding="utf-8") as f:
                json.dump(value, f)
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            log.warning("Failed to save cached data %s: %s", path, e)
            with contextlib.suppress(OSError):
                os.remove(tmp)

    def delete(self, key):
        try:
            os.remove(self.path_for(key))
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning("Failed to delete cached data %s: %s", key, e)

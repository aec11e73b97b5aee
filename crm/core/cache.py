"""Process-local TTL cache for per-tenant lead counts.

Count requests repeated by a tenant within the TTL window are answered from
memory instead of re-reading every lead. Keys are tuples that start with a
namespace and the tenant id, so a write can drop all of one tenant's entries
through ``invalidate_prefix``.
"""

import time
from collections.abc import Hashable
from typing import Any

_cache: dict[Hashable, tuple[float, Any]] = {}

DEFAULT_TTL = 60


def get(key: Hashable, ttl: float = DEFAULT_TTL) -> Any | None:
    """Return the cached value, or None when missing or older than ``ttl``."""
    entry = _cache.get(key)
    if entry is None:
        return None
    stored_at, value = entry
    if time.monotonic() - stored_at > ttl:
        _cache.pop(key, None)
        return None
    return value


def put(key: Hashable, value: Any) -> None:
    _cache[key] = (time.monotonic(), value)


def invalidate_prefix(*prefix: Hashable) -> None:
    """Drop every tuple key whose leading items equal ``prefix``."""
    n = len(prefix)
    for key in [k for k in _cache if isinstance(k, tuple) and k[:n] == prefix]:
        _cache.pop(key, None)


def clear() -> None:
    _cache.clear()

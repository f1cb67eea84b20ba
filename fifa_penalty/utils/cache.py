# fifa_penalty/utils/cache.py

import time
from typing import Any, Dict, Optional, Tuple

# Cache en memoria: clave -> (expira_en, valor). El TTL se fija al escribir.
_feed_cache: Dict[str, Tuple[float, Any]] = {}


def get_from_cache(key: str) -> Optional[Any]:
    entry = _feed_cache.get(key)
    if entry is None:
        return None

    expires_at, value = entry
    if time.time() >= expires_at:
        _feed_cache.pop(key, None)
        return None
    return value


def set_in_cache(key: str, value: Any, ttl_seconds: float) -> None:
    if ttl_seconds <= 0:
        return
    _feed_cache[key] = (time.time() + ttl_seconds, value)


def invalidate(key: str) -> None:
    _feed_cache.pop(key, None)


def clear_cache() -> None:
    _feed_cache.clear()

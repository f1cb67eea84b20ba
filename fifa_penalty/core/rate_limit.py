# fifa_penalty/core/rate_limit.py

import threading
import time
from collections import deque
from typing import Deque, Dict, Optional

from fastapi import Request

from fifa_penalty.config import settings


class RateLimiter:
    """
    Ventana deslizante en memoria: como mucho `max_requests` por clave
    dentro de `window_seconds`. Las claves sin peticiones en la ventana se
    eliminan (al consultarlas y en un barrido por ventana).
    """

    def __init__(self, max_requests: int, window_seconds: float):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._hits: Dict[str, Deque[float]] = {}
        self._last_sweep = 0.0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def _prune(self, key: str, now: float) -> Optional[Deque[float]]:
        hits = self._hits.get(key)
        if hits is None:
            return None
        while hits and now - hits[0] >= self.window_seconds:
            hits.popleft()
        if not hits:
            del self._hits[key]
            return None
        return hits

    def _sweep(self, now: float) -> None:
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        for key in list(self._hits):
            self._prune(key, now)

    def allow(self, key: str, now: Optional[float] = None) -> bool:
        now = time.monotonic() if now is None else now
        with self._lock:
            self._sweep(now)
            hits = self._prune(key, now)
            if hits is None:
                hits = self._hits[key] = deque()
            if len(hits) >= self.max_requests:
                return False
            hits.append(now)
            return True

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
            self._last_sweep = 0.0


def client_key(request: Request, trust_forwarded: Optional[bool] = None) -> str:
    """
    IP del peer. X-Forwarded-For (primer salto) solo cuenta si
    TRUST_FORWARDED_FOR está activo, es decir detrás de un proxy propio.
    """
    if trust_forwarded is None:
        trust_forwarded = settings.trust_forwarded_for

    if trust_forwarded:
        forwarded = request.headers.get("x-forwarded-for", "")
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client:
        return request.client.host
    return "unknown"

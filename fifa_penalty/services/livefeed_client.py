# fifa_penalty/services/livefeed_client.py

from typing import Any, Dict, List

import requests

from fifa_penalty.config import settings
from fifa_penalty.core.errors import LiveFeedError
from fifa_penalty.core.logging import logger
from fifa_penalty.utils.cache import get_from_cache, set_in_cache

BASE_URL = settings.live_feed_url

HEADERS = {
    "User-Agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
    "Accept": "application/json",
}


def build_params() -> Dict[str, Any]:
    """
    Query del feed de deportes virtuales.

    `gr` acota al grupo de FIFA Penalty; si el filtro por palabras clave no
    encuentra nada, ese grupo es lo que queda como respaldo.
    """
    return {
        "sports": settings.sport_id,
        "count": settings.live_feed_count,
        "lng": settings.live_feed_lang,
        "gr": settings.fallback_group_id,
        "mode": settings.live_feed_mode,
        "country": settings.live_feed_country,
        "getEmpty": "true",
        "virtualSports": "true",
        "noFilterBlockEvent": "true",
    }


def fetch_live_feed(use_cache: bool = True) -> Dict[str, Any]:
    """
    Descarga el JSON completo del LiveFeed (lista de eventos en `Value`).

    Cualquier error de red, HTTP o JSON se propaga como LiveFeedError:
    no hay reintentos.
    """
    cache_key = f"livefeed:{settings.sport_id}:{settings.fallback_group_id}"

    if use_cache:
        cached = get_from_cache(cache_key)
        if cached is not None:
            logger.info(f"[LIVEFEED] Cache HIT para {cache_key}")
            return cached

    params = build_params()
    logger.info(f"[LIVEFEED] Fetch feed: {BASE_URL} params={params}")

    try:
        resp = requests.get(
            BASE_URL,
            params=params,
            headers=HEADERS,
            timeout=settings.live_feed_timeout_seconds,
        )
        resp.raise_for_status()
        data = resp.json()
    except requests.RequestException as e:
        logger.error(f"[LIVEFEED] Error al obtener el feed: {e}")
        raise LiveFeedError(f"Error al consultar el feed: {e}") from e
    except ValueError as e:
        logger.error(f"[LIVEFEED] Respuesta no JSON: {e}")
        raise LiveFeedError("El feed devolvió una respuesta que no es JSON.") from e

    if not isinstance(data, dict):
        raise LiveFeedError("Formato inesperado del feed (se esperaba un objeto JSON).")

    set_in_cache(cache_key, data, settings.live_feed_cache_ttl_seconds)
    return data


def feed_events(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    events = (payload or {}).get("Value")
    if not isinstance(events, list):
        return []
    return [ev for ev in events if isinstance(ev, dict)]

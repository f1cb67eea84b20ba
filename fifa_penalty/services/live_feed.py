# fifa_penalty/services/live_feed.py

import time
from typing import Any, Dict, List, NamedTuple, Optional

from fifa_penalty.config import settings
from fifa_penalty.core.errors import MatchNotFoundError
from fifa_penalty.core.logging import logger
from fifa_penalty.schemas.matches import (
    MatchDetailsResponse,
    MatchesResponse,
    MatchSummary,
    StructureResponse,
)
from fifa_penalty.services.livefeed_client import feed_events, fetch_live_feed
from fifa_penalty.services.markets import (
    event_league,
    extract_all_bets,
    implied_probabilities,
    simplify_event,
)
from fifa_penalty.services.prediction_engine import generate_prediction
from fifa_penalty.utils.formatting import normalize_text, safe_int, utc_now_iso

PENALTY_KEYWORDS = [
    "penalty",
    "penalties",
    "tir au but",
    "tirs au but",
    "shootout",
    "penaltis",
]

KEYWORD_MODE = "keyword-penalty"
FALLBACK_MODE = f"group-fallback-gr-{settings.fallback_group_id}"

# Textos de estado que indican partido en juego o terminado
IN_PLAY_MARKERS = (
    "mi-temps",
    "jeu termine",
    "match termine",
    "descanso",
    "en juego",
    "finalizado",
    "half time",
    "finished",
)

# Señales positivas de partido por empezar: código GS y textos del book
PRE_MATCH_STATUS_CODE = 128
PRE_MATCH_MARKERS = ("avant le debut", "debut dans")

_TEXT_FIELDS = ("L", "LE", "LR", "N", "O1", "O2", "TN", "SN")


class FeedSelection(NamedTuple):
    events: List[Dict[str, Any]]
    total_from_api: int
    total_sport: int
    total_penalty: int
    filter_mode: str


# ---------------------------------------------------------------------------
# FILTRO FIFA PENALTY
# ---------------------------------------------------------------------------

def event_text(event: Dict[str, Any]) -> str:
    return normalize_text(" ".join(str(event[f]) for f in _TEXT_FIELDS if event.get(f)))


def is_penalty_event(event: Dict[str, Any]) -> bool:
    text = event_text(event)
    return any(normalize_text(word) in text for word in PENALTY_KEYWORDS)


def select_penalty_events(payload: Dict[str, Any]) -> FeedSelection:
    """
    Eventos del deporte virtual configurado. Si ninguno contiene las palabras
    clave de penaltis se devuelve todo el deporte (modo fallback de grupo).
    """
    events = feed_events(payload)
    sport_events = [ev for ev in events if safe_int(ev.get("SI")) == settings.sport_id]
    penalty_only = [ev for ev in sport_events if is_penalty_event(ev)]

    if penalty_only:
        return FeedSelection(penalty_only, len(events), len(sport_events), len(penalty_only), KEYWORD_MODE)

    return FeedSelection(sport_events, len(events), len(sport_events), 0, FALLBACK_MODE)


def is_upcoming(match: MatchSummary, now: Optional[float] = None) -> bool:
    """
    Partido aún no empezado: inicio en el futuro, reloj a cero, ningún
    texto de juego / fin y una señal de previa (GS=128, "avant le début"
    o "début dans").
    """
    now = time.time() if now is None else now
    start = match.start_time_unix or 0
    if start <= now:
        return False
    if match.context.minute > 0:
        return False

    status = normalize_text(f"{match.status_text} {match.info_text}")
    if any(marker in status for marker in IN_PLAY_MARKERS):
        return False

    if match.status_code == PRE_MATCH_STATUS_CODE:
        return True
    return any(marker in status for marker in PRE_MATCH_MARKERS)


# ---------------------------------------------------------------------------
# LISTADO / DETALLE
# ---------------------------------------------------------------------------

def get_penalty_matches() -> MatchesResponse:
    payload = fetch_live_feed()
    selection = select_penalty_events(payload)

    logger.info(
        f"[LIVEFEED] {selection.total_from_api} eventos, {selection.total_sport} del deporte, "
        f"{selection.total_penalty} penalty (modo {selection.filter_mode})"
    )

    return MatchesResponse(
        source=settings.live_feed_url,
        fetched_at=utc_now_iso(),
        total_from_api=selection.total_from_api,
        total_sport=selection.total_sport,
        total_penalty=selection.total_penalty,
        filter_mode=selection.filter_mode,
        matches=[simplify_event(ev) for ev in selection.events],
    )


def build_match_details(event: Dict[str, Any]) -> MatchDetailsResponse:
    match = simplify_event(event)
    bets = extract_all_bets(event)

    return MatchDetailsResponse(
        source=settings.live_feed_url,
        match=match,
        betting_markets=bets,
        prediction=generate_prediction(match, bets),
        implied_probabilities=implied_probabilities(match.odds1x2),
    )


def find_event(payload: Dict[str, Any], match_id: str) -> Optional[Dict[str, Any]]:
    for ev in feed_events(payload):
        if str(ev.get("I")) == str(match_id):
            return ev
    return None


def get_match_details(match_id: str, payload: Optional[Dict[str, Any]] = None) -> MatchDetailsResponse:
    """
    Detalle + predicción de un partido. Se busca en todo el feed (no solo en
    los eventos penalty) para que un ticket viejo se pueda revalidar.
    """
    if payload is None:
        payload = fetch_live_feed()

    event = find_event(payload, match_id)
    if event is None:
        raise MatchNotFoundError(match_id)

    return build_match_details(event)


def list_leagues() -> List[str]:
    payload = fetch_live_feed()
    leagues = {event_league(ev) for ev in select_penalty_events(payload).events}
    return sorted(league for league in leagues if league)


# ---------------------------------------------------------------------------
# ESTRUCTURA DEL FEED (DEBUG)
# ---------------------------------------------------------------------------

def schema_of(value: Any, depth: int = 2) -> Dict[str, Any]:
    if value is None:
        return {"type": "null"}
    if isinstance(value, list):
        return {
            "type": "array",
            "length": len(value),
            "sample": schema_of(value[0], depth - 1) if value else None,
        }
    if not isinstance(value, dict):
        if isinstance(value, bool):
            return {"type": "boolean"}
        if isinstance(value, (int, float)):
            return {"type": "number"}
        return {"type": "string" if isinstance(value, str) else type(value).__name__}
    if depth <= 0:
        return {"type": "object"}

    keys = list(value.keys())
    return {
        "type": "object",
        "keys": keys,
        "props": {k: schema_of(value[k], depth - 1) for k in keys[:50]},
    }


def get_structure() -> StructureResponse:
    payload = fetch_live_feed()
    events = feed_events(payload)
    first_event = events[0] if events else None
    first_market = None
    if first_event and isinstance(first_event.get("E"), list) and first_event["E"]:
        first_market = first_event["E"][0]

    return StructureResponse(
        source=settings.live_feed_url,
        fetched_at=utc_now_iso(),
        top_level_keys=list(payload.keys()),
        notes={
            "listField": "Value",
            "eventId": "I",
            "teams": "O1/O2",
            "league": "L (variantes de idioma LE/LR)",
            "scoreBlock": "SC",
            "oneXTwoMarkets": "E con G=1, T=1|2|3, cuota en C",
        },
        shapes={
            "payload": schema_of(payload, 2),
            "firstEvent": schema_of(first_event, 2),
            "firstMarketE": schema_of(first_market, 2),
            "scoreSC": schema_of((first_event or {}).get("SC"), 2),
        },
    )

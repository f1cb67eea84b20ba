# fifa_penalty/api/routes_matches.py

from fastapi import APIRouter

from fifa_penalty.core.errors import ApiError, LiveFeedError, MatchNotFoundError
from fifa_penalty.core.logging import logger
from fifa_penalty.schemas.matches import MatchDetailsResponse, MatchesResponse
from fifa_penalty.services.live_feed import get_match_details, get_penalty_matches, list_leagues

router = APIRouter(tags=["matches"])


@router.get("/matches", response_model=MatchesResponse)
def matches():
    """
    Partidos FIFA Penalty del feed actual (o todo el deporte virtual si el
    filtro por palabras clave no encuentra nada).
    """
    try:
        return get_penalty_matches()
    except LiveFeedError as e:
        raise ApiError(500, "No se pudieron cargar los partidos.", str(e))


@router.get("/matches/{match_id}/details", response_model=MatchDetailsResponse)
def match_details(match_id: str):
    try:
        return get_match_details(match_id)
    except MatchNotFoundError as e:
        raise ApiError(404, "Partido no encontrado.", str(e))
    except LiveFeedError as e:
        logger.error(f"[LIVEFEED] Detalle {match_id}: {e}")
        raise ApiError(500, "No se pudo cargar el detalle del partido.", str(e))


@router.get("/leagues")
def leagues():
    try:
        return {"success": True, "leagues": list_leagues()}
    except LiveFeedError as e:
        raise ApiError(500, "No se pudieron cargar las ligas.", str(e))

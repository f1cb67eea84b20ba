# fifa_penalty/api/routes_health.py

from fastapi import APIRouter

from fifa_penalty.config import settings
from fifa_penalty.core.errors import ApiError, LiveFeedError
from fifa_penalty.schemas.matches import StructureResponse
from fifa_penalty.services import llm_client, telegram_client
from fifa_penalty.services.live_feed import get_structure
from fifa_penalty.utils.formatting import utc_now_iso

router = APIRouter(tags=["health"])


@router.get("/health")
async def health():
    return {
        "success": True,
        "status": "ok",
        "app": settings.app_name,
        "environment": settings.environment,
        "time": utc_now_iso(),
        "llmProvider": llm_client.active_provider() or "local",
        "telegramConfigured": telegram_client.is_configured(),
    }


@router.get("/structure", response_model=StructureResponse)
def feed_structure():
    """
    Claves de primer nivel y forma (profundidad 2) del payload del feed,
    para depurar cambios de formato del book.
    """
    try:
        return get_structure()
    except LiveFeedError as e:
        raise ApiError(500, "No se pudo leer la estructura del feed.", str(e))

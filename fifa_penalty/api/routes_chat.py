# fifa_penalty/api/routes_chat.py

from fastapi import APIRouter, Request

from fifa_penalty.config import settings
from fifa_penalty.core.errors import ApiError
from fifa_penalty.core.logging import logger
from fifa_penalty.core.rate_limit import client_key
from fifa_penalty.schemas.chat import ChatRequest, ChatResponse
from fifa_penalty.services.chat_assistant import answer_chat

router = APIRouter(tags=["chat"])


@router.post("/chat", response_model=ChatResponse)
def chat(payload: ChatRequest, request: Request):
    key = client_key(request)
    if not request.app.state.chat_limiter.allow(key):
        logger.warning(f"[CHAT] Límite de peticiones alcanzado para {key}")
        raise ApiError(
            429,
            "Demasiadas peticiones al chat.",
            f"Máximo {settings.chat_rate_limit_requests} mensajes cada "
            f"{settings.chat_rate_limit_window_seconds} s.",
        )

    if not payload.message.strip():
        raise ApiError(400, "Mensaje vacío.")

    return answer_chat(payload)

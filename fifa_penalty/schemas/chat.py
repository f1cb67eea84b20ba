# fifa_penalty/schemas/chat.py

from typing import Any, Dict, List

from pydantic import Field

from fifa_penalty.schemas.common import ApiEnvelope, CamelModel


class ChatTurn(CamelModel):
    role: str  # "user" / "ai"
    text: str


class ChatRequest(CamelModel):
    message: str
    context: Dict[str, Any] = Field(default_factory=dict)
    # Historial guardado por el navegador (localStorage); el servidor no guarda nada.
    history: List[ChatTurn] = Field(default_factory=list)


class ChatResponse(ApiEnvelope):
    answer: str
    actions: List[Dict[str, Any]] = Field(default_factory=list)
    provider: str  # "anthropic" / "openai" / "local"

# fifa_penalty/services/chat_assistant.py

import re
from typing import Any, Dict, List, Optional

from fifa_penalty.core.logging import logger
from fifa_penalty.schemas.chat import ChatRequest, ChatResponse, ChatTurn
from fifa_penalty.services import llm_client
from fifa_penalty.services.coupon_engine import RISK_PROFILES
from fifa_penalty.utils.formatting import normalize_text

MAX_HISTORY_TURNS = 12

SYSTEM_PROMPT = (
    "Eres el asistente de un panel de pronósticos de FIFA Penalty (fútbol virtual). "
    "Respondes en español, breve y concreto, sobre partidos, cuotas, cupones y gestión "
    "del riesgo. Los pronósticos son heurísticos: nunca prometas ganancias y recuerda "
    "apostar con responsabilidad."
)

RISK_WORDS = {
    "safe": ("seguro", "safe", "prudente", "securise"),
    "aggressive": ("agresivo", "aggressive", "arriesgado", "agressif"),
    "balanced": ("equilibrado", "balanced", "normal", "equilibre"),
}

_SIZE_RE = re.compile(r"\b(\d{1,2})\b")


def _detect_risk(text: str) -> Optional[str]:
    for profile, words in RISK_WORDS.items():
        if any(w in text for w in words):
            return profile
    return None


def _detect_size(text: str) -> Optional[int]:
    m = _SIZE_RE.search(text)
    if not m:
        return None
    size = int(m.group(1))
    return size if 1 <= size <= 12 else None


def detect_actions(message: str, context: Dict[str, Any]) -> List[Dict[str, Any]]:
    """Acciones de interfaz que el widget aplica tras la respuesta."""
    text = normalize_text(message)
    actions: List[Dict[str, Any]] = []

    if any(w in text for w in ("borra", "limpia", "clear", "efface")) and "chat" in text:
        actions.append({"type": "clear_chat"})
        return actions

    if any(w in text for w in ("cupon", "coupon", "ticket", "combinada")):
        form: Dict[str, Any] = {"type": "set_coupon_form"}
        size = _detect_size(text)
        risk = _detect_risk(text)
        if size:
            form["size"] = size
        if risk:
            form["risk"] = risk
        if context.get("league"):
            form["league"] = context["league"]
        if not str(context.get("page") or "").startswith("/coupon"):
            actions.append({"type": "open_page", "target": "/coupon"})
        actions.append(form)
    elif any(w in text for w in ("guia", "guide", "manual", "como funciona")):
        actions.append({"type": "open_page", "target": "/guide"})
    elif any(w in text for w in ("partidos", "matchs", "inicio", "home")):
        actions.append({"type": "open_page", "target": "/"})

    return actions


def local_answer(message: str, context: Dict[str, Any]) -> str:
    """Respuesta sin LLM, por palabras clave."""
    text = normalize_text(message)

    if any(w in text for w in ("borra", "limpia", "clear", "efface")) and "chat" in text:
        return "Historial borrado. Listo para una nueva sesión."

    if any(w in text for w in ("cupon", "coupon", "ticket", "combinada")):
        size = _detect_size(text)
        risk = _detect_risk(text) or "balanced"
        cfg = RISK_PROFILES[risk]
        return (
            f"Preparo el formulario de cupón: {size or 3} partidos, perfil {risk} "
            f"(cuotas {cfg.min_odd}-{cfg.max_odd}, confianza mínima {cfg.min_confidence:.0f}). "
            "Pulsa «Generar» y después «Validar» antes de apostar."
        )

    if any(w in text for w in ("riesgo", "risk", "perfil", "seguro", "agresivo")):
        return (
            "Perfiles: seguro (cuotas 1.2-1.7, confianza >= 62), equilibrado (1.3-2.25, >= 50) "
            "y agresivo (1.55-3.2, >= 45). Cuantas más selecciones, más sube la cuota combinada "
            "y más baja la probabilidad de acierto."
        )

    match_id = context.get("matchId")
    if match_id or any(w in text for w in ("partido", "match", "pronostico", "cuota")):
        if match_id:
            return (
                f"En la página del partido {match_id} tienes la decisión del maestro, "
                "el top 3 por ganancia potencial y todos los mercados con su cuota."
            )
        return (
            "Abre un partido desde la lista para ver la decisión del maestro (consenso de 5 bots), "
            "el análisis avanzado y las probabilidades implícitas 1X2."
        )

    return (
        "Puedo ayudarte con partidos, cuotas, perfiles de riesgo y cupones. "
        "Prueba: «cupón de 3 partidos seguro» o «explícame los perfiles de riesgo»."
    )


def _llm_messages(history: List[ChatTurn], message: str) -> List[Dict[str, str]]:
    """
    Historial en formato user/assistant alternado, empezando por user y
    terminando con el mensaje actual.
    """
    messages: List[Dict[str, str]] = []
    for turn in history[-MAX_HISTORY_TURNS:]:
        role = "user" if turn.role == "user" else "assistant"
        if not messages and role == "assistant":
            continue
        if messages and messages[-1]["role"] == role:
            messages[-1]["content"] += "\n" + turn.text
        else:
            messages.append({"role": role, "content": turn.text})

    if messages and messages[-1]["role"] == "user":
        messages[-1]["content"] += "\n" + message
    else:
        messages.append({"role": "user", "content": message})
    return messages


def _system_with_context(context: Dict[str, Any]) -> str:
    if not context:
        return SYSTEM_PROMPT
    parts = [f"{k}={v}" for k, v in context.items() if k in ("page", "matchId", "league") and v]
    if not parts:
        return SYSTEM_PROMPT
    return f"{SYSTEM_PROMPT}\nContexto de la página: {', '.join(parts)}."


def answer_chat(request: ChatRequest) -> ChatResponse:
    message = request.message.strip()
    actions = detect_actions(message, request.context)

    answer = llm_client.complete(
        _system_with_context(request.context),
        _llm_messages(request.history, message),
    )
    if answer:
        return ChatResponse(answer=answer.strip(), actions=actions, provider=llm_client.active_provider() or "llm")

    logger.info("[CHAT] Sin LLM disponible, respuesta local")
    return ChatResponse(answer=local_answer(message, request.context), actions=actions, provider="local")

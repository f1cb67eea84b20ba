# fifa_penalty/services/llm_client.py

from typing import Dict, List, Optional

import requests

from fifa_penalty.config import settings
from fifa_penalty.core.logging import logger

ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
OPENAI_URL = "https://api.openai.com/v1/chat/completions"


def active_provider() -> Optional[str]:
    """
    Proveedor con clave disponible. Si LLM_PROVIDER no está fijado se usa el
    primero que tenga clave (anthropic, luego openai).
    """
    provider = (settings.llm_provider or "").strip().lower()
    if provider == "anthropic":
        return "anthropic" if settings.anthropic_api_key else None
    if provider == "openai":
        return "openai" if settings.openai_api_key else None
    if provider:
        return None
    if settings.anthropic_api_key:
        return "anthropic"
    if settings.openai_api_key:
        return "openai"
    return None


def _call_anthropic(system: str, messages: List[Dict[str, str]]) -> Optional[str]:
    headers = {
        "x-api-key": settings.anthropic_api_key,
        "anthropic-version": ANTHROPIC_VERSION,
        "Content-Type": "application/json",
    }
    payload = {
        "model": settings.anthropic_model,
        "max_tokens": settings.llm_max_tokens,
        "system": system,
        "messages": messages,
    }

    resp = requests.post(ANTHROPIC_URL, json=payload, headers=headers, timeout=settings.llm_timeout_seconds)
    resp.raise_for_status()
    data = resp.json()

    for block in data.get("content") or []:
        if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str):
            return block["text"]
    logger.warning("[CHAT] Respuesta de Anthropic sin bloque de texto")
    return None


def _call_openai(system: str, messages: List[Dict[str, str]]) -> Optional[str]:
    headers = {
        "Authorization": f"Bearer {settings.openai_api_key}",
        "Content-Type": "application/json",
    }
    payload = {
        "model": settings.openai_model,
        "max_tokens": settings.llm_max_tokens,
        "messages": [{"role": "system", "content": system}, *messages],
    }

    resp = requests.post(OPENAI_URL, json=payload, headers=headers, timeout=settings.llm_timeout_seconds)
    resp.raise_for_status()
    data = resp.json()

    choices = data.get("choices") or []
    if isinstance(choices, list) and choices and isinstance(choices[0], dict):
        message = choices[0].get("message") or {}
        content = message.get("content") if isinstance(message, dict) else None
        if isinstance(content, str) and content:
            return content
    logger.warning("[CHAT] Respuesta de OpenAI sin contenido")
    return None


def complete(system: str, messages: List[Dict[str, str]]) -> Optional[str]:
    """
    Pide una respuesta al proveedor configurado. Devuelve None si no hay
    proveedor o si la llamada falla; quien llama decide el fallback.
    """
    provider = active_provider()
    if provider is None:
        return None

    try:
        if provider == "anthropic":
            return _call_anthropic(system, messages)
        return _call_openai(system, messages)
    except requests.Timeout:
        logger.error(f"[CHAT] Timeout de {provider} tras {settings.llm_timeout_seconds}s")
        return None
    except requests.RequestException as e:
        logger.error(f"[CHAT] Error HTTP con {provider}: {e}")
        return None
    except ValueError as e:
        logger.error(f"[CHAT] Respuesta no JSON de {provider}: {e}")
        return None
    except (KeyError, TypeError, AttributeError) as e:
        logger.error(f"[CHAT] Respuesta con formato inesperado de {provider}: {e!r}")
        return None

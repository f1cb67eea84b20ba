# fifa_penalty/services/telegram_client.py

from typing import Any, Dict, List, Optional, Tuple

import requests

from fifa_penalty.config import settings
from fifa_penalty.core.errors import TelegramError
from fifa_penalty.core.logging import logger

API_BASE = "https://api.telegram.org"
MAX_MESSAGE_LEN = 4096


def is_configured() -> bool:
    return bool(settings.telegram_bot_token and settings.telegram_chat_id)


def _method_url(method: str) -> str:
    return f"{API_BASE}/bot{settings.telegram_bot_token}/{method}"


def _call(
    method: str,
    data: Dict[str, Any],
    files: Optional[Dict[str, Tuple[str, bytes, str]]] = None,
) -> Dict[str, Any]:
    if not is_configured():
        raise TelegramError("Telegram no está configurado (TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID).")

    payload = {"chat_id": settings.telegram_chat_id, **data}
    try:
        if files:
            resp = requests.post(
                _method_url(method),
                data=payload,
                files=files,
                timeout=settings.telegram_timeout_seconds,
            )
        else:
            resp = requests.post(
                _method_url(method),
                json=payload,
                timeout=settings.telegram_timeout_seconds,
            )
        body = resp.json()
    except requests.RequestException as e:
        logger.error(f"[TELEGRAM] Error de red en {method}: {e}")
        raise TelegramError(f"Error de red con Telegram: {e}") from e
    except ValueError as e:
        raise TelegramError(f"Respuesta no JSON de Telegram (HTTP {resp.status_code}).") from e

    if not resp.ok or not body.get("ok"):
        description = body.get("description") or f"HTTP {resp.status_code}"
        logger.error(f"[TELEGRAM] {method} falló: {description}")
        raise TelegramError(f"Telegram rechazó {method}: {description}")

    logger.info(f"[TELEGRAM] {method} OK")
    return body


def split_message(text: str, limit: int = MAX_MESSAGE_LEN) -> List[str]:
    """Trocea en saltos de línea para no pasar el límite de la Bot API."""
    chunks: List[str] = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        chunks.append(text[:cut])
        text = text[cut:].lstrip("\n")
    if text:
        chunks.append(text)
    return chunks


def send_message(text: str) -> int:
    """Envía el texto (HTML) en uno o varios mensajes. Devuelve cuántos."""
    chunks = split_message(text)
    for chunk in chunks:
        _call(
            "sendMessage",
            {"text": chunk, "parse_mode": "HTML", "disable_web_page_preview": True},
        )
    return len(chunks)


def send_photo(content: bytes, filename: str, caption: Optional[str] = None) -> None:
    data = {"caption": caption} if caption else {}
    _call("sendPhoto", data, files={"photo": (filename, content, "image/png")})


def send_document(content: bytes, filename: str, mime_type: str, caption: Optional[str] = None) -> None:
    data = {"caption": caption} if caption else {}
    _call("sendDocument", data, files={"document": (filename, content, mime_type)})

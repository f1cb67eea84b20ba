# fifa_penalty/core/errors.py

from typing import Optional


class LiveFeedError(Exception):
    """Fallo de red, HTTP o JSON al consultar el feed del book."""


class MatchNotFoundError(Exception):
    """El partido pedido ya no aparece en el feed actual."""

    def __init__(self, match_id: str):
        super().__init__(f"Partido {match_id} no encontrado en el feed actual.")
        self.match_id = match_id


class InvalidCouponError(Exception):
    """Cupón vacío o sin selecciones utilizables."""


class TelegramError(Exception):
    """Telegram no configurado o error de la Bot API."""


class ApiError(Exception):
    """
    Error de ruta que se devuelve como:
        {"success": false, "message": ..., "error": ...}
    """

    def __init__(self, status_code: int, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.error = error or message

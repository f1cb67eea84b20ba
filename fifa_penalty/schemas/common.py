# fifa_penalty/schemas/common.py

from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Atributos snake_case en Python, claves camelCase en el JSON
    (matchId, combinedOdd, riskProfile...). Acepta ambas al parsear.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ApiEnvelope(CamelModel):
    success: bool = True
    source: Optional[str] = None


class ErrorResponse(CamelModel):
    success: bool = False
    message: str
    error: Optional[str] = None

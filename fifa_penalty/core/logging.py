# fifa_penalty/core/logging.py

import logging

from fifa_penalty.config import settings

logger = logging.getLogger("fifa_penalty")
logger.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

# Evitar agregar múltiples handlers si se importa varias veces
if not logger.handlers:
    ch = logging.StreamHandler()
    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )
    ch.setFormatter(formatter)
    logger.addHandler(ch)

# fifa_penalty/__main__.py

import socket

import uvicorn

from fifa_penalty.config import settings
from fifa_penalty.core.logging import logger


def port_is_free(host: str, port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


def find_port(host: str, start: int, retries: int) -> int:
    """Primer puerto libre a partir de `start` (start, start+1, ...)."""
    for port in range(start, start + retries + 1):
        if port_is_free(host, port):
            return port
        logger.warning(f"Puerto {port} ocupado, probando {port + 1}...")
    raise RuntimeError(f"Ningún puerto libre entre {start} y {start + retries}.")


def main() -> None:
    port = find_port(settings.host, settings.port, settings.port_retries)
    logger.info(f"Servidor en http://{settings.host}:{port}")
    uvicorn.run("fifa_penalty.main:app", host=settings.host, port=port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()

# fifa_penalty/main.py

from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from fifa_penalty.api.routes_chat import router as chat_router
from fifa_penalty.api.routes_coupon import router as coupon_router
from fifa_penalty.api.routes_health import router as health_router
from fifa_penalty.api.routes_matches import router as matches_router
from fifa_penalty.api.routes_pages import render_index, router as pages_router
from fifa_penalty.api.routes_patterns import router as patterns_router
from fifa_penalty.config import settings
from fifa_penalty.core.errors import ApiError
from fifa_penalty.core.logging import logger
from fifa_penalty.core.rate_limit import RateLimiter
from fifa_penalty.schemas.common import ErrorResponse

STATIC_DIR = Path(__file__).resolve().parent / "static"


app = FastAPI(
    title="FIFA Penalty API",
    description="Pronósticos heurísticos y cupones para partidos virtuales FIFA Penalty.",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.state.chat_limiter = RateLimiter(
    settings.chat_rate_limit_requests,
    settings.chat_rate_limit_window_seconds,
)


# ---------------------------------------------------------------------------
# ERRORES -> {"success": false, "message", "error"}
# ---------------------------------------------------------------------------

def error_response(status_code: int, message: str, error: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(message=message, error=error or message)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True))


@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError):
    return error_response(exc.status_code, exc.message, exc.error)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(p) for p in first.get("loc", []))
    return error_response(422, "Petición inválida.", f"{location}: {first.get('msg', 'inválido')}")


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Error no controlado en {request.url.path}: {exc}")
    return error_response(500, "Error interno del servidor.", str(exc))


# ---------------------------------------------------------------------------
# RUTAS
# ---------------------------------------------------------------------------

app.include_router(health_router, prefix="/api")
app.include_router(matches_router, prefix="/api")
app.include_router(coupon_router, prefix="/api")
app.include_router(chat_router, prefix="/api")
app.include_router(patterns_router, prefix="/api")


API_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


@app.api_route("/api", methods=API_METHODS, include_in_schema=False)
@app.api_route("/api/{path:path}", methods=API_METHODS, include_in_schema=False)
async def api_not_found(request: Request):
    raise ApiError(404, "Ruta API no encontrada.", request.url.path)


app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
app.include_router(pages_router)


@app.get("/{path:path}", include_in_schema=False)
def spa_fallback(request: Request, path: str):
    return render_index(request)

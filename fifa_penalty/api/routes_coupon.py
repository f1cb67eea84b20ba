# fifa_penalty/api/routes_coupon.py

from typing import Optional

from fastapi import APIRouter, Query, Response

from fifa_penalty.core.errors import ApiError, InvalidCouponError, LiveFeedError, TelegramError
from fifa_penalty.core.logging import logger
from fifa_penalty.schemas.coupon import (
    CouponExportRequest,
    CouponResponse,
    CouponValidateRequest,
    CouponValidationResponse,
    TelegramSendResponse,
)
from fifa_penalty.services import telegram_client
from fifa_penalty.services.coupon_engine import build_coupon, validate_coupon
from fifa_penalty.services.coupon_export import (
    build_coupon_pdf,
    build_coupon_png,
    build_coupon_svg,
    build_coupon_text,
    export_filename,
)

router = APIRouter(tags=["coupon"])


def _require_picks(payload: CouponExportRequest) -> None:
    if not payload.coupon:
        raise ApiError(400, "El cupón está vacío.", "Genera un cupón antes de exportarlo.")


# ---------------------------------------------------------------------------
# GENERAR / VALIDAR
# ---------------------------------------------------------------------------

@router.get("/coupon", response_model=CouponResponse)
def coupon(
    size: Optional[int] = Query(None, description="Número de partidos (1-12)"),
    league: str = Query("all"),
    risk: str = Query("balanced", description="safe / balanced / aggressive"),
):
    try:
        return build_coupon(size=size, league=league, risk=risk)
    except LiveFeedError as e:
        raise ApiError(500, "No se pudo generar el cupón.", str(e))


@router.post("/coupon/validate", response_model=CouponValidationResponse)
def coupon_validate(payload: CouponValidateRequest):
    """
    Revalida cada selección contra el feed actual (partido empezado, mercado
    desaparecido, deriva de cuota, confianza baja) y propone reemplazos.
    """
    try:
        return validate_coupon(
            payload.selections,
            drift_threshold=payload.drift_threshold_percent,
            risk=payload.risk_profile,
        )
    except InvalidCouponError as e:
        raise ApiError(400, "Ticket inválido.", str(e))
    except LiveFeedError as e:
        raise ApiError(500, "No se pudo validar el ticket.", str(e))


# ---------------------------------------------------------------------------
# EXPORTAR
# ---------------------------------------------------------------------------

@router.post("/coupon/pdf")
@router.post("/pdf/coupon")
@router.post("/download/coupon")
def coupon_pdf(payload: CouponExportRequest):
    _require_picks(payload)
    content = build_coupon_pdf(payload.coupon, payload.summary, payload.risk_profile)
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{export_filename("pdf")}"'},
    )


@router.post("/coupon/image")
def coupon_image(payload: CouponExportRequest):
    _require_picks(payload)
    fmt = (payload.format or "png").lower()

    if fmt == "svg":
        return Response(
            content=build_coupon_svg(payload.coupon, payload.summary, payload.risk_profile),
            media_type="image/svg+xml",
            headers={"Content-Disposition": f'attachment; filename="{export_filename("svg")}"'},
        )
    if fmt != "png":
        raise ApiError(400, "Formato de imagen no soportado.", f"Formato '{fmt}': usa png o svg.")

    return Response(
        content=build_coupon_png(payload.coupon, payload.summary, payload.risk_profile),
        media_type="image/png",
        headers={"Content-Disposition": f'attachment; filename="{export_filename("png")}"'},
    )


@router.post("/coupon/send-telegram", response_model=TelegramSendResponse)
def coupon_send_telegram(payload: CouponExportRequest):
    _require_picks(payload)
    sent = []

    try:
        text = build_coupon_text(payload.coupon, payload.summary, payload.risk_profile)
        telegram_client.send_message(text)
        sent.append("text")

        if payload.send_image:
            if (payload.image_format or "png").lower() == "svg":
                svg = build_coupon_svg(payload.coupon, payload.summary, payload.risk_profile)
                telegram_client.send_document(svg.encode("utf-8"), export_filename("svg"), "image/svg+xml")
            else:
                png = build_coupon_png(payload.coupon, payload.summary, payload.risk_profile)
                telegram_client.send_photo(png, export_filename("png"))
            sent.append("image")

        if payload.send_pdf:
            pdf = build_coupon_pdf(payload.coupon, payload.summary, payload.risk_profile)
            telegram_client.send_document(pdf, export_filename("pdf"), "application/pdf")
            sent.append("pdf")
    except TelegramError as e:
        logger.error(f"[TELEGRAM] Envío de cupón fallido tras {sent}: {e}")
        raise ApiError(500, "No se pudo enviar el cupón a Telegram.", str(e))

    return TelegramSendResponse(message="Cupón enviado a Telegram.", sent=sent)

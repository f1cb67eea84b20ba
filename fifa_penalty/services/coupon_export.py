# fifa_penalty/services/coupon_export.py

import io
from datetime import datetime, timezone
from html import escape
from typing import List, Optional

from PIL import Image, ImageDraw, ImageFont
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from fifa_penalty.schemas.coupon import CouponPick, CouponSummary
from fifa_penalty.services.coupon_engine import summarize_coupon
from fifa_penalty.utils.formatting import format_kickoff, format_odd

TITLE = "FIFA PENALTY - CUPÓN"
DISCLAIMER = "Apuesta con responsabilidad. Ningún pronóstico está garantizado."

RISK_LABELS = {
    "safe": "Seguro",
    "balanced": "Equilibrado",
    "aggressive": "Agresivo",
}

# Paleta compartida por SVG / PNG / PDF
BG = "#0f172a"
CARD = "#1e293b"
ACCENT = "#22c55e"
TEXT = "#e2e8f0"
MUTED = "#94a3b8"


def risk_label(profile: Optional[str]) -> str:
    return RISK_LABELS.get((profile or "").lower(), profile or "-")


def _summary(picks: List[CouponPick], summary: Optional[CouponSummary]) -> CouponSummary:
    return summary if summary is not None else summarize_coupon(picks)


def export_filename(extension: str) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S")
    return f"cupon-fifa-penalty-{stamp}.{extension}"


# ---------------------------------------------------------------------------
# TEXTO (Telegram, parse_mode=HTML)
# ---------------------------------------------------------------------------

def build_coupon_text(
    picks: List[CouponPick],
    summary: Optional[CouponSummary] = None,
    risk_profile: Optional[str] = None,
) -> str:
    summary = _summary(picks, summary)
    lines = [
        f"<b>{escape(TITLE)}</b>",
        f"Perfil: {escape(risk_label(risk_profile))}",
        "",
    ]

    for i, p in enumerate(picks, start=1):
        lines.append(f"<b>{i}. {escape(p.team_home)} vs {escape(p.team_away)}</b>")
        lines.append(f"   {escape(p.league)} | {format_kickoff(p.start_time_unix)} UTC")
        lines.append(f"   {escape(p.bet)} @ {format_odd(p.odd)} (conf. {p.confidence:.1f}%)")

    lines.append("")
    lines.append(f"Selecciones: {summary.total_selections}")
    lines.append(f"Cuota combinada: <b>{format_odd(summary.combined_odd)}</b>")
    lines.append(f"Confianza media: {summary.average_confidence:.1f}%")
    lines.append("")
    lines.append(f"<i>{escape(DISCLAIMER)}</i>")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# IMAGEN (SVG / PNG)
# ---------------------------------------------------------------------------

ROW_HEIGHT = 64
HEADER_HEIGHT = 90
FOOTER_HEIGHT = 90
WIDTH = 900


def _image_height(picks: List[CouponPick]) -> int:
    return HEADER_HEIGHT + max(len(picks), 1) * ROW_HEIGHT + FOOTER_HEIGHT


def build_coupon_svg(
    picks: List[CouponPick],
    summary: Optional[CouponSummary] = None,
    risk_profile: Optional[str] = None,
) -> str:
    summary = _summary(picks, summary)
    height = _image_height(picks)

    parts = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{WIDTH}" height="{height}" '
        f'viewBox="0 0 {WIDTH} {height}">',
        f'<rect width="100%" height="100%" fill="{BG}"/>',
        f'<text x="30" y="45" fill="{ACCENT}" font-family="Arial" font-size="26" '
        f'font-weight="bold">{escape(TITLE)}</text>',
        f'<text x="30" y="72" fill="{MUTED}" font-family="Arial" font-size="15">'
        f"Perfil: {escape(risk_label(risk_profile))}</text>",
    ]

    y = HEADER_HEIGHT
    if not picks:
        parts.append(
            f'<text x="30" y="{y + 38}" fill="{TEXT}" font-family="Arial" font-size="16">'
            f"Cupón vacío</text>"
        )

    for i, p in enumerate(picks, start=1):
        parts.append(f'<rect x="20" y="{y + 6}" width="{WIDTH - 40}" height="{ROW_HEIGHT - 10}" rx="10" fill="{CARD}"/>')
        parts.append(
            f'<text x="36" y="{y + 30}" fill="{TEXT}" font-family="Arial" font-size="16" font-weight="bold">'
            f"{i}. {escape(p.team_home)} vs {escape(p.team_away)}</text>"
        )
        parts.append(
            f'<text x="36" y="{y + 50}" fill="{MUTED}" font-family="Arial" font-size="13">'
            f"{escape(p.bet)} | {escape(p.league)}</text>"
        )
        parts.append(
            f'<text x="{WIDTH - 40}" y="{y + 40}" fill="{ACCENT}" font-family="Arial" font-size="20" '
            f'font-weight="bold" text-anchor="end">{format_odd(p.odd)}</text>'
        )
        y += ROW_HEIGHT

    parts.append(
        f'<text x="30" y="{y + 40}" fill="{TEXT}" font-family="Arial" font-size="18" font-weight="bold">'
        f"Cuota combinada: {format_odd(summary.combined_odd)} | "
        f"Confianza media: {summary.average_confidence:.1f}%</text>"
    )
    parts.append(
        f'<text x="30" y="{y + 68}" fill="{MUTED}" font-family="Arial" font-size="12">{escape(DISCLAIMER)}</text>'
    )
    parts.append("</svg>")
    return "\n".join(parts)


def build_coupon_png(
    picks: List[CouponPick],
    summary: Optional[CouponSummary] = None,
    risk_profile: Optional[str] = None,
) -> bytes:
    """Misma tarjeta que el SVG, dibujada con Pillow."""
    summary = _summary(picks, summary)
    height = _image_height(picks)

    img = Image.new("RGB", (WIDTH, height), BG)
    draw = ImageDraw.Draw(img)
    font = ImageFont.load_default()

    draw.text((30, 25), TITLE, fill=ACCENT, font=font)
    draw.text((30, 55), f"Perfil: {risk_label(risk_profile)}", fill=MUTED, font=font)

    y = HEADER_HEIGHT
    if not picks:
        draw.text((30, y + 25), "Cupón vacío", fill=TEXT, font=font)

    for i, p in enumerate(picks, start=1):
        draw.rounded_rectangle((20, y + 6, WIDTH - 20, y + ROW_HEIGHT - 4), radius=10, fill=CARD)
        draw.text((36, y + 16), f"{i}. {p.team_home} vs {p.team_away}", fill=TEXT, font=font)
        draw.text((36, y + 38), f"{p.bet} | {p.league}", fill=MUTED, font=font)
        draw.text((WIDTH - 120, y + 26), format_odd(p.odd), fill=ACCENT, font=font)
        y += ROW_HEIGHT

    draw.text(
        (30, y + 25),
        f"Cuota combinada: {format_odd(summary.combined_odd)} | "
        f"Confianza media: {summary.average_confidence:.1f}%",
        fill=TEXT,
        font=font,
    )
    draw.text((30, y + 55), DISCLAIMER, fill=MUTED, font=font)

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


# ---------------------------------------------------------------------------
# PDF (reportlab)
# ---------------------------------------------------------------------------

def build_coupon_pdf(
    picks: List[CouponPick],
    summary: Optional[CouponSummary] = None,
    risk_profile: Optional[str] = None,
) -> bytes:
    summary = _summary(picks, summary)

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        "CouponTitle",
        parent=styles["Heading1"],
        fontSize=20,
        alignment=TA_CENTER,
        textColor=colors.HexColor(BG),
    )
    subtitle_style = ParagraphStyle(
        "CouponSubtitle",
        parent=styles["Normal"],
        fontSize=10,
        alignment=TA_CENTER,
        textColor=colors.HexColor("#334155"),
    )
    cell_style = ParagraphStyle(
        "Cell",
        parent=styles["BodyText"],
        fontSize=9,
        leading=11,
    )

    buf = io.BytesIO()
    doc = SimpleDocTemplate(
        buf,
        pagesize=A4,
        leftMargin=0.5 * inch,
        rightMargin=0.5 * inch,
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title=TITLE,
    )

    generated = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M UTC")
    elements = [
        Paragraph(escape(TITLE), title_style),
        Paragraph(f"Generado: {generated} | Perfil: {escape(risk_label(risk_profile))}", subtitle_style),
        Spacer(1, 14),
    ]

    rows = [["#", "Partido", "Liga", "Hora", "Apuesta", "Cuota", "Conf."]]
    for i, p in enumerate(picks, start=1):
        rows.append([
            str(i),
            Paragraph(f"{escape(p.team_home)} vs {escape(p.team_away)}", cell_style),
            Paragraph(escape(p.league), cell_style),
            format_kickoff(p.start_time_unix),
            Paragraph(escape(p.bet), cell_style),
            format_odd(p.odd),
            f"{p.confidence:.1f}%",
        ])

    table = Table(
        rows,
        colWidths=[0.3 * inch, 2.0 * inch, 1.5 * inch, 0.6 * inch, 1.8 * inch, 0.6 * inch, 0.6 * inch],
        repeatRows=1,
    )
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(BG)),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#cbd5e1")),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f1f5f9")]),
    ]))
    elements.append(table)
    elements.append(Spacer(1, 14))

    elements.append(Paragraph(
        f"<b>Selecciones:</b> {summary.total_selections} &nbsp; "
        f"<b>Cuota combinada:</b> {format_odd(summary.combined_odd)} &nbsp; "
        f"<b>Confianza media:</b> {summary.average_confidence:.1f}%",
        styles["Normal"],
    ))
    elements.append(Spacer(1, 10))
    elements.append(Paragraph(f"<i>{escape(DISCLAIMER)}</i>", subtitle_style))

    doc.build(elements)
    return buf.getvalue()

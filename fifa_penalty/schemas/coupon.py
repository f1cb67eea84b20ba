# fifa_penalty/schemas/coupon.py

from typing import List, Optional

from pydantic import Field

from fifa_penalty.schemas.common import ApiEnvelope, CamelModel


class RiskProfile(CamelModel):
    name: str
    min_odd: float
    max_odd: float
    min_confidence: float
    slope: float
    anchor: float


class CouponOption(CamelModel):
    bet: str
    odd: float
    confidence: float
    source: str  # "MAESTRO", "TOP3", "FALLBACK"


class CouponPick(CamelModel):
    match_id: str
    team_home: str = "?"
    team_away: str = "?"
    league: str = ""
    start_time_unix: Optional[int] = None
    bet: str
    odd: float
    confidence: float = 0.0
    source: Optional[str] = None
    safety_score: Optional[float] = None


class CouponSummary(CamelModel):
    total_selections: int = 0
    combined_odd: Optional[float] = None
    average_confidence: float = 0.0


class CouponResponse(ApiEnvelope):
    generated_at: str
    requested_matches: int
    available_candidates: int
    league_filter: str
    risk_profile: str
    coupon: List[CouponPick]
    summary: CouponSummary
    warning: str


# ---------------------------------------------------------------------------
# VALIDACIÓN DE TICKET
# ---------------------------------------------------------------------------

class SelectionIn(CamelModel):
    match_id: str
    bet: str = ""
    odd: Optional[float] = None


class CouponValidateRequest(CamelModel):
    selections: List[SelectionIn] = Field(default_factory=list)
    drift_threshold_percent: float = 6.0
    risk_profile: str = "balanced"


class BetSnapshot(CamelModel):
    bet: Optional[str] = None
    odd: Optional[float] = None


class Recommendation(CamelModel):
    bet: str
    odd: float
    confidence: float
    source: str


class ValidatedSelection(CamelModel):
    match_id: str
    status: str  # "ok" / "replace" / "invalid"
    reason_codes: List[str] = Field(default_factory=list)
    teams: Optional[str] = None
    league: Optional[str] = None
    selected: Optional[BetSnapshot] = None
    current: Optional[BetSnapshot] = None
    confidence: Optional[float] = None
    drift_percent: Optional[float] = None
    recommendation: Optional[Recommendation] = None


class ValidationIssue(CamelModel):
    code: str
    match_id: str
    message: str


class ValidationSummary(CamelModel):
    total: int = 0
    ok: int = 0
    to_fix: int = 0


class CouponValidationResponse(ApiEnvelope):
    validated_at: str
    status: str  # "TICKET_OK" / "TICKET_A_CORREGIR"
    drift_threshold_percent: float
    summary: ValidationSummary
    issues: List[ValidationIssue]
    validated_selections: List[ValidatedSelection]


# ---------------------------------------------------------------------------
# EXPORTACIÓN (PDF / IMAGEN / TELEGRAM)
# ---------------------------------------------------------------------------

class CouponExportRequest(CamelModel):
    coupon: List[CouponPick] = Field(default_factory=list)
    summary: Optional[CouponSummary] = None
    risk_profile: str = "balanced"
    format: str = "png"          # imagen: "png" / "svg"
    send_image: bool = False     # Telegram: adjuntar imagen
    image_format: str = "png"
    send_pdf: bool = False       # Telegram: adjuntar PDF


class TelegramSendResponse(ApiEnvelope):
    message: str
    sent: List[str]

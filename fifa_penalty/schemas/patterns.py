# fifa_penalty/schemas/patterns.py

from typing import Any, Dict, List, Optional

from pydantic import Field

from fifa_penalty.schemas.common import ApiEnvelope, CamelModel


class BetRecord(CamelModel):
    """Una línea del historial de apuestas del usuario."""

    id: Optional[str] = None
    date: Optional[str] = None
    league: Optional[str] = None
    home: Optional[str] = None
    away: Optional[str] = None
    score: Optional[str] = None      # "2-1"
    option: Optional[str] = None     # etiqueta del mercado jugado
    line_value: Optional[float] = None
    odds: Optional[float] = None
    stake: Optional[float] = None
    issue: Optional[str] = None      # "win" / "loss" / "void"...


class BetFeatures(CamelModel):
    id: Optional[str] = None
    date: Optional[str] = None
    league_family: str
    home: Optional[str] = None
    away: Optional[str] = None
    home_goals: Optional[int] = None
    away_goals: Optional[int] = None
    total_goals: Optional[int] = None
    option_type: str
    pick_side: str
    line_value: Optional[float] = None
    odds: Optional[float] = None
    stake: Optional[float] = None
    label: Optional[int] = None      # 1 ganada, 0 perdida, None anulada / pendiente
    void: int = 0
    option_raw: str = ""


class GroupSummary(CamelModel):
    n: int = 0
    played: int = 0
    wins: int = 0
    losses: int = 0
    winrate: float = 0.0
    ci95_low: float = 0.0
    ci95_high: float = 0.0
    stake_sum: float = 0.0
    profit: float = 0.0
    roi: float = 0.0


class PatternRule(GroupSummary):
    rule: str


class CandidateDecision(CamelModel):
    status: str                      # "OK" / "FILTER_LOCKED"
    playable: bool
    tier: Optional[str] = None       # "SAFE" / "MODERATE" / "NO_PLAY"
    score: Optional[float] = None
    reasons: List[str] = Field(default_factory=list)
    features: Optional[BetFeatures] = None
    message: Optional[str] = None


class PatternReportRequest(CamelModel):
    records: List[BetRecord] = Field(default_factory=list)
    total_validated: Optional[int] = None
    min_rule_played: int = 5


class PatternDecideRequest(PatternReportRequest):
    candidates: List[BetRecord] = Field(default_factory=list)
    min_matches: int = 50


class PatternReportResponse(ApiEnvelope):
    report: Dict[str, Any]


class PatternDecideResponse(ApiEnvelope):
    decisions: List[CandidateDecision]

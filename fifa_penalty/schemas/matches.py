# fifa_penalty/schemas/matches.py

from typing import Any, Dict, List, Optional

from pydantic import Field

from fifa_penalty.schemas.common import ApiEnvelope, CamelModel


# ---------------------------------------------------------------------------
# 1) PARTIDO Y MERCADOS
# ---------------------------------------------------------------------------

class ScoreContext(CamelModel):
    score1: int = 0
    score2: int = 0
    minute: int = 0

    @property
    def goals(self) -> int:
        return self.score1 + self.score2


class MarketCode(CamelModel):
    g: int
    t: int
    line: Optional[float] = None


class BetOption(CamelModel):
    key: str
    name: str
    odd: float
    code: MarketCode
    bet_type: str               # "1X2", "HANDICAP", "TOTAL_GOLES"...
    side: Optional[str] = None  # "OVER" / "UNDER" en mercados de totales


class OneXTwo(CamelModel):
    home: Optional[float] = None
    draw: Optional[float] = None
    away: Optional[float] = None


class ImpliedProbabilities(CamelModel):
    home: float
    draw: float
    away: float


class MatchSummary(CamelModel):
    id: str
    team_home: str
    team_away: str
    league: str
    start_time_unix: Optional[int] = None
    sport_id: Optional[int] = None
    status_text: str = ""
    info_text: str = ""
    status_code: Optional[int] = None
    score: Dict[str, Any] = Field(default_factory=dict)
    context: ScoreContext = Field(default_factory=ScoreContext)
    odds1x2: OneXTwo = Field(default_factory=OneXTwo, alias="odds1x2")
    bets_count: int = 0


class MatchesResponse(ApiEnvelope):
    fetched_at: str
    total_from_api: int
    total_sport: int
    total_penalty: int
    filter_mode: str
    matches: List[MatchSummary]


# ---------------------------------------------------------------------------
# 2) BOTS, MAESTRO Y ANÁLISIS AVANZADO
# ---------------------------------------------------------------------------

class BotPick(CamelModel):
    name: str
    odd: float
    confidence: float
    bet_type: str
    source: str
    value: Optional[float] = None


class BotResult(CamelModel):
    bot_name: str
    specialty: str
    recommended: List[BotPick] = Field(default_factory=list)
    global_confidence: float = 0.0
    opportunities: Optional[List[BotPick]] = None


class MasterDecision(CamelModel):
    action: str
    confidence: float = 0.0
    recommendation: str
    level: Optional[str] = None
    chosen_bet: Optional[str] = None
    odd: Optional[float] = None
    bet_type: Optional[str] = None
    teams: Optional[str] = None
    reason: Optional[str] = None


class BotsAnalysis(CamelModel):
    consulted: int = 0
    consensus: str = "NINGUNO"
    agreeing: Optional[int] = None
    supporters: List[str] = Field(default_factory=list)
    bet_types_analysed: int = 0
    bet_confidence: Optional[float] = None


class MasterMeta(CamelModel):
    timestamp: str
    version: str
    match: Optional[str] = None
    league: Optional[str] = None


class MasterResult(CamelModel):
    decision: MasterDecision
    bots_analysis: BotsAnalysis
    meta: MasterMeta


class BetAnalysis(CamelModel):
    bet: str
    odd: float
    composite_score: float
    estimated_probability: float
    value: float
    potential_gain: float
    recommendation: str
    risk: str


class AnalysisStats(CamelModel):
    total_bets_analysed: int = 0
    average_score: float = 0.0
    positive_opportunities: int = 0
    total_potential_gain: float = 0.0


class AdvancedAnalysis(CamelModel):
    detailed: List[BetAnalysis] = Field(default_factory=list)
    top3: List[BetAnalysis] = Field(default_factory=list)
    stats: AnalysisStats = Field(default_factory=AnalysisStats)


class PredictionMeta(CamelModel):
    generated_at: str
    version: str
    teams: str
    league: str
    context: ScoreContext
    bets_analysed: int
    valid_odds_range: str


class PredictionBundle(CamelModel):
    meta: PredictionMeta
    bots: Dict[str, BotResult]
    master: MasterResult
    analysis: AdvancedAnalysis


class MatchDetailsResponse(ApiEnvelope):
    match: MatchSummary
    betting_markets: List[BetOption]
    prediction: PredictionBundle
    implied_probabilities: ImpliedProbabilities


# ---------------------------------------------------------------------------
# 3) ESTRUCTURA DEL FEED (DEBUG)
# ---------------------------------------------------------------------------

class StructureResponse(ApiEnvelope):
    fetched_at: str
    top_level_keys: List[str]
    notes: Dict[str, str]
    shapes: Dict[str, Any]

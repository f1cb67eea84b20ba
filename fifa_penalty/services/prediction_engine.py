# fifa_penalty/services/prediction_engine.py

from typing import Callable, Dict, List, NamedTuple, Optional, Tuple

from fifa_penalty.config import settings
from fifa_penalty.schemas.matches import (
    AdvancedAnalysis,
    AnalysisStats,
    BetAnalysis,
    BetOption,
    BotPick,
    BotResult,
    BotsAnalysis,
    MasterDecision,
    MasterMeta,
    MasterResult,
    MatchSummary,
    PredictionBundle,
    PredictionMeta,
    ScoreContext,
)
from fifa_penalty.services.markets import HANDICAP, TEAM_TOTAL, TOTAL_GOALS
from fifa_penalty.utils.formatting import clamp, normalize_text, utc_now_iso

PREDICTION_VERSION = "UNIFIED-PREDICTIONS-PY-1.0"
MASTER_VERSION = "MASTER-CONSENSUS-PY-1.0"

CONFIDENCE_MIN = 5.0
CONFIDENCE_MAX = 95.0

OFFENSIVE_TEAMS = (
    "arsenal",
    "manchester city",
    "psg",
    "real madrid",
    "barcelona",
    "liverpool",
)


class MatchContext(NamedTuple):
    team_home: str
    team_away: str
    league: str
    score1: int
    score2: int
    minute: int

    @property
    def goals(self) -> int:
        return self.score1 + self.score2


def _bounded(confidence: float) -> float:
    return clamp(confidence, CONFIDENCE_MIN, CONFIDENCE_MAX)


def _is_total(bet: BetOption) -> bool:
    return bet.bet_type in (TOTAL_GOALS, TEAM_TOTAL)


def _is_over(bet: BetOption) -> bool:
    return bet.side == "OVER"


def _is_under(bet: BetOption) -> bool:
    return bet.side == "UNDER"


def _implied_pct(odd: float) -> float:
    return 100.0 / max(odd, 0.01)


def is_offensive_team(team: str) -> bool:
    low = normalize_text(team)
    return any(name in low for name in OFFENSIVE_TEAMS)


def in_valid_range(odd: float) -> bool:
    return settings.valid_odds_min <= odd <= settings.valid_odds_max


# ---------------------------------------------------------------------------
# 1) FUNCIONES DE PUNTUACIÓN ("BOTS")
# ---------------------------------------------------------------------------

def score_unified(bet: BetOption, ctx: MatchContext) -> float:
    confidence = 50.0

    if is_offensive_team(ctx.team_home):
        confidence += 8
    if is_offensive_team(ctx.team_away):
        confidence += 8

    if _is_total(bet) and _is_over(bet):
        if ctx.goals >= 2 and ctx.minute < 60:
            confidence += 15
    elif _is_total(bet) and _is_under(bet):
        if ctx.goals <= 1 and ctx.minute > 60:
            confidence += 15

    if 1.8 <= bet.odd <= 2.5:
        confidence += 10

    return _bounded(confidence)


def score_contextual(bet: BetOption, ctx: MatchContext) -> float:
    confidence = 55.0

    if _is_total(bet):
        if _is_over(bet):
            if ctx.goals >= 1 and ctx.minute < 45:
                confidence += 20
            elif ctx.goals == 0 and ctx.minute > 70:
                confidence -= 20
        elif _is_under(bet):
            if ctx.goals <= 1 and ctx.minute > 60:
                confidence += 18

    teams = normalize_text(f"{ctx.team_home} {ctx.team_away}")
    if "arsenal" in teams and _is_over(bet):
        confidence += 12

    return _bounded(confidence)


def score_probabilities(bet: BetOption, ctx: MatchContext) -> float:
    confidence = 50.0
    estimated = 50.0

    if _is_total(bet):
        if _is_over(bet):
            if ctx.goals >= 2:
                estimated = 75.0
            elif ctx.goals == 1:
                estimated = 60.0
            else:
                estimated = 45.0
        else:
            estimated = 55.0

    implied = _implied_pct(bet.odd)
    if estimated > implied:
        confidence += (estimated - implied) * 0.5

    return _bounded(confidence)


def compute_value(bet: BetOption) -> float:
    """
    Value en % comparando una probabilidad asumida con la implícita de la
    cuota. Acotado por abajo en -50.
    """
    estimated = 50.0
    if _is_total(bet):
        estimated = 65.0 if _is_under(bet) else 45.0
    elif bet.bet_type == HANDICAP:
        estimated = 55.0

    implied = _implied_pct(bet.odd)
    return max((estimated - implied) / implied * 100.0, -50.0)


def score_statistics(bet: BetOption, ctx: MatchContext) -> float:
    confidence = 52.0

    if _is_total(bet):
        if ctx.minute <= 30:
            confidence += 8 if _is_over(bet) else 3
        elif ctx.minute > 70 and _is_under(bet) and ctx.goals <= 2:
            confidence += 15

    # Semilla estable por emparejamiento
    seed = sum(ord(ch) for ch in f"{ctx.team_home}{ctx.team_away}") % 100
    if seed > 60:
        confidence += 8

    return _bounded(confidence)


# ---------------------------------------------------------------------------
# 2) ESTRATEGIAS: cada una devuelve (confianza, value) o None si descarta
# ---------------------------------------------------------------------------

Evaluation = Optional[Tuple[float, Optional[float]]]


def _keep_above(scorer: Callable[[BetOption, MatchContext], float], minimum: float):
    def evaluate(bet: BetOption, ctx: MatchContext) -> Evaluation:
        confidence = scorer(bet, ctx)
        if confidence < minimum:
            return None
        return confidence, None

    return evaluate


def _evaluate_value(bet: BetOption, ctx: MatchContext) -> Evaluation:
    value = compute_value(bet)
    if value < 10:
        return None
    return _bounded(50.0 + value), round(value, 2)


class BotSpec(NamedTuple):
    key: str
    name: str
    specialty: str
    source: str
    evaluate: Callable[[BetOption, MatchContext], Evaluation]


BOTS: List[BotSpec] = [
    BotSpec("unified", "SISTEMA UNIFICADO", "ANÁLISIS UNIFICADO", "BOT_UNIFICADO",
            _keep_above(score_unified, 60)),
    BotSpec("contextual", "IA CONTEXTUAL", "IA CONTEXTUAL", "BOT_IA",
            _keep_above(score_contextual, 65)),
    BotSpec("probabilities", "PROBABILIDADES", "CÁLCULOS PROBABILÍSTICOS", "BOT_PROBABILIDADES",
            _keep_above(score_probabilities, 55)),
    BotSpec("value", "VALUE BETTING", "DETECCIÓN DE VALUE", "BOT_VALUE",
            _evaluate_value),
    BotSpec("statistics", "ANÁLISIS ESTADÍSTICO", "ESTADÍSTICAS", "BOT_ESTADISTICO",
            _keep_above(score_statistics, 58)),
]


def run_bots(bets: List[BetOption], ctx: MatchContext) -> Dict[str, BotResult]:
    valid = [b for b in bets if in_valid_range(b.odd)]
    results: Dict[str, BotResult] = {}

    for bot in BOTS:
        picks: List[BotPick] = []
        for bet in valid:
            evaluation = bot.evaluate(bet, ctx)
            if evaluation is None:
                continue
            confidence, value = evaluation
            picks.append(
                BotPick(
                    name=bet.name,
                    odd=bet.odd,
                    confidence=confidence,
                    bet_type=bet.bet_type,
                    source=bot.source,
                    value=value,
                )
            )

        ranked = sorted(picks, key=lambda p: p.confidence, reverse=True)
        result = BotResult(
            bot_name=bot.name,
            specialty=bot.specialty,
            recommended=ranked[:3],
            global_confidence=max((p.confidence for p in picks), default=0.0),
        )
        if bot.key == "value":
            result.opportunities = sorted(picks, key=lambda p: p.value or 0.0, reverse=True)
        results[bot.key] = result

    return results


# ---------------------------------------------------------------------------
# 3) MAESTRO: consenso entre bots
# ---------------------------------------------------------------------------

ACTION_TIERS = [
    (80, "APUESTA FUERTE RECOMENDADA", "MUY ALTA"),
    (70, "APUESTA RECOMENDADA", "ALTA"),
    (60, "APUESTA MODERADA", "MODERADA"),
    (50, "APUESTA PRUDENTE", "BAJA"),
]


def _action_for(confidence: float) -> Tuple[str, str]:
    for threshold, action, level in ACTION_TIERS:
        if confidence >= threshold:
            return action, level
    return "EVITAR", "MUY BAJA"


def master_consensus(bots: Dict[str, BotResult], ctx: MatchContext) -> MasterResult:
    """
    La apuesta más votada gana. Confianza global = 60% consenso (votos / bots,
    máx. 90) + 40% confianza media de los bots que opinaron.
    """
    teams = f"{ctx.team_home} vs {ctx.team_away}"
    meta = MasterMeta(timestamp=utc_now_iso(), version=MASTER_VERSION, match=teams, league=ctx.league)

    opinions = []
    for key, result in bots.items():
        picks = [p for p in result.recommended if in_valid_range(p.odd)]
        if picks:
            opinions.append((key, picks, result.global_confidence))

    if not opinions:
        return MasterResult(
            decision=MasterDecision(
                action="SIN_APUESTA",
                reason=f"Ninguna apuesta con cuota válida ({settings.valid_odds_min}-{settings.valid_odds_max})",
                confidence=0.0,
                recommendation="ESPERAR MEJORES OPORTUNIDADES",
            ),
            bots_analysis=BotsAnalysis(),
            meta=meta,
        )

    votes: Dict[str, List[Tuple[str, BotPick]]] = {}
    for key, picks, _ in opinions:
        for pick in picks:
            votes.setdefault(pick.name, []).append((key, pick))

    # sorted es estable: en empate gana la primera apuesta vista
    chosen, supporters = sorted(votes.items(), key=lambda kv: len(kv[1]), reverse=True)[0]

    total_bots = len(opinions)
    consensus = clamp(len(supporters) / total_bots * 100.0, 0.0, 90.0)
    mean_bots = sum(conf for _, _, conf in opinions) / total_bots
    confidence = consensus * 0.6 + mean_bots * 0.4
    bet_confidence = sum(p.confidence for _, p in supporters) / len(supporters)
    best = max(supporters, key=lambda s: s[1].confidence)[1]

    action, level = _action_for(confidence)
    bet_types = {p.bet_type for _, picks, _ in opinions for p in picks}

    return MasterResult(
        decision=MasterDecision(
            action=action,
            level=level,
            confidence=round(confidence, 1),
            chosen_bet=chosen,
            odd=best.odd,
            bet_type=best.bet_type,
            recommendation=f"EL MAESTRO RECOMIENDA: {action}",
            teams=teams,
        ),
        bots_analysis=BotsAnalysis(
            consulted=total_bots,
            agreeing=len(supporters),
            consensus=f"{len(supporters)}/{total_bots} bots",
            supporters=[key for key, _ in supporters],
            bet_types_analysed=len(bet_types),
            bet_confidence=round(bet_confidence, 1),
        ),
        meta=meta,
    )


# ---------------------------------------------------------------------------
# 4) ANÁLISIS AVANZADO (todas las apuestas, ordenadas por ganancia potencial)
# ---------------------------------------------------------------------------

def _analyse_bet(bet: BetOption, ctx: MatchContext) -> BetAnalysis:
    goals = ctx.goals
    over = _is_over(bet)
    under = _is_under(bet)

    context_score = 50.0
    if over and bet.code.line == 2.5:
        if goals >= 3:
            context_score = 95.0
        elif goals == 2 and ctx.minute < 70:
            context_score = 80.0
        elif goals == 0 and ctx.minute > 60:
            context_score = 25.0

    trends = 50.0
    if ctx.minute > 75 and over:
        trends += 20
    if ctx.minute > 75 and under:
        trends += 15

    team = 50.0
    if is_offensive_team(ctx.team_home) or is_offensive_team(ctx.team_away):
        team += 12

    league = 50.0
    if "bundesliga" in normalize_text(ctx.league) and over:
        league += 15

    momentum = 50.0
    if goals >= 2 and ctx.minute < 60 and over:
        momentum += 20
    if goals == 0 and ctx.minute > 45 and under:
        momentum += 15

    composite = (context_score + trends + team + league + momentum) / 5.0
    estimated = composite / 100.0
    implied = 1.0 / max(bet.odd, 0.01)
    value = (estimated - implied) / implied * 100.0
    potential_gain = value * (bet.odd - 1) if value > 0 else 0.0

    if composite >= 80 and value > 15:
        recommendation = "APUESTA FUERTE"
    elif composite >= 70 and value > 10:
        recommendation = "APUESTA RECOMENDADA"
    elif composite >= 60 and value > 5:
        recommendation = "APUESTA MODERADA"
    elif composite >= 50:
        recommendation = "APUESTA PRUDENTE"
    else:
        recommendation = "EVITAR"

    if composite >= 75 and bet.odd < 2.5:
        risk = "BAJO"
    elif composite >= 60:
        risk = "MODERADO"
    else:
        risk = "ALTO"

    return BetAnalysis(
        bet=bet.name,
        odd=bet.odd,
        composite_score=round(composite, 1),
        estimated_probability=round(estimated * 100.0, 1),
        value=round(value, 2),
        potential_gain=round(potential_gain, 2),
        recommendation=recommendation,
        risk=risk,
    )


def advanced_analysis(bets: List[BetOption], ctx: MatchContext) -> AdvancedAnalysis:
    analyses = sorted(
        (_analyse_bet(b, ctx) for b in bets),
        key=lambda a: a.potential_gain,
        reverse=True,
    )

    stats = AnalysisStats(total_bets_analysed=len(analyses))
    if analyses:
        stats.average_score = round(sum(a.composite_score for a in analyses) / len(analyses), 1)
        stats.positive_opportunities = sum(1 for a in analyses if a.value > 0)
        stats.total_potential_gain = round(sum(a.potential_gain for a in analyses), 2)

    return AdvancedAnalysis(detailed=analyses, top3=analyses[:3], stats=stats)


# ---------------------------------------------------------------------------
# 5) PAQUETE COMPLETO
# ---------------------------------------------------------------------------

def context_for(match: MatchSummary) -> MatchContext:
    score: ScoreContext = match.context
    return MatchContext(
        team_home=match.team_home,
        team_away=match.team_away,
        league=match.league,
        score1=score.score1,
        score2=score.score2,
        minute=score.minute,
    )


def generate_prediction(match: MatchSummary, bets: List[BetOption]) -> PredictionBundle:
    ctx = context_for(match)
    bots = run_bots(bets, ctx)

    return PredictionBundle(
        meta=PredictionMeta(
            generated_at=utc_now_iso(),
            version=PREDICTION_VERSION,
            teams=f"{ctx.team_home} vs {ctx.team_away}",
            league=ctx.league,
            context=match.context,
            bets_analysed=len(bets),
            valid_odds_range=f"{settings.valid_odds_min} - {settings.valid_odds_max}",
        ),
        bots=bots,
        master=master_consensus(bots, ctx),
        analysis=advanced_analysis(bets, ctx),
    )

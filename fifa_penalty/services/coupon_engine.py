# fifa_penalty/services/coupon_engine.py

import time
from typing import Dict, List, Optional

from fifa_penalty.config import settings
from fifa_penalty.core.errors import InvalidCouponError
from fifa_penalty.core.logging import logger
from fifa_penalty.schemas.coupon import (
    BetSnapshot,
    CouponOption,
    CouponPick,
    CouponResponse,
    CouponSummary,
    CouponValidationResponse,
    Recommendation,
    RiskProfile,
    SelectionIn,
    ValidatedSelection,
    ValidationIssue,
    ValidationSummary,
)
from fifa_penalty.schemas.matches import MatchDetailsResponse
from fifa_penalty.services import live_feed
from fifa_penalty.services.markets import event_league
from fifa_penalty.utils.formatting import normalize_text, utc_now_iso

RISK_PROFILES: Dict[str, RiskProfile] = {
    "safe": RiskProfile(name="safe", min_odd=1.2, max_odd=1.7, min_confidence=62, slope=8, anchor=1.45),
    "balanced": RiskProfile(name="balanced", min_odd=1.3, max_odd=2.25, min_confidence=50, slope=11, anchor=1.7),
    "aggressive": RiskProfile(name="aggressive", min_odd=1.55, max_odd=3.2, min_confidence=45, slope=6, anchor=2.2),
}

DEFAULT_PROFILE = "balanced"
FALLBACK_CONFIDENCE = 45.0
LOW_CONFIDENCE_THRESHOLD = 50.0

COUPON_WARNING = (
    "Ninguna combinación está garantizada. Este cupón es una optimización algorítmica."
)


def risk_config(profile: Optional[str]) -> RiskProfile:
    key = normalize_text((profile or "").strip())
    return RISK_PROFILES.get(key, RISK_PROFILES[DEFAULT_PROFILE])


def clamp_size(size: Optional[int]) -> int:
    wanted = size or settings.coupon_default_size
    return max(1, min(wanted, settings.coupon_max_size))


# ---------------------------------------------------------------------------
# 1) ELECCIÓN DE UNA OPCIÓN POR PARTIDO
# ---------------------------------------------------------------------------

def pick_coupon_option(details: MatchDetailsResponse, profile: Optional[str] = None) -> Optional[CouponOption]:
    """
    Opción de cupón para un partido, por orden de preferencia:

    1. la apuesta del maestro si existe en el mercado, con confianza >= mínimo
       del perfil y cuota dentro del rango,
    2. la mejor entrada del top 3 del análisis avanzado (score compuesto),
    3. el mercado más bajo dentro del rango, con confianza fija 45.
    """
    cfg = risk_config(profile)

    def in_range(odd: Optional[float]) -> bool:
        return odd is not None and cfg.min_odd <= odd <= cfg.max_odd

    markets = {m.name: m for m in details.betting_markets}
    decision = details.prediction.master.decision

    master_market = markets.get(decision.chosen_bet) if decision.chosen_bet else None
    if (
        master_market is not None
        and decision.confidence >= cfg.min_confidence
        and in_range(master_market.odd)
    ):
        return CouponOption(
            bet=master_market.name,
            odd=master_market.odd,
            confidence=decision.confidence,
            source="MAESTRO",
        )

    top = [a for a in details.prediction.analysis.top3 if in_range(a.odd)]
    if top:
        best = max(top, key=lambda a: a.composite_score)
        return CouponOption(
            bet=best.bet,
            odd=best.odd,
            confidence=best.composite_score or 50.0,
            source="TOP3",
        )

    in_range_markets = [m for m in details.betting_markets if in_range(m.odd)]
    if not in_range_markets:
        return None

    lowest = min(in_range_markets, key=lambda m: m.odd)
    return CouponOption(
        bet=lowest.name,
        odd=lowest.odd,
        confidence=FALLBACK_CONFIDENCE,
        source="FALLBACK",
    )


def safety_score(option: CouponOption, cfg: RiskProfile) -> float:
    return round(option.confidence - abs(option.odd - cfg.anchor) * cfg.slope, 2)


def summarize_coupon(picks: List[CouponPick]) -> CouponSummary:
    if not picks:
        return CouponSummary(total_selections=0, combined_odd=None, average_confidence=0.0)

    combined = 1.0
    for p in picks:
        combined *= p.odd

    return CouponSummary(
        total_selections=len(picks),
        combined_odd=round(combined, 3),
        average_confidence=round(sum(p.confidence for p in picks) / len(picks), 1),
    )


# ---------------------------------------------------------------------------
# 2) GENERACIÓN DE CUPÓN
# ---------------------------------------------------------------------------

def build_coupon(size: Optional[int] = None, league: Optional[str] = "all", risk: Optional[str] = None) -> CouponResponse:
    cfg = risk_config(risk)
    wanted = clamp_size(size)
    league_key = normalize_text((league or "all").strip())

    payload = live_feed.fetch_live_feed()
    events = live_feed.select_penalty_events(payload).events
    if league_key and league_key != "all":
        events = [ev for ev in events if normalize_text(event_league(ev).strip()) == league_key]

    now = time.time()
    candidates: List[CouponPick] = []

    for event in events:
        details = live_feed.build_match_details(event)
        if not live_feed.is_upcoming(details.match, now):
            continue

        option = pick_coupon_option(details, cfg.name)
        if option is None:
            continue

        match = details.match
        candidates.append(
            CouponPick(
                match_id=match.id,
                team_home=match.team_home,
                team_away=match.team_away,
                league=match.league,
                start_time_unix=match.start_time_unix,
                bet=option.bet,
                odd=option.odd,
                confidence=round(option.confidence, 1),
                source=option.source,
                safety_score=safety_score(option, cfg),
            )
        )

    candidates.sort(key=lambda c: c.safety_score or 0.0, reverse=True)
    picks = candidates[:wanted]

    logger.info(
        f"[COUPON] perfil={cfg.name} liga={league or 'all'} candidatos={len(candidates)} "
        f"seleccionados={len(picks)}"
    )

    return CouponResponse(
        source=settings.live_feed_url,
        generated_at=utc_now_iso(),
        requested_matches=wanted,
        available_candidates=len(candidates),
        league_filter=league or "all",
        risk_profile=cfg.name,
        coupon=picks,
        summary=summarize_coupon(picks),
        warning=COUPON_WARNING,
    )


# ---------------------------------------------------------------------------
# 3) VALIDACIÓN DE TICKET
# ---------------------------------------------------------------------------

def _drift_percent(selected: Optional[float], current: Optional[float]) -> Optional[float]:
    if not selected or not current or selected <= 0 or current <= 0:
        return None
    return round(abs((current - selected) / selected * 100.0), 2)


def validate_selection(
    selection: SelectionIn,
    payload: Dict,
    drift_threshold: float,
    profile: Optional[str],
    now: float,
) -> ValidatedSelection:
    event = live_feed.find_event(payload, selection.match_id)
    if event is None:
        return ValidatedSelection(
            match_id=selection.match_id,
            status="invalid",
            reason_codes=["MATCH_NOT_FOUND"],
        )

    details = live_feed.build_match_details(event)
    match = details.match
    market = next((m for m in details.betting_markets if m.name == selection.bet), None)
    current_odd = market.odd if market else None
    drift = _drift_percent(selection.odd, current_odd)

    option = pick_coupon_option(details, profile)
    confidence = option.confidence if option and option.bet == selection.bet else 50.0

    reasons: List[str] = []
    if not live_feed.is_upcoming(match, now):
        reasons.append("MATCH_ALREADY_STARTED")
    if market is None:
        reasons.append("MARKET_UNAVAILABLE")
    if drift is not None and drift > drift_threshold:
        reasons.append("ODD_DRIFT")
    if confidence < LOW_CONFIDENCE_THRESHOLD:
        reasons.append("LOW_CONFIDENCE")

    return ValidatedSelection(
        match_id=selection.match_id,
        status="replace" if reasons else "ok",
        reason_codes=reasons,
        teams=f"{match.team_home} vs {match.team_away}",
        league=match.league,
        selected=BetSnapshot(bet=selection.bet, odd=selection.odd or None),
        current=BetSnapshot(bet=market.name if market else None, odd=current_odd),
        confidence=round(confidence, 1),
        drift_percent=drift,
        recommendation=Recommendation(
            bet=option.bet,
            odd=option.odd,
            confidence=round(option.confidence, 1),
            source=option.source,
        ) if option else None,
    )


def validate_coupon(
    selections: List[SelectionIn],
    drift_threshold: Optional[float] = None,
    risk: Optional[str] = None,
) -> CouponValidationResponse:
    """
    Revalida un ticket contra una lectura fresca del feed (sin caché) y
    propone reemplazos con la misma heurística del generador.
    """
    if not selections:
        raise InvalidCouponError("El ticket no contiene selecciones.")

    threshold = settings.drift_threshold_percent if drift_threshold is None else drift_threshold
    payload = live_feed.fetch_live_feed(use_cache=False)
    now = time.time()

    validated: List[ValidatedSelection] = []
    issues: List[ValidationIssue] = []

    for selection in selections:
        result = validate_selection(selection, payload, threshold, risk, now)
        validated.append(result)

        if result.status == "invalid":
            issues.append(
                ValidationIssue(
                    code="MATCH_NOT_FOUND",
                    match_id=result.match_id,
                    message=f"Partido {result.match_id} no encontrado.",
                )
            )
        elif result.status == "replace":
            issues.append(
                ValidationIssue(
                    code=result.reason_codes[0],
                    match_id=result.match_id,
                    message=f"{result.teams}: corrección recomendada ({', '.join(result.reason_codes)}).",
                )
            )

    ok = sum(1 for v in validated if v.status == "ok")
    to_fix = len(validated) - ok

    logger.info(f"[COUPON] Validación: {ok}/{len(validated)} selecciones OK")

    return CouponValidationResponse(
        source=settings.live_feed_url,
        validated_at=utc_now_iso(),
        status="TICKET_OK" if to_fix == 0 else "TICKET_A_CORREGIR",
        drift_threshold_percent=threshold,
        summary=ValidationSummary(total=len(validated), ok=ok, to_fix=to_fix),
        issues=issues,
        validated_selections=validated,
    )

# fifa_penalty/services/markets.py

import re
from typing import Any, Dict, List, Optional

from fifa_penalty.schemas.matches import (
    BetOption,
    ImpliedProbabilities,
    MarketCode,
    MatchSummary,
    OneXTwo,
    ScoreContext,
)
from fifa_penalty.utils.formatting import format_line, safe_float, safe_int

# Categorías de mercado
ONE_X_TWO = "1X2"
DOUBLE_CHANCE = "DOBLE_OPORTUNIDAD"
HANDICAP = "HANDICAP"
TOTAL_GOALS = "TOTAL_GOLES"
TEAM_TOTAL = "TOTAL_EQUIPO"
BOTH_SCORE = "AMBOS_MARCAN"
OTHER = "OTRO"

# Código de grupo (G) del book -> categoría
GROUP_TYPES = {
    1: ONE_X_TWO,
    8: DOUBLE_CHANCE,
    2: HANDICAP,
    17: TOTAL_GOALS,
    15: TEAM_TOTAL,
    62: TEAM_TOTAL,
    19: BOTH_SCORE,
}

# Tipo (T) -> lado en mercados de totales
OVER_TYPES = {9, 11, 13}
UNDER_TYPES = {10, 12, 14}

DEFAULT_HOME = "Equipo 1"
DEFAULT_AWAY = "Equipo 2"
DEFAULT_LEAGUE = "Competición virtual"

_MINUTE_RE = re.compile(r"^(\d{1,2})")


def translate_bet_option(g: int, t: int, line: Optional[float], event: Dict[str, Any]) -> str:
    """Etiqueta legible para el par (grupo, tipo) del book."""
    home = event.get("O1") or DEFAULT_HOME
    away = event.get("O2") or DEFAULT_AWAY
    p = format_line(line)

    labels = {
        (1, 1): f"1 - Victoria {home}",
        (1, 2): "X - Empate",
        (1, 3): f"2 - Victoria {away}",
        (8, 4): f"1X - {home} o empate",
        (8, 5): "12 - Sin empate",
        (8, 6): f"X2 - {away} o empate",
        (2, 7): f"Handicap {home} ({p or '0'})",
        (2, 8): f"Handicap {away} ({p or '0'})",
        (17, 9): f"Más de {p or '?'} goles",
        (17, 10): f"Menos de {p or '?'} goles",
        (15, 11): f"Total {home} - Más de {p or '?'}",
        (15, 12): f"Total {home} - Menos de {p or '?'}",
        (62, 13): f"Total {away} - Más de {p or '?'}",
        (62, 14): f"Total {away} - Menos de {p or '?'}",
        (19, 180): "Ambos marcan - Sí",
        (19, 181): "Ambos marcan - No",
    }
    label = labels.get((g, t))
    if label:
        return label
    return f"Mercado {g}/{t}" + (f" ({p})" if p else "")


def bet_side(t: int) -> Optional[str]:
    if t in OVER_TYPES:
        return "OVER"
    if t in UNDER_TYPES:
        return "UNDER"
    return None


def _market_rows(event: Dict[str, Any]) -> List[Dict[str, Any]]:
    direct = event.get("E") if isinstance(event.get("E"), list) else []
    rows = list(direct)
    for group in event.get("AE") or []:
        if isinstance(group, dict) and isinstance(group.get("ME"), list):
            rows.extend(group["ME"])
    return [r for r in rows if isinstance(r, dict)]


def extract_all_bets(event: Dict[str, Any]) -> List[BetOption]:
    """
    Todos los mercados del evento (E + AE[].ME), sin duplicados y sin
    cuotas <= 1.
    """
    bets: Dict[str, BetOption] = {}

    for row in _market_rows(event):
        g = safe_int(row.get("G"))
        t = safe_int(row.get("T"))
        odd = safe_float(row.get("C"))
        line = safe_float(row.get("P"))
        if g is None or t is None or odd is None or odd <= 1:
            continue

        key = f"{g}-{t}-{line if line is not None else 'na'}-{odd}"
        if key in bets:
            continue

        bets[key] = BetOption(
            key=key,
            name=translate_bet_option(g, t, line, event),
            odd=odd,
            code=MarketCode(g=g, t=t, line=line),
            bet_type=GROUP_TYPES.get(g, OTHER),
            side=bet_side(t),
        )

    return list(bets.values())


def extract_one_x_two(event: Dict[str, Any]) -> OneXTwo:
    rows = [r for r in (event.get("E") or []) if isinstance(r, dict) and safe_int(r.get("G")) == 1]

    def pick(t: int) -> Optional[float]:
        for r in rows:
            if safe_int(r.get("T")) == t:
                return safe_float(r.get("C"))
        return None

    return OneXTwo(home=pick(1), draw=pick(2), away=pick(3))


def parse_score_context(event: Dict[str, Any]) -> ScoreContext:
    sc = event.get("SC") or {}
    fs = sc.get("FS") or {}

    def first_number(*keys: str) -> int:
        for k in keys:
            if fs.get(k) is not None:
                return safe_int(fs.get(k)) or 0
        return 0

    score1 = first_number("S1", "H", "Home", "SA")
    score2 = first_number("S2", "A", "Away", "SB")

    # CPS trae el reloj tipo "12' ..." cuando el partido está en juego
    minute = 0
    m = _MINUTE_RE.match(str(sc.get("CPS") or ""))
    if m:
        minute = int(m.group(1))

    return ScoreContext(score1=score1, score2=score2, minute=minute)


def simplify_event(event: Dict[str, Any]) -> MatchSummary:
    sc = event.get("SC") or {}
    start = safe_int(event.get("S"))

    return MatchSummary(
        id=str(event.get("I")),
        team_home=event.get("O1") or DEFAULT_HOME,
        team_away=event.get("O2") or DEFAULT_AWAY,
        league=event_league(event) or DEFAULT_LEAGUE,
        start_time_unix=start or None,
        sport_id=safe_int(event.get("SI")) or None,
        status_text=str(sc.get("SLS") or sc.get("I") or "En espera"),
        info_text=str(sc.get("I") or ""),
        status_code=safe_int(sc.get("GS")),
        score=sc.get("FS") or {},
        context=parse_score_context(event),
        odds1x2=extract_one_x_two(event),
        bets_count=len(extract_all_bets(event)),
    )


def event_league(event: Dict[str, Any]) -> str:
    return str(event.get("L") or event.get("LE") or "")


def implied_probabilities(odds: OneXTwo) -> ImpliedProbabilities:
    """
    Probabilidades 1X2 sin margen (normalizadas a 100). Si falta alguna
    cuota se devuelve un reparto neutro.
    """
    values = [odds.home, odds.draw, odds.away]
    if not all(v is not None and v > 0 for v in values):
        return ImpliedProbabilities(home=33.3, draw=33.3, away=33.4)

    inverse = [1.0 / v for v in values]
    total = sum(inverse)
    home, draw, away = (round(x / total * 100.0, 2) for x in inverse)
    return ImpliedProbabilities(home=home, draw=draw, away=away)

# fifa_penalty/services/pattern_engine.py

import csv
import hashlib
import io
import math
import re
from typing import Any, Callable, Dict, List, Optional, Tuple

from fifa_penalty.schemas.patterns import (
    BetFeatures,
    BetRecord,
    CandidateDecision,
    GroupSummary,
    PatternRule,
)
from fifa_penalty.utils.formatting import clamp, normalize_text

# Familias de liga: (código, palabras que deben aparecer todas)
LEAGUE_FAMILIES: List[Tuple[str, Tuple[Tuple[str, ...], ...]]] = [
    ("FC25_5X5_RUSH", (("5x5", "rush"),)),
    ("FC24_4X4", (("4x4",),)),
    ("FC25_EUROPEAN_LEAGUE", (("ligue", "liga", "league"), ("europ",))),
    ("FC25_CHAMPIONS", (("champions",),)),
    ("FC25_SPAIN", (("espagne", "espana", "spain"),)),
    ("FC25_GERMANY", (("allemagne", "alemania", "germany"),)),
    ("FC25_ENGLAND", (("angleterre", "inglaterra", "england"),)),
]
OTHER_LEAGUE = "OTHER"

WIN_WORDS = {"win", "won", "gagne", "paye", "ganada", "ganado", "pagada"}
LOSS_WORDS = {"loss", "lost", "perdu", "perdida", "perdido"}

OVER_WORDS = ("plus", "over", "mas de")
UNDER_WORDS = ("moins", "under", "menos")
DOUBLE_WORDS = ("double", "doble", "1x ", "x2 ", "12 ", "1x-", "x2-", "12-")
ONE_X_TWO_WORDS = ("1x2", " v1", " v2", " nul", "victoria", "empate", "draw", "win ")

SAFE_SCORE = 85
MODERATE_SCORE = 75

_LINE_RE = re.compile(r"\(([-+]?\d+(?:\.\d+)?)\)")
_NUMBER_RE = re.compile(r"([-+]?\d+(?:\.\d+)?)")
_SCORE_RE = re.compile(r"^(\d+)\s*-\s*(\d+)$")


# ---------------------------------------------------------------------------
# 1) EXTRACCIÓN DE FEATURES
# ---------------------------------------------------------------------------

def parse_score(score: Optional[str]) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    m = _SCORE_RE.match(str(score or "").strip())
    if not m:
        return None, None, None
    home, away = int(m.group(1)), int(m.group(2))
    return home, away, home + away


def league_family(league: Optional[str]) -> str:
    text = normalize_text(league)
    for code, groups in LEAGUE_FAMILIES:
        if all(any(word in text for word in group) for group in groups):
            return code
    return OTHER_LEAGUE


def _mentions_team(text: str, number: int, team: Optional[str]) -> bool:
    markers = [f"{prefix} {number} " for prefix in ("total", "equipe", "equipo", "team", "handicap")]
    name = normalize_text(team).strip()
    if name:
        markers += [f"total {name}", f"handicap {name}"]
    return any(m in text for m in markers)


def classify_option(
    option: Optional[str],
    home: Optional[str] = None,
    away: Optional[str] = None,
) -> Tuple[str, str, Optional[float]]:
    """
    (tipo, lado, línea) a partir de la etiqueta libre del mercado. Entiende
    etiquetas en francés, español e inglés.
    """
    text = f" {normalize_text(option).strip()} "

    line: Optional[float] = None
    m = _LINE_RE.search(text)
    if m:
        line = float(m.group(1))

    is_home = _mentions_team(text, 1, home)
    is_away = _mentions_team(text, 2, away)

    option_type = "unknown"
    if "handicap" in text:
        option_type = "handicap"
    elif any(w in text for w in DOUBLE_WORDS):
        option_type = "double_chance"
    elif any(w in text for w in ONE_X_TWO_WORDS):
        option_type = "1x2"
    elif "total" in text or any(w in text for w in OVER_WORDS + UNDER_WORDS):
        under = any(w in text for w in UNDER_WORDS)
        over = any(w in text for w in OVER_WORDS)
        prefix = "team_total" if (is_home or is_away) else "total"
        if under:
            option_type = f"{prefix}_under"
        elif over:
            option_type = f"{prefix}_over"
        if line is None:
            numbers = _NUMBER_RE.findall(text)
            if numbers:
                line = float(numbers[-1])

    side = "MATCH"
    if option_type == "double_chance":
        side = "DC"
    elif option_type == "handicap" or option_type.startswith("team_total"):
        side = "AWAY" if is_away and not is_home else "HOME"
    elif option_type == "1x2":
        if "v1" in text or (normalize_text(home) and normalize_text(home) in text):
            side = "HOME"
        elif "v2" in text or (normalize_text(away) and normalize_text(away) in text):
            side = "AWAY"

    return option_type, side, line


def issue_label(issue: Optional[str]) -> Optional[int]:
    text = normalize_text(issue).strip()
    if text in WIN_WORDS:
        return 1
    if text in LOSS_WORDS:
        return 0
    return None


def to_features(record: BetRecord) -> BetFeatures:
    home_goals, away_goals, total_goals = parse_score(record.score)
    option_type, side, parsed_line = classify_option(record.option, record.home, record.away)
    label = issue_label(record.issue)

    return BetFeatures(
        id=record.id,
        date=record.date,
        league_family=league_family(record.league),
        home=record.home,
        away=record.away,
        home_goals=home_goals,
        away_goals=away_goals,
        total_goals=total_goals,
        option_type=option_type,
        pick_side=side,
        line_value=record.line_value if record.line_value is not None else parsed_line,
        odds=record.odds,
        stake=record.stake,
        label=label,
        void=1 if label is None else 0,
        option_raw=record.option or "",
    )


def stable_hash(row: BetFeatures) -> str:
    parts = [
        row.date, row.league_family, row.home, row.away, row.option_type,
        row.pick_side, row.line_value, row.odds, row.stake,
    ]
    key = "|".join("" if p is None else str(p) for p in parts)
    return hashlib.sha1(key.encode("utf-8")).hexdigest()


def deduplicate(rows: List[BetFeatures]) -> List[BetFeatures]:
    seen = set()
    out: List[BetFeatures] = []
    for row in rows:
        h = stable_hash(row)
        if h in seen:
            continue
        seen.add(h)
        out.append(row)
    return out


# ---------------------------------------------------------------------------
# 2) ESTADÍSTICAS
# ---------------------------------------------------------------------------

def wilson95(wins: int, n: int) -> Tuple[float, float]:
    """Intervalo de Wilson al 95% para la tasa de acierto."""
    if not n:
        return 0.0, 0.0
    z = 1.96
    phat = wins / n
    denom = 1 + z * z / n
    center = (phat + z * z / (2 * n)) / denom
    half = z * math.sqrt((phat * (1 - phat) + z * z / (4 * n)) / n) / denom
    return max(0.0, center - half), min(1.0, center + half)


def compute_roi(rows: List[BetFeatures]) -> Tuple[float, float, float]:
    stake_sum = 0.0
    profit = 0.0
    for r in rows:
        if r.stake is None or r.odds is None:
            continue
        stake_sum += r.stake
        if r.label == 1:
            profit += r.stake * (r.odds - 1)
        elif r.label == 0:
            profit -= r.stake
    return stake_sum, profit, (profit / stake_sum if stake_sum else 0.0)


def summarize_group(rows: List[BetFeatures]) -> GroupSummary:
    wins = sum(1 for r in rows if r.label == 1)
    losses = sum(1 for r in rows if r.label == 0)
    played = wins + losses
    low, high = wilson95(wins, played)
    stake_sum, profit, roi = compute_roi(rows)

    return GroupSummary(
        n=len(rows),
        played=played,
        wins=wins,
        losses=losses,
        winrate=wins / played if played else 0.0,
        ci95_low=low,
        ci95_high=high,
        stake_sum=stake_sum,
        profit=profit,
        roi=roi,
    )


def group_by(rows: List[BetFeatures], key: Callable[[BetFeatures], Optional[str]]) -> Dict[str, GroupSummary]:
    groups: Dict[str, List[BetFeatures]] = {}
    for row in rows:
        groups.setdefault(key(row) or "UNKNOWN", []).append(row)
    return {k: summarize_group(v) for k, v in groups.items()}


def odds_bucket(odds: Optional[float]) -> str:
    if odds is None:
        return "odds_unknown"
    if odds < 2.0:
        return "odds_1.xx"
    if odds < 2.2:
        return "odds_2.00-2.19"
    if odds <= 2.99:
        return "odds_2.20-2.99"
    return "odds_3.00+"


def _high_over(r: BetFeatures) -> bool:
    return r.option_type == "total_over" and r.line_value is not None and r.line_value >= 5.5


RULES: List[Tuple[str, Callable[[BetFeatures], bool]]] = [
    ("league=FC25_5X5_RUSH", lambda r: r.league_family == "FC25_5X5_RUSH"),
    ("league=FC24_4X4", lambda r: r.league_family == "FC24_4X4"),
    ("league=FC25_EUROPEAN_LEAGUE", lambda r: r.league_family == "FC25_EUROPEAN_LEAGUE"),
    ("option=handicap", lambda r: r.option_type == "handicap"),
    ("option=team_total_over", lambda r: r.option_type == "team_total_over"),
    ("option=total_under", lambda r: r.option_type == "total_under"),
    ("option=total_over_high(>=5.5)", _high_over),
    ("odds=2.20-2.99", lambda r: odds_bucket(r.odds) == "odds_2.20-2.99"),
    ("odds=2.00-2.19", lambda r: odds_bucket(r.odds) == "odds_2.00-2.19"),
    ("odds>=3.00", lambda r: odds_bucket(r.odds) == "odds_3.00+"),
    ("FC25_5X5 + handicap",
     lambda r: r.league_family == "FC25_5X5_RUSH" and r.option_type == "handicap"),
    ("FC25_5X5 + team_total_over",
     lambda r: r.league_family == "FC25_5X5_RUSH" and r.option_type == "team_total_over"),
    ("FC25_5X5 + odds 2.20-2.99",
     lambda r: r.league_family == "FC25_5X5_RUSH" and odds_bucket(r.odds) == "odds_2.20-2.99"),
]


def extract_rules(rows: List[BetFeatures], min_played: int = 5) -> List[PatternRule]:
    playable = [r for r in rows if r.label in (0, 1)]
    rules: List[PatternRule] = []

    for name, predicate in RULES:
        summary = summarize_group([r for r in playable if predicate(r)])
        if summary.played >= min_played:
            rules.append(PatternRule(rule=name, **summary.model_dump()))

    rules.sort(key=lambda r: (r.winrate, r.played), reverse=True)
    return rules


# ---------------------------------------------------------------------------
# 3) MOTOR DE DECISIÓN
# ---------------------------------------------------------------------------

class DecisionEngine:
    """
    Informe del historial + puntuación de candidatos. Mientras haya menos de
    `min_matches` partidos validados, todas las decisiones salen bloqueadas.
    """

    def __init__(
        self,
        records: List[BetRecord],
        total_validated: Optional[int] = None,
        min_matches: int = 50,
        min_rule_played: int = 5,
    ):
        self.records = records
        self.features = [to_features(r) for r in records]
        self.rows = deduplicate(self.features)
        if total_validated is None:
            total_validated = sum(1 for r in self.rows if r.label in (0, 1))
        self.total_validated = total_validated
        self.min_matches = min_matches
        self.min_rule_played = min_rule_played

    def report(self) -> Dict[str, Any]:
        meta = {
            "totalRecords": len(self.records),
            "totalRecordsDedup": len(self.rows),
            "totalValidated": self.total_validated,
            **summarize_group(self.rows).model_dump(by_alias=True),
        }
        return {
            "meta": meta,
            "byLeague": {
                k: v.model_dump(by_alias=True)
                for k, v in group_by(self.rows, lambda r: r.league_family).items()
            },
            "byOption": {
                k: v.model_dump(by_alias=True)
                for k, v in group_by(self.rows, lambda r: r.option_type).items()
            },
            "rules": [r.model_dump(by_alias=True) for r in extract_rules(self.rows, self.min_rule_played)],
        }

    @staticmethod
    def score_candidate(candidate: BetRecord) -> Tuple[float, BetFeatures, List[str]]:
        f = to_features(candidate.model_copy(update={"score": "0-0", "issue": "pending"}))
        score = 50.0
        reasons: List[str] = []

        if f.league_family == "FC25_5X5_RUSH":
            score += 25
            reasons.append("+ Liga fuerte (5x5 Rush)")
        if f.option_type == "handicap":
            score += 18
            reasons.append("+ Opción fuerte (handicap)")
        if f.option_type == "team_total_over":
            score += 14
            reasons.append("+ Patrón team_total_over")
        if f.odds is not None and 2.2 <= f.odds <= 2.99:
            score += 18
            reasons.append("+ Zona de cuota 2.20-2.99")

        if _high_over(f):
            score -= 28
            reasons.append("- Over >= 5.5 inestable")
        if f.option_type == "double_chance":
            score -= 15
            reasons.append("- Doble oportunidad inestable")
        if f.option_type == "handicap" and f.line_value is not None and f.line_value < -2.5:
            score -= 20
            reasons.append("- Handicap demasiado agresivo")
        if f.league_family == "FC25_CHAMPIONS":
            score -= 10
            reasons.append("- Champions League inestable")

        return clamp(score, 0.0, 100.0), f, reasons

    def decide(self, candidate: BetRecord) -> CandidateDecision:
        if self.total_validated < self.min_matches:
            return CandidateDecision(
                status="FILTER_LOCKED",
                playable=False,
                message=f"Filtro bloqueado: {self.total_validated}/{self.min_matches} partidos validados",
            )

        score, features, reasons = self.score_candidate(candidate)
        if score >= SAFE_SCORE:
            tier = "SAFE"
        elif score >= MODERATE_SCORE:
            tier = "MODERATE"
        else:
            tier = "NO_PLAY"

        return CandidateDecision(
            status="OK",
            playable=tier != "NO_PLAY",
            tier=tier,
            score=score,
            reasons=reasons,
            features=features,
        )


# ---------------------------------------------------------------------------
# 4) CSV PARA ENTRENAMIENTO
# ---------------------------------------------------------------------------

CSV_COLUMNS = [
    "id", "date", "league_family", "home", "away", "home_goals", "away_goals",
    "total_goals", "option_type", "line_value", "pick_side", "odds", "stake",
    "label", "void",
]


def to_train_csv(rows: List[BetFeatures]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for r in rows:
        data = r.model_dump()
        writer.writerow(["" if data[c] is None else data[c] for c in CSV_COLUMNS])
    return buf.getvalue()

"""
Payloads de ejemplo con la forma del LiveFeed (Value / I / O1 / O2 / L / S /
SI / SC / E / AE).
"""

import time
from typing import Any, Dict, List, Optional

PENALTY_LEAGUE = "FIFA Penalty - Liga Europea"
OTHER_PENALTY_LEAGUE = "FIFA Penalty - Champions"


def market(g: int, t: int, c: float, p: Optional[float] = None) -> Dict[str, Any]:
    row = {"G": g, "T": t, "C": c}
    if p is not None:
        row["P"] = p
    return row


def default_markets() -> Dict[str, Any]:
    return {
        "E": [
            market(1, 1, 1.95),
            market(1, 2, 3.4),
            market(1, 3, 2.6),
            market(17, 9, 1.55, 2.5),
            market(17, 10, 2.35, 2.5),
        ],
        "AE": [
            {"G": 2, "ME": [market(2, 7, 2.8, -1.5), market(2, 8, 1.38, 1.5)]},
        ],
    }


def make_event(
    event_id: int,
    home: str,
    away: str,
    league: str = PENALTY_LEAGUE,
    starts_in: int = 3600,
    sport_id: int = 85,
    score: Optional[Dict[str, int]] = None,
    clock: str = "",
    status: str = "Début dans 10 min",
    status_code: Optional[int] = 128,
    info: str = "",
    markets: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    event = {
        "I": event_id,
        "O1": home,
        "O2": away,
        "L": league,
        "S": int(time.time()) + starts_in,
        "SI": sport_id,
        "SC": {
            "FS": score or {},
            "CPS": clock,
            "SLS": status,
            "I": info,
        },
    }
    if status_code is not None:
        event["SC"]["GS"] = status_code
    event.update(markets if markets is not None else default_markets())
    return event


def upcoming_events(count: int = 5, league: str = PENALTY_LEAGUE) -> List[Dict[str, Any]]:
    return [
        make_event(1000 + i, f"Home {i}", f"Away {i}", league=league, starts_in=600 + i * 120)
        for i in range(count)
    ]


def started_event(event_id: int = 2000) -> Dict[str, Any]:
    return make_event(
        event_id,
        "Started FC",
        "Late United",
        starts_in=-900,
        score={"S1": 1, "S2": 0},
        clock="35'",
        status="En juego",
        status_code=3,
    )


def sample_payload() -> Dict[str, Any]:
    """5 partidos futuros, 1 empezado, 1 de otra liga y 1 de otro deporte."""
    events = upcoming_events(5)
    events.append(started_event())
    events.append(make_event(3000, "Other League A", "Other League B", league=OTHER_PENALTY_LEAGUE))
    events.append(make_event(4000, "Real Team", "Real Rival", league="Premier League", sport_id=1))
    return {"Success": True, "Error": "", "Value": events}


def no_keyword_payload() -> Dict[str, Any]:
    """Deporte virtual sin ninguna mención a penaltis."""
    return {
        "Value": [
            make_event(5000, "Lions", "Tigers", league="FC 24 4x4"),
            make_event(5001, "Bears", "Wolves", league="FC 25 5x5 Rush"),
            make_event(5002, "Other", "Sport", league="Tennis", sport_id=4),
        ]
    }

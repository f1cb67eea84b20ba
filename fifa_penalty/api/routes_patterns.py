# fifa_penalty/api/routes_patterns.py

from fastapi import APIRouter, Response

from fifa_penalty.schemas.patterns import (
    PatternDecideRequest,
    PatternDecideResponse,
    PatternReportRequest,
    PatternReportResponse,
)
from fifa_penalty.services.pattern_engine import DecisionEngine, to_train_csv

router = APIRouter(
    prefix="/patterns",
    tags=["patterns"],
)


@router.post("/report", response_model=PatternReportResponse)
def patterns_report(payload: PatternReportRequest):
    """
    Resumen del historial de apuestas: acierto, intervalo de Wilson, ROI,
    por liga / tipo de opción y reglas con suficientes partidos jugados.
    """
    engine = DecisionEngine(
        payload.records,
        total_validated=payload.total_validated,
        min_rule_played=payload.min_rule_played,
    )
    return PatternReportResponse(report=engine.report())


@router.post("/decide", response_model=PatternDecideResponse)
def patterns_decide(payload: PatternDecideRequest):
    engine = DecisionEngine(
        payload.records,
        total_validated=payload.total_validated,
        min_matches=payload.min_matches,
        min_rule_played=payload.min_rule_played,
    )
    return PatternDecideResponse(decisions=[engine.decide(c) for c in payload.candidates])


@router.post("/csv")
def patterns_csv(payload: PatternReportRequest):
    engine = DecisionEngine(payload.records)
    return Response(
        content=to_train_csv(engine.rows),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="historial-features.csv"'},
    )

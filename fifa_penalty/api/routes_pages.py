# fifa_penalty/api/routes_pages.py

from pathlib import Path
from typing import Dict, List, Optional

from fastapi import APIRouter, Query, Request
from fastapi.templating import Jinja2Templates

from fifa_penalty.config import settings
from fifa_penalty.core.errors import LiveFeedError, MatchNotFoundError
from fifa_penalty.core.logging import logger
from fifa_penalty.schemas.matches import MatchSummary
from fifa_penalty.services.coupon_engine import RISK_PROFILES, clamp_size, risk_config
from fifa_penalty.services.live_feed import FALLBACK_MODE, get_match_details, get_penalty_matches
from fifa_penalty.utils.formatting import format_kickoff, format_odd

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.filters["odd"] = format_odd
templates.env.filters["kickoff"] = format_kickoff
templates.env.globals["app_name"] = settings.app_name

router = APIRouter(include_in_schema=False)


def group_by_league(matches: List[MatchSummary]) -> Dict[str, List[MatchSummary]]:
    groups: Dict[str, List[MatchSummary]] = {}
    for m in sorted(matches, key=lambda m: (m.league, m.start_time_unix or 0)):
        groups.setdefault(m.league, []).append(m)
    return groups


def render_index(request: Request):
    ctx = {"groups": {}, "feed": None, "error": None, "fallback": False}
    try:
        feed = get_penalty_matches()
        ctx.update(
            feed=feed,
            groups=group_by_league(feed.matches),
            fallback=feed.filter_mode == FALLBACK_MODE,
        )
    except LiveFeedError as e:
        logger.error(f"[PAGES] Índice sin datos: {e}")
        ctx["error"] = str(e)
    return templates.TemplateResponse(request, "index.html", ctx)


@router.get("/")
def index_page(request: Request):
    return render_index(request)


@router.get("/match/{match_id}")
def match_page(request: Request, match_id: str):
    try:
        details = get_match_details(match_id)
    except MatchNotFoundError as e:
        return templates.TemplateResponse(
            request, "match.html", {"details": None, "error": str(e)}, status_code=404
        )
    except LiveFeedError as e:
        return templates.TemplateResponse(
            request, "match.html", {"details": None, "error": str(e)}, status_code=500
        )
    return templates.TemplateResponse(request, "match.html", {"details": details, "error": None})


@router.get("/coupon")
def coupon_page(
    request: Request,
    size: Optional[int] = Query(None),
    risk: Optional[str] = Query(None),
    league: Optional[str] = Query(None),
):
    """Formulario de cupón; size / risk / league en la query lo rellenan (acciones del chat)."""
    leagues: List[str] = []
    try:
        feed = get_penalty_matches()
        leagues = sorted({m.league for m in feed.matches})
    except LiveFeedError as e:
        logger.warning(f"[PAGES] Cupón sin lista de ligas: {e}")

    return templates.TemplateResponse(
        request,
        "coupon.html",
        {
            "leagues": leagues,
            "profiles": RISK_PROFILES,
            "selected_size": clamp_size(size),
            "selected_risk": risk_config(risk).name,
            "selected_league": league or "all",
            "max_size": settings.coupon_max_size,
        },
    )


@router.get("/guide")
def guide_page(request: Request):
    return templates.TemplateResponse(request, "guide.html", {"profiles": RISK_PROFILES})

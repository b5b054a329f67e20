"""
Games API Routes

Read endpoints consumed by the prediction UI. No authentication.

Routes:
    GET  /v1/games          merged games and where they were served from
    GET  /v1/player-stats   one player's record on one champion
"""

import asyncio
from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from core.logging import get_logger
from core.settings import settings
from db.snapshot_store import get_seed_store, get_snapshot_store
from pipelines.extractors import SourceExtractors, build_source_extractors
from pipelines.transformers.names import LEAGUES
from schemas.common import ApiStatus, error_response
from services.game_loader import GameService
from services.player_stats_service import PlayerStatsService

router = APIRouter(tags=["games"])
log = get_logger("games_api")

DEFAULT_DAYS = 7


@lru_cache
def get_sources() -> SourceExtractors:
    """One set of adapters per process, so each source keeps one rate limiter."""
    return build_source_extractors(settings)


def get_game_service() -> GameService:
    return GameService(
        store=get_snapshot_store(settings),
        stats=get_sources().stats,
        seed_store=get_seed_store(settings),
    )


def get_player_stats_service() -> PlayerStatsService:
    return PlayerStatsService(get_sources().stats, since=settings.stats_window_start)


def parse_leagues(value: str) -> list[str]:
    """Split and upper-case a league list: "LCK, lec" -> ["LCK", "LEC"]."""
    return [part.strip().upper() for part in value.split(",") if part.strip()]


@router.get("/games")
async def get_games(
    leagues: str = Query(",".join(LEAGUES), description="Comma-separated league tags"),
    days: int = Query(DEFAULT_DAYS, ge=1, description="Trailing window in days"),
    refresh: bool = Query(False, description="Skip cache and seed, fetch live"),
    service: GameService = Depends(get_game_service),
):
    """
    Return merged games for the requested leagues and window.

    ``source`` is "cache" (fresh snapshot), "seed" (bundled snapshot) or
    "api" (live Leaguepedia fetch).
    """
    league_list = parse_leagues(leagues)
    try:
        games, source = await asyncio.to_thread(service.get_games, league_list, days, refresh)
    except Exception as e:
        log.error("games_fetch_failed", leagues=league_list, days=days, error=str(e), error_type=type(e).__name__)
        return JSONResponse(
            status_code=500,
            content=error_response(
                message="Failed to fetch games",
                status=ApiStatus.SERVER_ERROR,
                details=str(e),
            ),
        )

    log.info("games_served", source=source, count=len(games), leagues=league_list, days=days)
    return {"games": [g.to_wire() for g in games], "source": source}


@router.get("/player-stats")
async def get_player_stats(
    player: Optional[str] = Query(None),
    champion: Optional[str] = Query(None),
    service: PlayerStatsService = Depends(get_player_stats_service),
):
    """Aggregate and ten most recent games for a player on a champion."""
    if not player or not champion:
        return JSONResponse(
            status_code=400,
            content=error_response(
                message="Missing player or champion parameter",
                status=ApiStatus.VALIDATION_ERROR,
                error_code="MISSING_PARAMETER",
            ),
        )

    try:
        summary = await asyncio.to_thread(service.get_player_stats, player, champion)
    except Exception as e:
        log.error("player_stats_failed", player=player, champion=champion, error=str(e))
        return JSONResponse(
            status_code=500,
            content=error_response(
                message="Failed to fetch player stats",
                status=ApiStatus.SERVER_ERROR,
                details=str(e),
            ),
        )

    return summary.to_wire()

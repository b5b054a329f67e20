"""
Player Stats Service

One player's record on one champion, computed from their individual
Leaguepedia game lines.
"""

from core.logging import get_logger
from pipelines.extractors import LeaguepediaExtractor
from schemas.esports import AverageKDA, PlayerChampionSummary, PlayerGame

log = get_logger("player_stats_service")

RECENT_GAMES = 10


def summarize_games(player: str, champion: str, games: list[PlayerGame]) -> PlayerChampionSummary:
    """
    Aggregate game lines (most recent first) into a summary.

    Win rate and average KDA are None when there are no games.
    """
    total = len(games)
    wins = sum(1 for g in games if g.player_win)

    avg_kda = None
    if total > 0:
        avg_kda = AverageKDA(
            kills=sum(g.kills for g in games) / total,
            deaths=sum(g.deaths for g in games) / total,
            assists=sum(g.assists for g in games) / total,
        )

    return PlayerChampionSummary(
        player=player,
        champion=champion,
        games_played=total,
        wins=wins,
        win_rate=wins / total if total > 0 else None,
        avg_kda=avg_kda,
        recent_games=games[:RECENT_GAMES],
    )


class PlayerStatsService:
    """Fetches and summarizes a player's games on a champion."""

    def __init__(self, stats: LeaguepediaExtractor, since: str):
        self.stats = stats
        self.since = since

    def get_player_stats(self, player: str, champion: str) -> PlayerChampionSummary:
        """
        Raises:
            SourceError: If the Leaguepedia lookup fails
        """
        games = self.stats.get_player_champion_games(player, champion, self.since)
        summary = summarize_games(player, champion, games)
        log.info(
            "player_stats_built",
            player=player,
            champion=champion,
            games_played=summary.games_played,
        )
        return summary

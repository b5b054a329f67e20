"""
Leaguepedia Extractor

Historical-stats adapter for the Leaguepedia cargo query API. This is
the slow path: every call goes through the strictest throttle, and the
API reports throttling inside a 200 body as ``error.code == "ratelimited"``.
"""

from datetime import datetime
from typing import Any, Optional

from core.resilience import MalformedResponseError, ThrottledHTTPClient
from pipelines.extractors.base import BaseExtractor
from pipelines.transformers.dates import cutoff_for
from pipelines.transformers.names import cargo_literal, champion_wiki_name, parse_league
from schemas.esports import GameRow, HistoricalStat, PlayerGame


AGGREGATE_FIELDS = ",".join(
    [
        "Link=PlayerName",
        "Champion",
        "COUNT(*)=GamesPlayed",
        'SUM(CASE WHEN PlayerWin="Yes" THEN 1 ELSE 0 END)=Wins',
        "AVG(Kills)=AvgKills",
        "AVG(Deaths)=AvgDeaths",
        "AVG(Assists)=AvgAssists",
    ]
)

PLAYER_GAME_FIELDS = ",".join(
    [
        "GameId",
        "DateTime_UTC",
        "Tournament",
        "Link",
        "Champion",
        "Role",
        "Team",
        "TeamVs",
        "Kills",
        "Deaths",
        "Assists",
        "Gold",
        "CS",
        "PlayerWin",
    ]
)

GAME_FIELDS = ",".join(
    [
        "GameId",
        "MatchId",
        "N_GameInMatch",
        "DateTime_UTC",
        "Tournament",
        "Team1",
        "Team2",
        "WinTeam",
        "Team1Picks",
        "Team2Picks",
        "Team1Bans",
        "Team2Bans",
        "Gamelength",
        "Patch",
    ]
)


def build_cargo_query(
    tables: str,
    fields: str,
    where: str,
    group_by: Optional[str] = None,
    order_by: Optional[str] = None,
    limit: int = 50,
) -> dict[str, str]:
    """Build the query-string parameters of a cargoquery request."""
    params = {
        "action": "cargoquery",
        "tables": tables,
        "fields": fields,
        "where": where,
        "limit": str(limit),
        "format": "json",
    }
    if group_by:
        params["group_by"] = group_by
    if order_by:
        params["order_by"] = order_by
    return params


def _int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def split_list(value: Optional[str]) -> list[str]:
    """Split a comma-separated cargo list field ("Azir,Vi, Jinx")."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class LeaguepediaExtractor(BaseExtractor):
    """
    Extractor for Leaguepedia's cargo tables.

    Provides methods to fetch:
    - Aggregate player+champion stats by exact or partial player link
    - One player's recent games on a champion
    - Recent games and their player lines (live read path)
    """

    def __init__(self, client: ThrottledHTTPClient, base_url: str):
        super().__init__("leaguepedia", client)
        self.base_url = base_url

    def _rows(self, params: dict[str, str]) -> list[dict[str, Any]]:
        data = self._get(self.base_url, params=params)
        if not isinstance(data, dict):
            raise MalformedResponseError("cargoquery response is not an object")
        if "error" in data:
            raise MalformedResponseError(f"cargoquery error: {data['error']}")

        rows = data.get("cargoquery") or []
        if not isinstance(rows, list):
            raise MalformedResponseError("cargoquery is not a list")
        titles = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            title = row.get("title") or {}
            if not isinstance(title, dict):
                raise MalformedResponseError(
                    f"cargoquery row title is {type(title).__name__}, not an object"
                )
            titles.append(title)
        return titles

    # ----------------------------- Aggregates ----------------------------- #

    def _aggregate(self, link_condition: str, champion: str, since: str) -> Optional[HistoricalStat]:
        wiki_champion = cargo_literal(champion_wiki_name(champion))
        params = build_cargo_query(
            tables="ScoreboardPlayers",
            fields=AGGREGATE_FIELDS,
            where=(
                f'{link_condition} AND Champion="{wiki_champion}" '
                f'AND DateTime_UTC >= "{cargo_literal(since)}"'
            ),
            group_by="Link,Champion",
            limit=1,
        )
        rows = self._rows(params)
        if not rows:
            return None

        row = rows[0]
        with self._parsing("champion aggregate"):
            return HistoricalStat(
                player_name=row.get("PlayerName") or "",
                champion=champion,
                games_played=_int(row.get("GamesPlayed")),
                wins=_int(row.get("Wins")),
                avg_kills=_float(row.get("AvgKills")),
                avg_deaths=_float(row.get("AvgDeaths")),
                avg_assists=_float(row.get("AvgAssists")),
            )

    def get_champion_stats(
        self, player_name: str, champion: str, since: str
    ) -> Optional[HistoricalStat]:
        """
        Aggregate one player's games on one champion since ``since``.

        Args:
            player_name: Canonical (wiki link) player name
            champion: Champion id as used in drafts
            since: Window start date, YYYY-MM-DD

        Returns:
            HistoricalStat, or None if the player has no rows
        """
        stat = self._aggregate(f'Link="{cargo_literal(player_name)}"', champion, since)
        if stat is not None and not stat.player_name:
            stat.player_name = player_name
        return stat

    def search_champion_stats(
        self, fragment: str, champion: str, since: str
    ) -> Optional[HistoricalStat]:
        """Like get_champion_stats, matching any player link containing ``fragment``."""
        return self._aggregate(f'Link LIKE "%{cargo_literal(fragment)}%"', champion, since)

    # ----------------------------- Game lists ----------------------------- #

    @staticmethod
    def _player_game(row: dict[str, Any]) -> PlayerGame:
        return PlayerGame(
            game_id=row.get("GameId") or "",
            date_utc=row.get("DateTime UTC") or "",
            tournament=row.get("Tournament") or "",
            player_name=row.get("Link") or "",
            champion=row.get("Champion") or "",
            role=row.get("Role") or "",
            team=row.get("Team") or "",
            team_vs=row.get("TeamVs") or "",
            kills=_int(row.get("Kills")),
            deaths=_int(row.get("Deaths")),
            assists=_int(row.get("Assists")),
            gold=_int(row.get("Gold")),
            cs=_int(row.get("CS")),
            player_win=row.get("PlayerWin") == "Yes",
        )

    def get_player_champion_games(
        self, player_name: str, champion: str, since: str, limit: int = 50
    ) -> list[PlayerGame]:
        """Fetch a player's games on a champion, most recent first."""
        params = build_cargo_query(
            tables="ScoreboardPlayers",
            fields=PLAYER_GAME_FIELDS,
            where=(
                f'Link="{cargo_literal(player_name)}" '
                f'AND Champion="{cargo_literal(champion_wiki_name(champion))}" '
                f'AND DateTime_UTC >= "{cargo_literal(since)}"'
            ),
            order_by="DateTime_UTC DESC",
            limit=limit,
        )
        rows = self._rows(params)
        with self._parsing("player game"):
            games = [self._player_game(row) for row in rows]
        self.log.info("player_games_complete", player=player_name, champion=champion, count=len(games))
        return games

    def get_recent_games(
        self,
        leagues: list[str],
        days_back: int,
        now: Optional[datetime] = None,
        limit: int = 100,
    ) -> list[GameRow]:
        """Fetch completed games in ``leagues`` from the last ``days_back`` days."""
        if not leagues:
            return []

        since = cutoff_for(days_back, now).strftime("%Y-%m-%d")
        tournaments = " OR ".join(
            f'Tournament LIKE "{cargo_literal(league)}%"' for league in leagues
        )
        params = build_cargo_query(
            tables="ScoreboardGames",
            fields=GAME_FIELDS,
            where=f'DateTime_UTC >= "{since}" AND ({tournaments})',
            order_by="DateTime_UTC DESC",
            limit=limit,
        )

        games = []
        for row in self._rows(params):
            with self._parsing("scoreboard game"):
                tournament = row.get("Tournament") or ""
                games.append(
                    GameRow(
                        game_id=row.get("GameId") or "",
                        match_id=row.get("MatchId") or "",
                        game_number=_int(row.get("N GameInMatch")) or 1,
                        date_utc=row.get("DateTime UTC") or "",
                        league=parse_league(tournament) or "",
                        tournament=tournament,
                        team1=row.get("Team1") or "",
                        team2=row.get("Team2") or "",
                        win_team=row.get("WinTeam") or "",
                        team1_picks=split_list(row.get("Team1Picks")),
                        team2_picks=split_list(row.get("Team2Picks")),
                        team1_bans=split_list(row.get("Team1Bans")),
                        team2_bans=split_list(row.get("Team2Bans")),
                        game_length=row.get("Gamelength") or "",
                        patch=row.get("Patch") or "",
                    )
                )

        self.log.info("recent_games_complete", leagues=leagues, count=len(games))
        return games

    def get_players_for_games(self, game_ids: list[str], batch_size: int = 5) -> list[PlayerGame]:
        """Fetch player lines for games, ``batch_size`` games per request."""
        records: list[PlayerGame] = []
        for i in range(0, len(game_ids), batch_size):
            batch = game_ids[i : i + batch_size]
            condition = " OR ".join(f'GameId="{cargo_literal(gid)}"' for gid in batch)
            params = build_cargo_query(
                tables="ScoreboardPlayers",
                fields=PLAYER_GAME_FIELDS,
                where=f"({condition})",
                order_by="DateTime_UTC DESC",
                limit=500,
            )
            rows = self._rows(params)
            with self._parsing("player game"):
                records.extend(self._player_game(row) for row in rows)
        return records

"""
LoL Esports Extractor

Match-schedule adapter for the LoL Esports persisted gateway API
(keyed, fast). Returns completed matches in a trailing window together
with their completed game ids.
"""

from datetime import datetime
from typing import Any, Optional

from core.resilience import MalformedResponseError, SourceError, ThrottledHTTPClient
from pipelines.extractors.base import BaseExtractor
from pipelines.transformers.dates import cutoff_for, parse_utc
from schemas.esports import Match, MatchGame, Strategy, TeamRef


class LolEsportsExtractor(BaseExtractor):
    """
    Extractor for the LoL Esports schedule API.

    Provides methods to fetch:
    - Completed matches for a league within a trailing window
    - Per-match game ids and side assignments (event details)
    """

    def __init__(self, client: ThrottledHTTPClient, base_url: str):
        super().__init__("lolesports", client)
        self.base_url = base_url.rstrip("/")

    def get_schedule_events(self, league_id: str) -> list[dict[str, Any]]:
        """Fetch the raw schedule events for one league."""
        data = self._get(
            f"{self.base_url}/getSchedule",
            params={"hl": "en-US", "leagueId": league_id},
        )
        events = self._dig(data, "data", "schedule", "events")
        return events if isinstance(events, list) else []

    def get_match_games(self, match_id: str) -> tuple[list[MatchGame], list[dict[str, Any]]]:
        """
        Fetch the games of one match.

        Returns:
            (completed games in source order, raw team list with esports ids)

        Raises:
            MalformedResponseError: If the event details have the wrong shape
        """
        data = self._get(
            f"{self.base_url}/getEventDetails",
            params={"hl": "en-US", "id": match_id},
        )
        match = self._dig(data, "data", "event", "match") or {}

        with self._parsing(f"event details for match {match_id}"):
            raw_games = match.get("games") or []
            raw_teams = match.get("teams") or []

            games = []
            for g in raw_games:
                if g.get("state") != "completed" or not g.get("id"):
                    continue
                sides = {
                    t["id"]: t.get("side", "")
                    for t in g.get("teams") or []
                    if t.get("id")
                }
                games.append(
                    MatchGame(
                        game_id=str(g["id"]),
                        number=int(g.get("number") or len(games) + 1),
                        state=g["state"],
                        sides=sides,
                    )
                )
        return games, raw_teams

    def get_recent_matches(
        self,
        league: str,
        league_id: str,
        days_back: int,
        now: Optional[datetime] = None,
    ) -> list[Match]:
        """
        Fetch completed matches for a league started within ``days_back`` days.

        A failed or malformed game-id lookup for one match is logged and the
        match is kept with zero games. A schedule event that can't be read
        is logged and skipped.

        Args:
            league: League tag (e.g., "LCK")
            league_id: LoL Esports league id
            days_back: Trailing window in days
            now: Reference time (defaults to current UTC time)

        Returns:
            Matches in schedule order
        """
        cutoff = cutoff_for(days_back, now)
        events = self.get_schedule_events(league_id)

        matches: list[Match] = []
        for event in events:
            try:
                match = self._match_from_event(league, event, cutoff)
            except MalformedResponseError as e:
                self.log.warning("schedule_event_malformed", league=league, error=str(e))
                continue
            if match is not None:
                matches.append(match)

        self.log.info("schedule_complete", league=league, match_count=len(matches))
        return matches

    def _match_from_event(
        self, league: str, event: Any, cutoff: datetime
    ) -> Optional[Match]:
        """Build a Match from one schedule event; None if it's filtered out."""
        with self._parsing("schedule event"):
            if event.get("type") != "match" or event.get("state") != "completed":
                return None
            started = parse_utc(event.get("startTime"))
            if started is None or started < cutoff:
                return None

            raw_match = event.get("match") or {}
            match_id = raw_match.get("id")
            if not match_id:
                return None

            try:
                games, detail_teams = self.get_match_games(match_id)
            except SourceError as e:
                self.log.warning(
                    "match_details_failed",
                    match_id=match_id,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                games, detail_teams = [], []

            teams = raw_match.get("teams") or []
            team1 = self._team_ref(teams[0] if len(teams) > 0 else None, detail_teams)
            team2 = self._team_ref(teams[1] if len(teams) > 1 else None, detail_teams)
            strategy = raw_match.get("strategy") or {}

            return Match(
                match_id=str(match_id),
                start_time=event["startTime"],
                block_name=event.get("blockName") or "",
                league=league,
                league_slug=(event.get("league") or {}).get("slug") or league.lower(),
                team1=team1,
                team2=team2,
                state=event["state"],
                strategy=Strategy(
                    type=strategy.get("type") or "bestOf",
                    count=int(strategy.get("count") or 3),
                ),
                games=games,
            )

    @staticmethod
    def _team_ref(
        raw: Optional[dict[str, Any]], detail_teams: list[dict[str, Any]]
    ) -> TeamRef:
        """Build a TeamRef, taking the esports team id from the event details."""
        if not raw:
            return TeamRef(name="?", code="?")

        name = raw.get("name") or "?"
        code = raw.get("code") or "?"
        team_id = raw.get("id")
        if not team_id:
            for t in detail_teams:
                if t.get("code") == code or t.get("name") == name:
                    team_id = t.get("id")
                    break

        result = raw.get("result") or {}
        return TeamRef(
            name=name,
            code=code,
            team_id=str(team_id) if team_id else None,
            outcome=result.get("outcome"),
            game_wins=result.get("gameWins"),
        )

"""
Esports Domain Records

Intermediate records produced by the source adapters, the snapshot
layout written by the pipeline, and the merged records served to the UI.
Snapshot and API records serialise with camelCase keys.
"""

from datetime import datetime, timedelta
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


STAT_KEY_SEPARATOR = "|||"


def stat_key(player_name: str, champion: str) -> str:
    """Build the "player|||champion" key used to index champion stats."""
    return f"{player_name}{STAT_KEY_SEPARATOR}{champion}"


class EsportsModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


# ------------------------------- Schedule ------------------------------- #


class TeamRef(EsportsModel):
    name: str
    code: str = ""
    team_id: Optional[str] = None
    outcome: Optional[str] = None  # "win" / "loss" once the match is completed
    game_wins: Optional[int] = None


class Strategy(EsportsModel):
    type: str = "bestOf"
    count: int = 3


class MatchGame(EsportsModel):
    """One game of a match, as listed by the event details lookup."""

    game_id: str
    number: int
    state: str
    # esports team id -> "blue" / "red"
    sides: dict[str, str] = Field(default_factory=dict)


class Match(EsportsModel):
    match_id: str
    start_time: str
    block_name: str = ""
    league: str
    league_slug: str = ""
    team1: TeamRef
    team2: TeamRef
    state: str = "completed"
    strategy: Strategy = Field(default_factory=Strategy)
    games: list[MatchGame] = Field(default_factory=list)

    @property
    def tournament(self) -> str:
        return f"{self.league} {self.block_name}".strip()

    @property
    def winner(self) -> str:
        """Match winner's name; team2 unless team1 is flagged as the winner."""
        return self.team1.name if self.team1.outcome == "win" else self.team2.name

    def completed_games(self) -> list[MatchGame]:
        return [g for g in self.games if g.state == "completed" and g.game_id]


# ------------------------------- Drafts ------------------------------- #


class DraftPick(EsportsModel):
    participant_id: int
    display_name: str
    champion: str
    role: str


class Draft(EsportsModel):
    game_id: str
    blue: list[DraftPick] = Field(default_factory=list)
    red: list[DraftPick] = Field(default_factory=list)
    blue_team_id: str = ""
    red_team_id: str = ""
    blue_bans: list[str] = Field(default_factory=list)
    red_bans: list[str] = Field(default_factory=list)
    patch: str = ""

    def side_of(self, team_id: Optional[str]) -> Optional[str]:
        if team_id and team_id == self.blue_team_id:
            return "blue"
        if team_id and team_id == self.red_team_id:
            return "red"
        return None


# ------------------------------- Historical stats ------------------------------- #


class HistoricalStat(EsportsModel):
    """
    Aggregate of one player's games on one champion over the stats window.

    ``win_rate`` is derived from the counts and is None when no games
    were played.
    """

    player_name: str
    champion: str
    games_played: int = 0
    wins: int = 0
    win_rate: Optional[float] = None
    avg_kills: float = 0.0
    avg_deaths: float = 0.0
    avg_assists: float = 0.0

    @model_validator(mode="after")
    def derive_win_rate(self) -> "HistoricalStat":
        self.win_rate = self.wins / self.games_played if self.games_played > 0 else None
        return self


class PlayerGame(EsportsModel):
    """One player's line in one game (Leaguepedia ScoreboardPlayers row)."""

    game_id: str
    date_utc: str = ""
    tournament: str = ""
    player_name: str
    champion: str
    role: str = ""
    team: str = ""
    team_vs: str = ""
    kills: int = 0
    deaths: int = 0
    assists: int = 0
    gold: int = 0
    cs: int = 0
    player_win: bool = False


class ChampionStat(HistoricalStat):
    """A HistoricalStat as persisted in a snapshot, keyed by display name."""

    key: str

    @classmethod
    def from_stat(cls, key: str, stat: HistoricalStat) -> "ChampionStat":
        return cls(key=key, **stat.model_dump())


# ------------------------------- Snapshot ------------------------------- #


class GameRow(EsportsModel):
    game_id: str
    match_id: str = ""
    game_number: int = 1
    date_utc: str
    league: str
    tournament: str = ""
    team1: str
    team2: str
    team1_code: str = ""
    team2_code: str = ""
    win_team: str = ""
    team1_picks: list[str] = Field(default_factory=list)
    team2_picks: list[str] = Field(default_factory=list)
    team1_bans: list[str] = Field(default_factory=list)
    team2_bans: list[str] = Field(default_factory=list)
    game_length: str = ""
    patch: str = ""


class PlayerRecord(EsportsModel):
    game_id: str
    player_name: str
    champion: str
    role: str = ""
    team: str = ""
    side: str = ""  # "blue" / "red"


class Snapshot(EsportsModel):
    """One complete, timestamped output of the ingestion pipeline."""

    generated_at: datetime
    games: list[GameRow] = Field(default_factory=list)
    player_records: list[PlayerRecord] = Field(default_factory=list)
    champion_stats: list[ChampionStat] = Field(default_factory=list)

    def stats_by_key(self) -> dict[str, ChampionStat]:
        return {s.key: s for s in self.champion_stats}

    def age(self, now: datetime) -> timedelta:
        return now - self.generated_at

    def is_fresh(self, max_age_seconds: float, now: datetime) -> bool:
        return self.age(now).total_seconds() <= max_age_seconds


# ------------------------------- Merged output ------------------------------- #


class PlayerInGame(EsportsModel):
    player_name: str = ""
    champion: str
    role: str = ""
    champion_stats: Optional[ChampionStat] = None


class MergedGameRecord(GameRow):
    """One game as consumed by the UI: game row plus side-assigned rosters."""

    team1_players: list[PlayerInGame] = Field(default_factory=list)
    team2_players: list[PlayerInGame] = Field(default_factory=list)


# ------------------------------- Player stats ------------------------------- #


class AverageKDA(EsportsModel):
    kills: float
    deaths: float
    assists: float


class PlayerChampionSummary(EsportsModel):
    """A player's record on one champion, with the most recent games."""

    player: str
    champion: str
    games_played: int = 0
    wins: int = 0
    win_rate: Optional[float] = None
    avg_kda: Optional[AverageKDA] = Field(default=None, alias="avgKDA")
    recent_games: list[PlayerGame] = Field(default_factory=list)

"""Test doubles and record builders shared by the test modules."""
import json
from datetime import datetime
from typing import Any, Callable, Optional

import pytz

from core.rate_limiter import RateLimiter
from core.resilience import NetworkError, RateLimitedError, ThrottledHTTPClient
from db.snapshot_store import SnapshotStore
from pipelines.esports_snapshot import EsportsSnapshotPipeline
from pipelines.extractors import SourceExtractors
from pipelines.transformers import build_rows
from schemas.esports import (
    Draft,
    DraftPick,
    HistoricalStat,
    Match,
    MatchGame,
    Snapshot,
    Strategy,
    TeamRef,
)

NOW = datetime(2026, 2, 10, 12, 0, 0, tzinfo=pytz.UTC)
ROLES = ["top", "jungle", "mid", "bot", "support"]


# ─────────────────────────────────────────────────────────────
# Time
# ─────────────────────────────────────────────────────────────


class FakeClock:
    """Monotonic clock whose sleep advances time and records the call."""

    def __init__(self, start: float = 1000.0):
        self.now = start
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ─────────────────────────────────────────────────────────────
# HTTP
# ─────────────────────────────────────────────────────────────


class FakeResponse:
    def __init__(self, status_code: int = 200, body: Any = None, raw: Optional[bytes] = None, headers=None):
        self.status_code = status_code
        if raw is not None:
            self.content = raw
        elif body is None:
            self.content = b""
        else:
            self.content = json.dumps(body).encode()
        self.headers = headers or {}
        self.url = "http://fake"

    @property
    def text(self) -> str:
        return self.content.decode(errors="replace")

    def json(self) -> Any:
        return json.loads(self.content)


class FakeSession:
    """
    Stand-in for requests.Session.

    ``handler(url, params)`` returns a FakeResponse; a list of responses
    is served in order, repeating the last one.
    """

    def __init__(self, responses: "list[FakeResponse] | Callable[[str, dict], FakeResponse]"):
        self.responses = responses
        self.calls: list[tuple[str, dict]] = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append((url, dict(params or {})))
        if callable(self.responses):
            return self.responses(url, params or {})
        index = min(len(self.calls) - 1, len(self.responses) - 1)
        return self.responses[index]


def make_client(session: FakeSession, clock: FakeClock, min_interval: float = 0.0, **kwargs) -> ThrottledHTTPClient:
    limiter = RateLimiter("test", min_interval=min_interval, clock=clock, sleep=clock.sleep)
    return ThrottledHTTPClient("test", limiter=limiter, session=session, **kwargs)


# ─────────────────────────────────────────────────────────────
# Domain builders
# ─────────────────────────────────────────────────────────────


def make_match(
    match_id: str,
    game_ids: list[str],
    team1: str = "T1",
    team2: str = "Gen.G",
    league: str = "LCK",
    start_time: str = "2026-02-08T08:00:00Z",
    winner: int = 1,
) -> Match:
    return Match(
        match_id=match_id,
        start_time=start_time,
        block_name="Week 3",
        league=league,
        team1=TeamRef(name=team1, code=team1[:3].upper(), team_id=f"{team1}-id", outcome="win" if winner == 1 else "loss"),
        team2=TeamRef(name=team2, code=team2[:3].upper(), team_id=f"{team2}-id", outcome="win" if winner == 2 else "loss"),
        strategy=Strategy(type="bestOf", count=len(game_ids)),
        games=[
            MatchGame(game_id=gid, number=i + 1, state="completed", sides={})
            for i, gid in enumerate(game_ids)
        ],
    )


def make_draft(
    game_id: str,
    blue_team_id: str = "T1-id",
    red_team_id: str = "Gen.G-id",
    blue_prefix: str = "T1",
    red_prefix: str = "GEN",
) -> Draft:
    blue_champs = ["Jax", "Vi", "Azir", "Jinx", "Nautilus"]
    red_champs = ["Renekton", "Sejuani", "Orianna", "Kaisa", "Rakan"]
    return Draft(
        game_id=game_id,
        blue=[
            DraftPick(participant_id=i + 1, display_name=f"{blue_prefix} P{i + 1}", champion=c, role=ROLES[i])
            for i, c in enumerate(blue_champs)
        ],
        red=[
            DraftPick(participant_id=i + 6, display_name=f"{red_prefix} P{i + 6}", champion=c, role=ROLES[i])
            for i, c in enumerate(red_champs)
        ],
        blue_team_id=blue_team_id,
        red_team_id=red_team_id,
        patch="16.3",
    )


def make_stat(player: str, champion: str, games: int = 10, wins: int = 6) -> HistoricalStat:
    return HistoricalStat(
        player_name=player,
        champion=champion,
        games_played=games,
        wins=wins,
        avg_kills=3.0,
        avg_deaths=2.0,
        avg_assists=7.0,
    )


class MemoryStore(SnapshotStore):
    """Keeps every flushed snapshot; optionally fails on write."""

    def __init__(self, initial: Optional[Snapshot] = None, fail: bool = False):
        super().__init__("memory")
        self.writes: list[Snapshot] = []
        self.initial = initial
        self.fail = fail

    def _read(self) -> Optional[Snapshot]:
        return self.writes[-1] if self.writes else self.initial

    def _write(self, snapshot: Snapshot) -> None:
        if self.fail:
            raise OSError("disk full")
        self.writes.append(snapshot)


class FakeStats:
    """Leaguepedia stand-in: exact links in ``exact``, LIKE matches in ``fragments``."""

    def __init__(self, exact=None, fragments=None, error_for=None):
        self.exact: dict[tuple[str, str], HistoricalStat] = exact or {}
        self.fragments: dict[tuple[str, str], HistoricalStat] = fragments or {}
        self.error_for: set[str] = error_for or set()
        self.calls: list[tuple[str, str, str]] = []

    def get_champion_stats(self, player, champion, since):
        self.calls.append(("exact", player, champion))
        if player in self.error_for:
            raise RateLimitedError("leaguepedia still rate limited", attempts=4)
        return self.exact.get((player, champion))

    def search_champion_stats(self, fragment, champion, since):
        self.calls.append(("contains", fragment, champion))
        return self.fragments.get((fragment, champion))


class AnyPlayerStats(FakeStats):
    """Resolves every short name on every champion."""

    def get_champion_stats(self, player, champion, since):
        self.calls.append(("exact", player, champion))
        return make_stat(player, champion)


# ─────────────────────────────────────────────────────────────
# Source fakes
# ─────────────────────────────────────────────────────────────


class FakeSchedule:
    def __init__(self, by_league=None, failing=()):
        self.by_league = by_league or {}
        self.failing = set(failing)

    def get_recent_matches(self, league, league_id, days_back, now=None):
        if league in self.failing:
            raise NetworkError(f"{league} schedule down", status_code=503)
        return list(self.by_league.get(league, []))


class FakeDrafts:
    def __init__(self, drafts=None, failing=()):
        self.drafts = drafts or {}
        self.failing = set(failing)
        self.requested: list[str] = []

    def get_draft(self, game_id):
        self.requested.append(game_id)
        if game_id in self.failing:
            raise NetworkError("feed down", status_code=502)
        return self.drafts.get(game_id)


class FakeLiveStats:
    """Leaguepedia stand-in for the live read path."""

    def __init__(self, games=None, lines=None, fail=None, stat_errors=()):
        self.games = games or []
        self.lines = lines or []
        self.fail = fail
        self.stat_errors = set(stat_errors)
        self.stat_calls: list[tuple[str, str]] = []

    def get_recent_games(self, leagues, days_back, now=None):
        if self.fail:
            raise self.fail
        return [g for g in self.games if g.league in leagues]

    def get_players_for_games(self, game_ids):
        return [line for line in self.lines if line.game_id in game_ids]

    def get_champion_stats(self, player, champion, since):
        self.stat_calls.append((player, champion))
        if player in self.stat_errors:
            raise RateLimitedError("leaguepedia still rate limited", attempts=4)
        return make_stat(player, champion)


def drafted_snapshot(generated_at: datetime = NOW, league: str = "LCK") -> Snapshot:
    """Snapshot holding one fully drafted LCK game ("g1") and no stats."""
    games, players = build_rows([make_match("m1", ["g1"], league=league)], {"g1": make_draft("g1")})
    return Snapshot(generated_at=generated_at, games=games, player_records=players)


def make_pipeline(config, schedule, drafts, stats, store, sleep=None) -> EsportsSnapshotPipeline:
    sources = SourceExtractors(schedule=schedule, drafts=drafts, stats=stats)
    return EsportsSnapshotPipeline(
        sources=sources,
        store=store,
        app_settings=config,
        sleep=sleep or (lambda seconds: None),
        now=lambda: NOW,
    )

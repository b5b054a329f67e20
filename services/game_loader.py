"""
Game Loader

Read side of the snapshot. GameLoader filters one store's snapshot and
merges it into UI records; GameService picks the source for a request:
fresh cache, then the bundled seed, then a live Leaguepedia fetch.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Callable, Optional

from core.logging import get_logger
from core.resilience import SourceError
from core.settings import Settings, settings
from db.snapshot_store import SnapshotStore
from pipelines.extractors import LeaguepediaExtractor
from pipelines.transformers import merge_rows, parse_league, parse_utc, utc_now
from pipelines.transformers.dates import cutoff_for
from schemas.esports import (
    ChampionStat,
    GameRow,
    MergedGameRecord,
    PlayerGame,
    PlayerRecord,
    Snapshot,
    stat_key,
)

log = get_logger("game_loader")


def filter_games(
    games: Iterable[GameRow], leagues: Iterable[str], cutoff: datetime
) -> list[GameRow]:
    """Games in one of ``leagues`` played at or after ``cutoff``, in snapshot order."""
    wanted = {league.upper() for league in leagues}
    kept = []
    for game in games:
        if parse_league(game.league) not in wanted:
            continue
        played = parse_utc(game.date_utc)
        if played is None or played < cutoff:
            continue
        kept.append(game)
    return kept


class GameLoader:
    """
    Merged games from one snapshot store.

    Usage:
        loader = GameLoader(FileSnapshotStore("cache/seed-data.json"))
        games = loader.load(["LCK", "LEC"], days_back=7)
    """

    def __init__(self, store: SnapshotStore, now: Callable[[], datetime] = utc_now):
        self.store = store
        self.now = now

    def load(self, leagues: Iterable[str], days_back: int) -> list[MergedGameRecord]:
        """Filter and merge the current snapshot; empty when there is none."""
        snapshot = self.store.get()
        if snapshot is None:
            return []
        return self._merge(snapshot, leagues, days_back)

    def load_fresh(
        self, leagues: Iterable[str], days_back: int, max_age_seconds: float
    ) -> Optional[list[MergedGameRecord]]:
        """Like load, but None when the snapshot is missing or older than ``max_age_seconds``."""
        snapshot = self.store.get()
        if snapshot is None:
            return None

        now = self.now()
        if not snapshot.is_fresh(max_age_seconds, now):
            log.info(
                "snapshot_stale",
                store=self.store.name,
                age_seconds=snapshot.age(now).total_seconds(),
                max_age_seconds=max_age_seconds,
            )
            return None
        return self._merge(snapshot, leagues, days_back)

    def _merge(
        self, snapshot: Snapshot, leagues: Iterable[str], days_back: int
    ) -> list[MergedGameRecord]:
        games = filter_games(snapshot.games, leagues, cutoff_for(days_back, self.now()))
        return merge_rows(games, snapshot.player_records, snapshot.stats_by_key())


class GameService:
    """Chooses where a games request is served from and reports it."""

    def __init__(
        self,
        store: SnapshotStore,
        stats: LeaguepediaExtractor,
        seed_store: Optional[SnapshotStore] = None,
        app_settings: Settings = settings,
        now: Callable[[], datetime] = utc_now,
    ):
        self.cache = GameLoader(store, now=now)
        self.seed = GameLoader(seed_store, now=now) if seed_store else None
        self.stats = stats
        self.settings = app_settings
        self.now = now

    def get_games(
        self, leagues: list[str], days_back: int, refresh: bool = False
    ) -> tuple[list[MergedGameRecord], str]:
        """
        Merged games and their source: "cache", "seed" or "api".

        ``refresh`` skips cache and seed. An empty cache or seed result
        falls through to the next source.

        Raises:
            SourceError: If the live fetch fails
        """
        if not refresh:
            cached = self.cache.load_fresh(
                leagues, days_back, self.settings.snapshot_max_age_seconds
            )
            if cached:
                return cached, "cache"

            if self.seed is not None:
                seeded = self.seed.load(leagues, days_back)
                if seeded:
                    return seeded, "seed"

        return self.fetch_live(leagues, days_back), "api"

    def fetch_live(self, leagues: list[str], days_back: int) -> list[MergedGameRecord]:
        """Build merged games straight from Leaguepedia through the same merge engine."""
        games = self.stats.get_recent_games(leagues, days_back, now=self.now())
        if not games:
            return []

        lines = self.stats.get_players_for_games([g.game_id for g in games])
        records = [_player_record(line) for line in lines]
        stats = self._champion_stats(records)

        log.info("live_games_built", games=len(games), players=len(records), stats=len(stats))
        return merge_rows(games, records, stats)

    def _champion_stats(self, records: list[PlayerRecord]) -> dict[str, ChampionStat]:
        """Stats for the first ``live_max_new_stats`` distinct pairs; failures are omitted."""
        stats: dict[str, ChampionStat] = {}
        seen: set[str] = set()

        for record in records:
            key = stat_key(record.player_name, record.champion)
            if key in seen or not record.player_name or not record.champion:
                continue
            if len(seen) >= self.settings.live_max_new_stats:
                break
            seen.add(key)

            try:
                stat = self.stats.get_champion_stats(
                    record.player_name, record.champion, self.settings.stats_window_start
                )
            except SourceError as e:
                log.warning(
                    "live_stat_failed",
                    player=record.player_name,
                    champion=record.champion,
                    error=str(e),
                )
                continue

            if stat is not None:
                stats[key] = ChampionStat.from_stat(key, stat)

        return stats


def _player_record(line: PlayerGame) -> PlayerRecord:
    # Leaguepedia lines carry team names but not sides
    return PlayerRecord(
        game_id=line.game_id,
        player_name=line.player_name,
        champion=line.champion,
        role=line.role,
        team=line.team,
    )

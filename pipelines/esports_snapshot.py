"""
Esports Snapshot Pipeline

Pulls recent completed matches from the LoL Esports schedule, their
drafts from the live stats feed, and each drafted player's champion
history from Leaguepedia, and writes the result as one snapshot.

The snapshot is written twice: once the drafts are known (reusing the
previous snapshot's stats) and again after the slow stats stage.
"""

import time
from collections.abc import Iterable, Mapping
from datetime import datetime
from typing import Callable, Optional

from core.rate_limiter import Sleeper
from core.resilience import SourceError
from core.settings import Settings, settings
from db.snapshot_store import SnapshotStore, get_snapshot_store
from pipelines.base import BasePipeline
from pipelines.config import PipelineConfig
from pipelines.context import PipelineContext
from pipelines.extractors import SourceExtractors, build_source_extractors
from pipelines.reconciler import IdentityReconciler
from pipelines.transformers import build_rows, utc_now
from schemas.esports import (
    ChampionStat,
    Draft,
    GameRow,
    Match,
    PlayerRecord,
    Snapshot,
    stat_key,
)


def unique_pairs(players: Iterable[PlayerRecord]) -> list[tuple[str, str]]:
    """Distinct (display name, champion) pairs in first-seen order."""
    seen: set[tuple[str, str]] = set()
    pairs = []
    for p in players:
        pair = (p.player_name, p.champion)
        if not p.player_name or not p.champion or pair in seen:
            continue
        seen.add(pair)
        pairs.append(pair)
    return pairs


class EsportsSnapshotPipeline(BasePipeline):
    """
    Build the game/player/stats snapshot the read API serves.

    This pipeline:
    1. Fetches completed matches per league within the match window
    2. Fetches the draft for every completed game (cooperative delay between calls)
    3. Writes an intermediate snapshot with the previous run's stats
    4. Reconciles each new (player, champion) pair against Leaguepedia, capped per run
    5. Writes the final snapshot
    """

    config = PipelineConfig(
        name="esports_snapshot",
        display_name="Esports Snapshot",
        description="Schedules, drafts and champion stats for LCK/LPL/LEC/LCS into one snapshot",
        target="snapshot",
        timeout_seconds=3 * 60 * 60,
    )

    def __init__(
        self,
        sources: Optional[SourceExtractors] = None,
        store: Optional[SnapshotStore] = None,
        app_settings: Settings = settings,
        sleep: Sleeper = time.sleep,
        now: Callable[[], datetime] = utc_now,
    ):
        super().__init__()
        self.settings = app_settings
        self.sources = sources or build_source_extractors(app_settings)
        self.store = store or get_snapshot_store(app_settings)
        self.sleep = sleep
        self.now = now
        self.reconciler = IdentityReconciler(
            self.sources.stats, since=app_settings.stats_window_start
        )

    def execute(self, ctx: PipelineContext) -> None:
        """Execute the esports snapshot pipeline."""
        now = self.now()

        with ctx.stage("schedule"):
            matches = self.fetch_matches(ctx, now)

        with ctx.stage("drafts"):
            drafts = self.fetch_drafts(ctx, matches)
            games, players = build_rows(matches, drafts)
            ctx.log.info("rows_built", games=len(games), player_records=len(players))

            previous = self.store.get()
            prior_stats = previous.stats_by_key() if previous else {}
            reused = self._reusable_stats(players, prior_stats)
            self._write(ctx, now, games, players, reused, stage="drafts")

        with ctx.stage("stats"):
            stats = self.fetch_stats(ctx, players, prior_stats)
            self._write(ctx, now, games, players, stats, stage="stats")

        ctx.increment_records(len(games))

    # ----------------------------- Stages ----------------------------- #

    def fetch_matches(self, ctx: PipelineContext, now: datetime) -> list[Match]:
        """
        Schedule stage. A failing league is logged and skipped.

        Raises:
            RuntimeError: If every configured league failed
        """
        matches: list[Match] = []
        failed: list[str] = []

        for league, league_id in self.settings.league_ids.items():
            try:
                league_matches = self.sources.schedule.get_recent_matches(
                    league, league_id, self.settings.match_window_days, now=now
                )
            except SourceError as e:
                ctx.log.warning(
                    "league_schedule_failed",
                    league=league,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                failed.append(league)
                continue
            ctx.log.info("league_schedule_fetched", league=league, matches=len(league_matches))
            matches.extend(league_matches)

        if self.settings.league_ids and len(failed) == len(self.settings.league_ids):
            raise RuntimeError(f"Schedule unavailable for every league: {', '.join(failed)}")

        ctx.log.info("schedule_stage_complete", matches=len(matches), failed_leagues=failed)
        return matches

    def fetch_drafts(self, ctx: PipelineContext, matches: list[Match]) -> dict[str, Draft]:
        """Draft stage. Games without a draft, or whose lookup failed, are skipped."""
        drafts: dict[str, Draft] = {}
        requested = 0
        failed = 0

        for match in matches:
            for game in match.completed_games():
                if requested and self.settings.draft_request_delay > 0:
                    self.sleep(self.settings.draft_request_delay)
                requested += 1

                try:
                    draft = self.sources.drafts.get_draft(game.game_id)
                except SourceError as e:
                    ctx.log.warning(
                        "draft_failed",
                        game_id=game.game_id,
                        match_id=match.match_id,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    failed += 1
                    continue

                if draft is not None:
                    drafts[game.game_id] = draft

        ctx.log.info(
            "draft_stage_complete",
            requested=requested,
            drafted=len(drafts),
            failed=failed,
        )
        return drafts

    def fetch_stats(
        self,
        ctx: PipelineContext,
        players: list[PlayerRecord],
        prior_stats: Mapping[str, ChampionStat],
    ) -> list[ChampionStat]:
        """
        Stats stage.

        Pairs already in the previous snapshot are reused and don't count
        toward ``max_new_stats``; pairs past the cap wait for the next run.
        """
        cap = self.settings.max_new_stats
        stats: list[ChampionStat] = []
        lookups = reused = unresolved = failed = deferred = 0

        for player_name, champion in unique_pairs(players):
            key = stat_key(player_name, champion)
            if key in prior_stats:
                stats.append(prior_stats[key])
                reused += 1
                continue

            if lookups >= cap:
                deferred += 1
                continue
            lookups += 1

            try:
                stat = self.reconciler.resolve(player_name, champion)
            except SourceError as e:
                ctx.log.warning(
                    "stat_lookup_failed",
                    player=player_name,
                    champion=champion,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                failed += 1
                continue

            if stat is None:
                unresolved += 1
                continue
            stats.append(ChampionStat.from_stat(key, stat))

        ctx.log.info(
            "stats_stage_complete",
            lookups=lookups,
            resolved=len(stats) - reused,
            reused=reused,
            unresolved=unresolved,
            failed=failed,
            deferred=deferred,
        )
        return stats

    # ----------------------------- Helpers ----------------------------- #

    @staticmethod
    def _reusable_stats(
        players: list[PlayerRecord], prior_stats: Mapping[str, ChampionStat]
    ) -> list[ChampionStat]:
        keys = [stat_key(name, champion) for name, champion in unique_pairs(players)]
        return [prior_stats[key] for key in keys if key in prior_stats]

    def _write(
        self,
        ctx: PipelineContext,
        generated_at: datetime,
        games: list[GameRow],
        players: list[PlayerRecord],
        stats: list[ChampionStat],
        stage: str,
    ) -> None:
        """Stage and flush one snapshot. A write failure aborts the run."""
        self.store.put(
            Snapshot(
                generated_at=generated_at,
                games=games,
                player_records=players,
                champion_stats=stats,
            )
        )
        self.store.flush()
        ctx.log.info("snapshot_written", stage=stage, games=len(games), stats=len(stats))

"""
Run the esports snapshot pipeline once from the command line.

This script:
1. Initializes logging and the database (pipeline run audit)
2. Runs schedule -> drafts -> stats for the selected leagues
3. Writes the snapshot to the configured store
4. Prints a summary and exits non-zero on failure

Usage:
    python -m scripts.fetch_snapshot --leagues LCK,LEC --days 7 --max-new-stats 50
"""

import sys
from typing import Optional

from core.logging import get_logger, setup_logging
from core.settings import Settings, get_settings
from db.base import close_db, init_db
from db.snapshot_store import get_snapshot_store
from pipelines import EsportsSnapshotPipeline, PipelineAlreadyRunningError
from schemas.common import ApiStatus


def build_settings(
    leagues: Optional[str] = None,
    days: Optional[int] = None,
    max_new_stats: Optional[int] = None,
    output: Optional[str] = None,
) -> Settings:
    """Environment settings with command-line overrides applied."""
    base = get_settings()
    update: dict = {}
    if leagues:
        wanted = {part.strip().upper() for part in leagues.split(",") if part.strip()}
        unknown = wanted - set(base.league_ids)
        if unknown:
            raise ValueError(f"Unknown leagues: {', '.join(sorted(unknown))}")
        update["league_ids"] = {k: v for k, v in base.league_ids.items() if k in wanted}
    if days is not None:
        update["match_window_days"] = days
    if max_new_stats is not None:
        update["max_new_stats"] = max_new_stats
    if output:
        update["snapshot_backend"] = "file"
        update["snapshot_path"] = output
    return base.model_copy(update=update)


def fetch_snapshot(config: Settings) -> int:
    """Run the pipeline; returns a process exit code."""
    log = get_logger("fetch_snapshot")
    init_db(config.database_url)

    try:
        pipeline = EsportsSnapshotPipeline(
            store=get_snapshot_store(config),
            app_settings=config,
        )
        try:
            result = pipeline.run_sync()
        except PipelineAlreadyRunningError as e:
            log.error("fetch_rejected", error=str(e))
            print(f"Not started: {e}")
            return 2

        print("\n" + "=" * 60)
        print("SUMMARY")
        print("=" * 60)
        print(f"Status: {result.status}")
        print(f"Leagues: {', '.join(config.league_ids)}")
        print(f"Games written: {result.records_processed or 0}")
        if result.duration_seconds is not None:
            print(f"Duration: {result.duration_seconds:.1f}s")
        if result.error:
            print(f"Error: {result.error}")

        return 0 if result.status == ApiStatus.SUCCESS.value else 1
    finally:
        close_db()


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Fetch schedules, drafts and stats into a snapshot")
    parser.add_argument("--leagues", type=str, default=None, help="Comma-separated league tags (default: all)")
    parser.add_argument("--days", type=int, default=None, help="Match window in days (default: 14)")
    parser.add_argument("--max-new-stats", type=int, default=None, help="New stat lookups per run (default: 100)")
    parser.add_argument("--output", type=str, default=None, help="Write the snapshot to this JSON file")
    parser.add_argument("--log-level", type=str, default="INFO", help="Log level (default: INFO)")

    args = parser.parse_args()

    setup_logging(get_settings(), log_level=args.log_level, console=True)
    config = build_settings(
        leagues=args.leagues,
        days=args.days,
        max_new_stats=args.max_new_stats,
        output=args.output,
    )
    sys.exit(fetch_snapshot(config))

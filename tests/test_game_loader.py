"""Tests for the read side: snapshot filtering, source selection and the live path."""
from datetime import timedelta

import pytest

from core.resilience import NetworkError
from schemas.esports import GameRow, PlayerGame
from services.game_loader import GameLoader, GameService, filter_games
from tests.helpers import NOW, FakeLiveStats, MemoryStore, drafted_snapshot


def row(game_id, league="LCK", date="2026-02-08T08:00:00Z"):
    return GameRow(game_id=game_id, date_utc=date, league=league, team1="T1", team2="Gen.G")


def live_lines(game_id, count=10):
    return [
        PlayerGame(
            game_id=game_id,
            player_name=f"p{i}",
            champion=f"c{i}",
            role=["Top", "Jungle", "Mid", "Bot", "Support"][i % 5],
            team="T1" if i < 5 else "Gen.G",
        )
        for i in range(count)
    ]


def service(test_settings, cache=None, seed=None, stats=None):
    return GameService(
        store=cache or MemoryStore(),
        stats=stats or FakeLiveStats(),
        seed_store=seed,
        app_settings=test_settings,
        now=lambda: NOW,
    )


class TestFilterGames:
    def test_league_and_window(self):
        games = [
            row("g1"),
            row("g2", league="LPL"),
            row("g3", date="2026-01-01T08:00:00Z"),
            row("g4", league="lec"),
            row("g5", date=""),
        ]
        kept = filter_games(games, ["LCK", "LEC"], NOW - timedelta(days=7))
        assert [g.game_id for g in kept] == ["g1", "g4"]

    def test_cutoff_is_inclusive(self):
        cutoff = NOW - timedelta(days=2)
        kept = filter_games([row("g1", date=cutoff.isoformat())], ["LCK"], cutoff)
        assert len(kept) == 1


class TestGameLoader:
    def test_no_snapshot(self):
        loader = GameLoader(MemoryStore(), now=lambda: NOW)
        assert loader.load(["LCK"], 7) == []
        assert loader.load_fresh(["LCK"], 7, 3600) is None

    def test_stale_snapshot_is_none(self):
        loader = GameLoader(MemoryStore(initial=drafted_snapshot(NOW - timedelta(hours=3))), now=lambda: NOW)
        assert loader.load_fresh(["LCK"], 7, 7200) is None
        assert len(loader.load(["LCK"], 7)) == 1

    def test_fresh_snapshot_is_merged(self):
        loader = GameLoader(MemoryStore(initial=drafted_snapshot()), now=lambda: NOW)
        games = loader.load_fresh(["LCK"], 7, 7200)
        assert [g.game_id for g in games] == ["g1"]
        assert len(games[0].team1_players) == 5


class TestGameService:
    def test_fresh_cache_is_served_first(self, test_settings):
        stats = FakeLiveStats()
        svc = service(test_settings, cache=MemoryStore(initial=drafted_snapshot()), stats=stats)

        games, source = svc.get_games(["LCK"], 7)

        assert source == "cache"
        assert len(games) == 1
        assert stats.stat_calls == []

    def test_seed_used_when_cache_stale(self, test_settings):
        svc = service(
            test_settings,
            cache=MemoryStore(initial=drafted_snapshot(NOW - timedelta(days=1))),
            seed=MemoryStore(initial=drafted_snapshot(NOW - timedelta(days=30))),
        )

        games, source = svc.get_games(["LCK"], 7)

        assert source == "seed"
        assert len(games) == 1

    def test_empty_cache_result_falls_through_to_api(self, test_settings):
        stats = FakeLiveStats(games=[row("lp1", league="LEC")], lines=live_lines("lp1"))
        svc = service(test_settings, cache=MemoryStore(initial=drafted_snapshot()), stats=stats)

        games, source = svc.get_games(["LEC"], 7)

        assert source == "api"
        assert [g.game_id for g in games] == ["lp1"]

    def test_refresh_skips_cache_and_seed(self, test_settings):
        stats = FakeLiveStats(games=[row("lp1")], lines=live_lines("lp1"))
        svc = service(
            test_settings,
            cache=MemoryStore(initial=drafted_snapshot()),
            seed=MemoryStore(initial=drafted_snapshot()),
            stats=stats,
        )

        _, source = svc.get_games(["LCK"], 7, refresh=True)

        assert source == "api"

    def test_live_rosters_split_by_team(self, test_settings):
        stats = FakeLiveStats(games=[row("lp1")], lines=live_lines("lp1"))

        games, _ = service(test_settings, stats=stats).get_games(["LCK"], 7)

        record = games[0]
        assert [p.player_name for p in record.team1_players] == ["p0", "p1", "p2", "p3", "p4"]
        assert record.team1_players[0].champion_stats.key == "p0|||c0"

    def test_live_stat_lookups_are_capped(self, test_settings):
        config = test_settings.model_copy(update={"live_max_new_stats": 3})
        stats = FakeLiveStats(games=[row("lp1")], lines=live_lines("lp1"))

        games, _ = service(config, stats=stats).get_games(["LCK"], 7)

        assert stats.stat_calls == [("p0", "c0"), ("p1", "c1"), ("p2", "c2")]
        with_stats = [p for p in games[0].team1_players + games[0].team2_players if p.champion_stats]
        assert len(with_stats) == 3

    def test_live_stat_failure_is_omitted(self, test_settings):
        stats = FakeLiveStats(games=[row("lp1")], lines=live_lines("lp1"), stat_errors={"p0"})

        games, _ = service(test_settings, stats=stats).get_games(["LCK"], 7)

        assert games[0].team1_players[0].champion_stats is None
        assert games[0].team1_players[1].champion_stats is not None

    def test_live_failure_propagates(self, test_settings):
        stats = FakeLiveStats(fail=NetworkError("leaguepedia down", status_code=503))
        with pytest.raises(NetworkError):
            service(test_settings, stats=stats).get_games(["LCK"], 7)

    def test_no_live_games(self, test_settings):
        games, source = service(test_settings).get_games(["LCK"], 7)
        assert games == []
        assert source == "api"

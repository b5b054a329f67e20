"""Tests for the esports records and their wire layout."""
from datetime import timedelta

from schemas.esports import ChampionStat, HistoricalStat, PlayerChampionSummary, Snapshot, stat_key
from tests.helpers import NOW, make_stat


class TestHistoricalStat:
    def test_win_rate_derived_from_counts(self):
        assert make_stat("Faker", "Azir", games=8, wins=6).win_rate == 0.75

    def test_zero_games_has_no_win_rate(self):
        assert HistoricalStat(player_name="Faker", champion="Azir").win_rate is None

    def test_supplied_win_rate_is_recomputed(self):
        stat = HistoricalStat(player_name="Faker", champion="Azir", games_played=4, wins=1, win_rate=0.9)
        assert stat.win_rate == 0.25

    def test_wire_keys_are_camel_case(self):
        wire = ChampionStat.from_stat(stat_key("Faker", "Azir"), make_stat("Faker", "Azir")).to_wire()
        assert wire["key"] == "Faker|||Azir"
        assert wire["gamesPlayed"] == 10
        assert wire["winRate"] == 0.6
        assert "avgKills" in wire

    def test_accepts_camel_case_input(self):
        stat = HistoricalStat.model_validate({"playerName": "Faker", "champion": "Azir", "gamesPlayed": 2, "wins": 1})
        assert stat.player_name == "Faker"
        assert stat.win_rate == 0.5


class TestSnapshot:
    def test_freshness(self):
        snap = Snapshot(generated_at=NOW)
        assert snap.is_fresh(3600, NOW + timedelta(minutes=59))
        assert not snap.is_fresh(3600, NOW + timedelta(minutes=61))

    def test_stats_by_key(self):
        stat = ChampionStat.from_stat("Faker|||Azir", make_stat("Faker", "Azir"))
        snap = Snapshot(generated_at=NOW, champion_stats=[stat])
        assert snap.stats_by_key()["Faker|||Azir"].games_played == 10


def test_player_summary_uses_kda_alias():
    wire = PlayerChampionSummary(player="Faker", champion="Azir").to_wire()
    assert wire["avgKDA"] is None
    assert wire["winRate"] is None
    assert wire["recentGames"] == []

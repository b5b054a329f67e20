"""Tests for the merge engine that builds per-game records."""
import json

from pipelines.transformers.merge import build_rows, merge, merge_rows, picks_only_roster, team1_side
from schemas.esports import ChampionStat, GameRow, PlayerRecord, stat_key
from tests.helpers import make_draft, make_match, make_stat


def stats_for(*pairs) -> dict[str, ChampionStat]:
    return {
        stat_key(player, champion): ChampionStat.from_stat(stat_key(player, champion), make_stat(player, champion))
        for player, champion in pairs
    }


class TestTeamSide:
    def test_event_details_side_wins(self):
        match = make_match("m1", ["g1"])
        match.games[0].sides = {"T1-id": "red", "Gen.G-id": "blue"}
        assert team1_side(match, match.games[0], make_draft("g1")) == "red"

    def test_draft_team_id_used_without_event_sides(self):
        match = make_match("m1", ["g1"])
        draft = make_draft("g1", blue_team_id="Gen.G-id", red_team_id="T1-id")
        assert team1_side(match, match.games[0], draft) == "red"

    def test_team2_id_resolves_the_other_side(self):
        match = make_match("m1", ["g1"])
        draft = make_draft("g1", blue_team_id="", red_team_id="Gen.G-id")
        assert team1_side(match, match.games[0], draft) == "blue"

    def test_defaults_to_blue(self):
        match = make_match("m1", ["g1"])
        draft = make_draft("g1", blue_team_id="x", red_team_id="y")
        assert team1_side(match, match.games[0], draft) == "blue"


class TestBuildRows:
    def test_only_drafted_games_produce_rows(self):
        matches = [make_match("m1", ["g1", "g2", "g3"]), make_match("m2", ["g4"])]
        drafts = {"g2": make_draft("g2")}

        games, players = build_rows(matches, drafts)

        assert [g.game_id for g in games] == ["g2"]
        assert len(players) == 10
        assert {p.game_id for p in players} == {"g2"}

    def test_row_carries_match_fields(self):
        games, players = build_rows([make_match("m1", ["g1"])], {"g1": make_draft("g1")})
        row = games[0]
        assert row.match_id == "m1"
        assert row.league == "LCK"
        assert row.win_team == "T1"
        assert row.team1_picks == ["Jax", "Vi", "Azir", "Jinx", "Nautilus"]
        assert row.patch == "16.3"

    def test_picks_follow_team1_side(self):
        draft = make_draft("g1", blue_team_id="Gen.G-id", red_team_id="T1-id")
        games, players = build_rows([make_match("m1", ["g1"])], {"g1": draft})

        assert games[0].team1_picks == ["Renekton", "Sejuani", "Orianna", "Kaisa", "Rakan"]
        t1 = [p for p in players if p.team == "T1"]
        assert {p.side for p in t1} == {"red"}

    def test_incomplete_games_skipped(self):
        match = make_match("m1", ["g1", "g2"])
        match.games[1].state = "inProgress"
        games, _ = build_rows([match], {"g1": make_draft("g1"), "g2": make_draft("g2")})
        assert [g.game_id for g in games] == ["g1"]


class TestMergeRows:
    def test_full_rosters_are_role_ordered_and_equal_size(self):
        games, players = build_rows([make_match("m1", ["g1"])], {"g1": make_draft("g1")})
        players.reverse()

        record = merge_rows(games, players, {})[0]

        assert len(record.team1_players) == len(record.team2_players) == 5
        assert [p.role for p in record.team1_players] == ["top", "jungle", "mid", "bot", "support"]
        assert record.team1_players[2].player_name == "T1 P3"
        assert record.team2_players[0].champion == "Renekton"

    def test_stats_attached_by_exact_key(self):
        games, players = build_rows([make_match("m1", ["g1"])], {"g1": make_draft("g1")})
        stats = stats_for(("T1 P3", "Azir"), ("Faker", "Jax"))

        record = merge_rows(games, players, stats)[0]

        by_champ = {p.champion: p for p in record.team1_players}
        assert by_champ["Azir"].champion_stats.games_played == 10
        assert by_champ["Jax"].champion_stats is None

    def test_fewer_than_ten_records_degrade_to_picks(self):
        games, players = build_rows([make_match("m1", ["g1"])], {"g1": make_draft("g1")})

        record = merge_rows(games, players[:9], {})[0]

        assert [p.role for p in record.team1_players] == ["Top", "Jungle", "Mid", "Bot", "Support"]
        assert all(p.player_name == "" and p.champion_stats is None for p in record.team1_players)
        assert [p.champion for p in record.team2_players] == games[0].team2_picks

    def test_team_names_match_case_insensitively(self):
        game = GameRow(game_id="g1", date_utc="2026-02-08", league="LCK", team1="T1", team2="Gen.G")
        players = [
            PlayerRecord(game_id="g1", player_name=f"a{i}", champion=f"c{i}", role="mid", team="t1")
            for i in range(5)
        ] + [
            PlayerRecord(game_id="g1", player_name=f"b{i}", champion=f"d{i}", role="mid", team="GEN.G")
            for i in range(5)
        ]

        record = merge_rows([game], players, {})[0]

        assert {p.player_name for p in record.team1_players} == {f"a{i}" for i in range(5)}

    def test_side_used_when_team_name_unknown(self):
        game = GameRow(game_id="g1", date_utc="2026-02-08", league="LCK", team1="T1", team2="Gen.G")
        players = [
            PlayerRecord(game_id="g1", player_name=f"p{i}", champion=f"c{i}", team="?", side="blue" if i < 5 else "red")
            for i in range(10)
        ]

        record = merge_rows([game], players, {})[0]

        assert [p.player_name for p in record.team2_players] == [f"p{i}" for i in range(5, 10)]

    def test_merge_is_idempotent(self):
        matches = [make_match("m1", ["g1", "g2"]), make_match("m2", ["g3"], team1="HLE", team2="KT")]
        drafts = {"g1": make_draft("g1"), "g3": make_draft("g3", blue_team_id="HLE-id", red_team_id="KT-id")}
        stats = stats_for(("T1 P1", "Jax"))

        first = [r.to_wire() for r in merge(matches, drafts, stats)]
        second = [r.to_wire() for r in merge(matches, drafts, stats)]

        assert json.dumps(first, sort_keys=True) == json.dumps(second, sort_keys=True)
        assert [r["gameId"] for r in first] == ["g1", "g3"]


def test_picks_only_roster_labels_positions():
    roster = picks_only_roster(["A", "B", "C", "D", "E", "F"])
    assert [p.role for p in roster] == ["Top", "Jungle", "Mid", "Bot", "Support", ""]

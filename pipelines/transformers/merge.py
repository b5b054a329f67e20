"""
Merge Engine

Pure functions that join matches, drafts and historical stats into the
denormalized per-game records the UI consumes. Output order follows the
source order of matches and games; players are ordered by role.
"""

from collections.abc import Iterable, Mapping
from typing import Optional

from pipelines.transformers.names import POSITIONAL_ROLES, normalize_name, role_index
from schemas.esports import (
    ChampionStat,
    Draft,
    GameRow,
    Match,
    MatchGame,
    MergedGameRecord,
    PlayerInGame,
    PlayerRecord,
    stat_key,
)


FULL_ROSTER_SIZE = 10


def team1_side(match: Match, game: MatchGame, draft: Draft) -> str:
    """
    Side ("blue"/"red") team1 played on in one game.

    Uses the event details' side list, then the draft's team ids, and
    defaults to blue when neither identifies team1.
    """
    team_id = match.team1.team_id
    side = game.sides.get(team_id) if team_id else None
    if side not in ("blue", "red"):
        side = draft.side_of(team_id)
    if side is None:
        other = draft.side_of(match.team2.team_id)
        side = {"blue": "red", "red": "blue"}.get(other or "", "blue")
    return side


def build_rows(
    matches: Iterable[Match], drafts: Mapping[str, Draft]
) -> tuple[list[GameRow], list[PlayerRecord]]:
    """
    Flatten matches and drafts into snapshot game rows and player records.

    Only completed games with a draft produce rows.
    """
    games: list[GameRow] = []
    players: list[PlayerRecord] = []

    for match in matches:
        for game in match.completed_games():
            draft = drafts.get(game.game_id)
            if draft is None:
                continue

            side1 = team1_side(match, game, draft)
            picks1, picks2 = (draft.blue, draft.red) if side1 == "blue" else (draft.red, draft.blue)
            bans1, bans2 = (
                (draft.blue_bans, draft.red_bans) if side1 == "blue" else (draft.red_bans, draft.blue_bans)
            )

            games.append(
                GameRow(
                    game_id=game.game_id,
                    match_id=match.match_id,
                    game_number=game.number,
                    date_utc=match.start_time,
                    league=match.league,
                    tournament=match.tournament,
                    team1=match.team1.name,
                    team2=match.team2.name,
                    team1_code=match.team1.code,
                    team2_code=match.team2.code,
                    win_team=match.winner,
                    team1_picks=[p.champion for p in picks1],
                    team2_picks=[p.champion for p in picks2],
                    team1_bans=list(bans1),
                    team2_bans=list(bans2),
                    game_length="",
                    patch=draft.patch,
                )
            )

            for side, picks in (("blue", draft.blue), ("red", draft.red)):
                team = match.team1.name if side == side1 else match.team2.name
                players.extend(
                    PlayerRecord(
                        game_id=game.game_id,
                        player_name=p.display_name,
                        champion=p.champion,
                        role=p.role,
                        team=team,
                        side=side,
                    )
                    for p in picks
                )

    return games, players


def _team_slot(player: PlayerRecord, game: GameRow) -> Optional[int]:
    """1 or 2 by team name (case and accents ignored), falling back to side."""
    team = normalize_name(player.team)
    if team and team == normalize_name(game.team1):
        return 1
    if team and team == normalize_name(game.team2):
        return 2
    if player.side == "blue":
        return 1
    if player.side == "red":
        return 2
    return None


def _roster(
    players: list[PlayerRecord], stats: Mapping[str, ChampionStat]
) -> list[PlayerInGame]:
    ordered = sorted(players, key=lambda p: role_index(p.role))
    return [
        PlayerInGame(
            player_name=p.player_name,
            champion=p.champion,
            role=p.role,
            champion_stats=stats.get(stat_key(p.player_name, p.champion)),
        )
        for p in ordered
    ]


def picks_only_roster(picks: list[str]) -> list[PlayerInGame]:
    """Roster without player data: positional role labels, empty names, no stats."""
    return [
        PlayerInGame(
            player_name="",
            champion=champion,
            role=POSITIONAL_ROLES[i] if i < len(POSITIONAL_ROLES) else "",
            champion_stats=None,
        )
        for i, champion in enumerate(picks)
    ]


def merge_rows(
    games: Iterable[GameRow],
    player_records: Iterable[PlayerRecord],
    champion_stats: Mapping[str, ChampionStat],
) -> list[MergedGameRecord]:
    """
    Attach side-assigned, role-ordered rosters to each game row.

    Games with fewer than ten player records degrade to pick-only rosters.
    """
    by_game: dict[str, list[PlayerRecord]] = {}
    for record in player_records:
        by_game.setdefault(record.game_id, []).append(record)

    merged: list[MergedGameRecord] = []
    for game in games:
        game_players = by_game.get(game.game_id, [])

        if len(game_players) >= FULL_ROSTER_SIZE:
            team1 = [p for p in game_players if _team_slot(p, game) == 1]
            team2 = [p for p in game_players if _team_slot(p, game) == 2]
            team1_players = _roster(team1, champion_stats)
            team2_players = _roster(team2, champion_stats)
        else:
            team1_players = picks_only_roster(game.team1_picks)
            team2_players = picks_only_roster(game.team2_picks)

        merged.append(
            MergedGameRecord(
                **game.model_dump(),
                team1_players=team1_players,
                team2_players=team2_players,
            )
        )

    return merged


def merge(
    matches: Iterable[Match],
    drafts: Mapping[str, Draft],
    champion_stats: Mapping[str, ChampionStat],
) -> list[MergedGameRecord]:
    """Merge matches, drafts and stats into one record per drafted game."""
    games, players = build_rows(matches, drafts)
    return merge_rows(games, players, champion_stats)

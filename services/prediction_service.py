"""
Prediction Service

Pure logic for scoring winner predictions against served games.
No I/O - predictions are stored by the client and passed in.
"""

from collections.abc import Iterable
from datetime import datetime
from typing import Optional

from pipelines.transformers import utc_now
from schemas.esports import GameRow
from schemas.predictions import Prediction, ScoreSummary

STREAK_LENGTH = 10


def make_prediction(
    game: GameRow, predicted_winner: str, now: Optional[datetime] = None
) -> Prediction:
    """
    Record a guess for one game, scored against the game's winner.

    Raises:
        ValueError: If the predicted winner is not one of the game's teams
    """
    if predicted_winner not in (game.team1, game.team2):
        raise ValueError(
            f"{predicted_winner!r} did not play in game {game.game_id} "
            f"({game.team1} vs {game.team2})"
        )
    return Prediction(
        game_id=game.game_id,
        predicted_winner=predicted_winner,
        actual_winner=game.win_team,
        correct=predicted_winner == game.win_team,
        timestamp=now or utc_now(),
    )


def record_prediction(predictions: list[Prediction], prediction: Prediction) -> list[Prediction]:
    """Replace any earlier guess for the same game; the new one goes last."""
    return [p for p in predictions if p.game_id != prediction.game_id] + [prediction]


def attach_results(
    predictions: Iterable[Prediction], games: Iterable[GameRow]
) -> list[Prediction]:
    """
    Join predictions to games by game id, refreshing actual winner and
    correctness. Predictions for games not served are dropped.
    """
    by_id = {g.game_id: g for g in games}
    joined = []
    for p in predictions:
        game = by_id.get(p.game_id)
        if game is None:
            continue
        joined.append(
            p.model_copy(
                update={
                    "actual_winner": game.win_team,
                    "correct": p.predicted_winner == game.win_team,
                }
            )
        )
    return joined


def summarize(predictions: list[Prediction], total_games: int) -> ScoreSummary:
    """Score joined predictions; accuracy is None when nothing has been predicted."""
    total = len(predictions)
    correct = sum(1 for p in predictions if p.correct)
    return ScoreSummary(
        correct=correct,
        total=total,
        accuracy=correct / total if total > 0 else None,
        remaining=max(total_games - total, 0),
        streak=[bool(p.correct) for p in predictions[-STREAK_LENGTH:]],
    )


def next_unpredicted(games: list[GameRow], predictions: Iterable[Prediction]) -> int:
    """Index of the first game without a prediction; len(games) when all are done."""
    predicted = {p.game_id for p in predictions}
    for i, game in enumerate(games):
        if game.game_id not in predicted:
            return i
    return len(games)

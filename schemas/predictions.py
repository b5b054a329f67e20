"""
Prediction Records

Predictions belong to the UI; the server only scores them against the
games it serves, joined by game id.
"""

from datetime import datetime
from typing import Optional

from pydantic import Field

from schemas.esports import EsportsModel


class Prediction(EsportsModel):
    game_id: str
    predicted_winner: str
    actual_winner: Optional[str] = None
    correct: Optional[bool] = None
    timestamp: datetime


class ScoreSummary(EsportsModel):
    """Running score over the predictions that match served games."""

    correct: int = 0
    total: int = 0
    accuracy: Optional[float] = None
    remaining: int = 0
    # correctness of the last ten predictions, oldest first
    streak: list[bool] = Field(default_factory=list)

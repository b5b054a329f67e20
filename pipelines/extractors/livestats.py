"""
Live Stats Extractor

Draft adapter for the LoL Esports live stats feed (public, per game).
"""

from typing import Any, Optional

from core.resilience import MalformedResponseError, NotFoundError, ThrottledHTTPClient
from pipelines.extractors.base import BaseExtractor
from pipelines.transformers.names import normalize_role
from schemas.esports import Draft, DraftPick


TEAM_SIZE = 5


class LiveStatsExtractor(BaseExtractor):
    """
    Extractor for the live stats ``window`` endpoint.

    The window's ``gameMetadata`` carries, per side, the esports team id
    and the participants with display name, champion id and role.
    """

    def __init__(self, client: ThrottledHTTPClient, base_url: str):
        super().__init__("livestats", client)
        self.base_url = base_url.rstrip("/")

    def get_draft(self, game_id: str) -> Optional[Draft]:
        """
        Fetch the draft for one game.

        Returns:
            Draft, or None if the feed has no usable data for the game yet
            (still live, not found, or malformed)

        Raises:
            NetworkError, RateLimitedError for transport-level failures
        """
        try:
            data = self._get(f"{self.base_url}/window/{game_id}")
            return self.parse_draft(game_id, data)
        except NotFoundError:
            self.log.debug("draft_not_found", game_id=game_id)
            return None
        except MalformedResponseError as e:
            self.log.warning("draft_malformed", game_id=game_id, error=str(e))
            return None

    def parse_draft(self, game_id: str, data: Any) -> Optional[Draft]:
        """
        Turn a window payload into a Draft; None when metadata is absent.

        Raises:
            MalformedResponseError: If the metadata has the wrong shape
        """
        meta = self._dig(data, "gameMetadata")
        if not meta:
            return None

        with self._parsing("draft metadata"):
            blue_meta = meta.get("blueTeamMetadata") or {}
            red_meta = meta.get("redTeamMetadata") or {}

            return Draft(
                game_id=game_id,
                blue=self._roster(blue_meta),
                red=self._roster(red_meta),
                blue_team_id=str(blue_meta.get("esportsTeamId") or ""),
                red_team_id=str(red_meta.get("esportsTeamId") or ""),
                patch=self._short_patch(meta.get("patchVersion")),
            )

    def _roster(self, team_meta: dict[str, Any]) -> list[DraftPick]:
        participants = team_meta.get("participantMetadata") or []
        if not isinstance(participants, list):
            raise MalformedResponseError("participantMetadata is not a list")

        picks = [
            DraftPick(
                participant_id=int(p.get("participantId") or 0),
                display_name=p.get("summonerName") or p.get("esportsPlayerId") or "",
                champion=p.get("championId") or "",
                role=normalize_role(p.get("role") or ""),
            )
            for p in participants
        ]
        picks.sort(key=lambda p: p.participant_id)
        return picks[:TEAM_SIZE]

    @staticmethod
    def _short_patch(version: Optional[str]) -> str:
        """Trim a full patch version to major.minor (14.3.556.2104 -> 14.3)."""
        if not version:
            return ""
        return ".".join(version.split(".")[:2])

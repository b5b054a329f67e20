"""
Identity Reconciler

Resolves a broadcast display name ("T1 Faker") to the historical stats
Leaguepedia keeps under a canonical wiki name ("Faker"). Strategies are
tried in order and the first success wins:

1. short_name  - last whitespace token of the display name, exact link
2. full_name   - the full display name, exact link (only if it differs)
3. contains    - link containing the short name, first grouped row

The contains strategy can pick the wrong player when several links share
the fragment; it is kept best-effort and order dependent.
"""

from dataclasses import dataclass, field
from typing import Callable, Optional

from core.logging import get_logger
from pipelines.extractors.leaguepedia import LeaguepediaExtractor
from pipelines.transformers.names import short_name
from schemas.esports import HistoricalStat


Strategy = Callable[[str, str], Optional[HistoricalStat]]


@dataclass
class ReconcileAttempt:
    strategy: str
    query: str
    found: bool
    games_played: int = 0


@dataclass
class ReconcileResult:
    """Outcome of one reconciliation, with the trail of attempts."""

    display_name: str
    champion: str
    stat: Optional[HistoricalStat] = None
    strategy: Optional[str] = None
    attempts: list[ReconcileAttempt] = field(default_factory=list)

    @property
    def resolved(self) -> bool:
        return self.stat is not None


class IdentityReconciler:
    """
    Ordered chain of name-matching strategies against the stats source.

    Usage:
        reconciler = IdentityReconciler(leaguepedia, since="2024-01-01")
        result = reconciler.reconcile("T1 Faker", "Azir")
        result.stat  # HistoricalStat under "Faker", or None
    """

    def __init__(self, stats: LeaguepediaExtractor, since: str):
        self.stats = stats
        self.since = since
        self.log = get_logger("reconciler")
        self.strategies: list[tuple[str, Strategy]] = [
            ("short_name", self.by_short_name),
            ("full_name", self.by_full_name),
            ("contains", self.by_contains),
        ]

    # Each strategy: (display_name, champion) -> HistoricalStat | None

    def by_short_name(self, display_name: str, champion: str) -> Optional[HistoricalStat]:
        stat = self.stats.get_champion_stats(short_name(display_name), champion, self.since)
        return stat if stat is not None and stat.games_played > 0 else None

    def by_full_name(self, display_name: str, champion: str) -> Optional[HistoricalStat]:
        if short_name(display_name) == display_name:
            return None
        stat = self.stats.get_champion_stats(display_name, champion, self.since)
        return stat if stat is not None and stat.games_played > 0 else None

    def by_contains(self, display_name: str, champion: str) -> Optional[HistoricalStat]:
        stat = self.stats.search_champion_stats(short_name(display_name), champion, self.since)
        if stat is not None and not stat.player_name:
            stat.player_name = short_name(display_name)
        return stat

    def reconcile(self, display_name: str, champion: str) -> ReconcileResult:
        """
        Run the strategy chain for one (display name, champion) pair.

        Source errors propagate to the caller; a pair with no match
        returns a result with ``stat`` None.
        """
        result = ReconcileResult(display_name=display_name, champion=champion)
        if not display_name or not champion:
            return result

        for name, strategy in self.strategies:
            if name == "full_name" and short_name(display_name) == display_name:
                continue

            stat = strategy(display_name, champion)
            attempt = ReconcileAttempt(
                strategy=name,
                query=display_name if name == "full_name" else short_name(display_name),
                found=stat is not None,
                games_played=stat.games_played if stat else 0,
            )
            result.attempts.append(attempt)
            self.log.debug(
                "reconcile_attempt",
                display_name=display_name,
                champion=champion,
                strategy=name,
                found=attempt.found,
            )

            if stat is not None:
                result.stat = stat
                result.strategy = name
                return result

        self.log.debug("reconcile_unresolved", display_name=display_name, champion=champion)
        return result

    def resolve(self, display_name: str, champion: str) -> Optional[HistoricalStat]:
        """Shorthand: the resolved stat or None."""
        return self.reconcile(display_name, champion).stat

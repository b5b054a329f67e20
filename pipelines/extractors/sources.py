"""
Source Wiring

Builds the three source adapters, each with its own rate limiter,
HTTP client and circuit breaker.
"""

import time
from dataclasses import dataclass
from typing import Optional

import requests

from core.rate_limiter import Clock, RateLimiter, Sleeper
from core.resilience import ThrottledHTTPClient
from core.settings import Settings
from pipelines.extractors.leaguepedia import LeaguepediaExtractor
from pipelines.extractors.livestats import LiveStatsExtractor
from pipelines.extractors.lolesports import LolEsportsExtractor


@dataclass
class SourceExtractors:
    """The adapters for one pipeline run or one API process."""

    schedule: LolEsportsExtractor
    drafts: LiveStatsExtractor
    stats: LeaguepediaExtractor


def _client(
    name: str,
    min_interval: float,
    config: Settings,
    clock: Clock,
    sleep: Sleeper,
    session: Optional[requests.Session],
    headers: Optional[dict[str, str]] = None,
) -> ThrottledHTTPClient:
    return ThrottledHTTPClient(
        name,
        limiter=RateLimiter(name, min_interval=min_interval, clock=clock, sleep=sleep),
        session=session,
        headers=headers,
        cooldown=config.rate_limit_cooldown,
        rate_limit_retries=config.rate_limit_retries,
        max_attempts=config.retry_max_attempts,
        base_delay=config.retry_base_delay,
        max_delay=config.retry_max_delay,
        timeout=config.http_timeout,
        failure_threshold=config.circuit_breaker_threshold,
        recovery_timeout=config.circuit_breaker_timeout,
    )


def build_source_extractors(
    config: Settings,
    clock: Clock = time.monotonic,
    sleep: Sleeper = time.sleep,
    session: Optional[requests.Session] = None,
) -> SourceExtractors:
    """
    Wire up the schedule, draft and historical-stats adapters.

    Args:
        config: Application settings
        clock: Monotonic clock shared by the limiters (fake in tests)
        sleep: Sleep primitive shared by the limiters (fake in tests)
        session: Optional requests session (a stub in tests)
    """
    schedule_client = _client(
        "lolesports",
        config.esports_min_interval,
        config,
        clock,
        sleep,
        session,
        headers={"x-api-key": config.esports_api_key.get_secret_value()},
    )
    drafts_client = _client(
        "livestats", config.live_stats_min_interval, config, clock, sleep, session
    )
    stats_client = _client(
        "leaguepedia", config.leaguepedia_min_interval, config, clock, sleep, session
    )

    return SourceExtractors(
        schedule=LolEsportsExtractor(schedule_client, config.esports_api_url),
        drafts=LiveStatsExtractor(drafts_client, config.live_stats_api_url),
        stats=LeaguepediaExtractor(stats_client, config.leaguepedia_api_url),
    )

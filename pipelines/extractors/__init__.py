"""
Data Extractors

Source adapters for the schedule, draft and historical-stats APIs.
"""

from pipelines.extractors.base import BaseExtractor
from pipelines.extractors.leaguepedia import LeaguepediaExtractor
from pipelines.extractors.livestats import LiveStatsExtractor
from pipelines.extractors.lolesports import LolEsportsExtractor
from pipelines.extractors.sources import SourceExtractors, build_source_extractors

__all__ = [
    "BaseExtractor",
    "LolEsportsExtractor",
    "LiveStatsExtractor",
    "LeaguepediaExtractor",
    "SourceExtractors",
    "build_source_extractors",
]

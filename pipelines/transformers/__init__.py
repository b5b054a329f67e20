"""
Data Transformers

Pure functions for transforming extracted data.
"""

from pipelines.transformers.dates import parse_utc, utc_now
from pipelines.transformers.merge import build_rows, merge, merge_rows
from pipelines.transformers.names import (
    normalize_name,
    normalize_role,
    parse_league,
    role_index,
    short_name,
)

__all__ = [
    "parse_utc",
    "utc_now",
    "build_rows",
    "merge",
    "merge_rows",
    "normalize_name",
    "normalize_role",
    "parse_league",
    "role_index",
    "short_name",
]

"""
Base Extractor

Abstract base class for source adapters.
"""

from abc import ABC
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any, Optional

from core.logging import get_logger
from core.resilience import MalformedResponseError, ThrottledHTTPClient


class BaseExtractor(ABC):
    """
    Abstract base class for source adapters.

    Extractors turn one upstream source's response shapes into the common
    intermediate records in schemas.esports. All network access goes
    through the source's own ThrottledHTTPClient, so each source keeps an
    independent throttle and circuit breaker.

    Subclasses should:
    - Raise the core.resilience taxonomy, never raw requests exceptions
    - Return intermediate records (merging is done by transformers)
    """

    def __init__(self, name: str, client: ThrottledHTTPClient):
        """
        Initialize extractor.

        Args:
            name: Extractor name for logging
            client: Throttled HTTP client for this source
        """
        self.name = name
        self.client = client
        self.log = get_logger(f"extractor.{name}")

    def _get(self, url: str, params: Optional[dict[str, Any]] = None) -> Any:
        return self.client.fetch(url, params=params)

    @staticmethod
    def _dig(data: Any, *path: str) -> Any:
        """
        Walk nested dicts, returning None when any level is missing.

        Raises:
            MalformedResponseError: If an intermediate level is not a dict
        """
        node = data
        for key in path:
            if node is None:
                return None
            if not isinstance(node, dict):
                raise MalformedResponseError(
                    f"expected object at '{key}', got {type(node).__name__}"
                )
            node = node.get(key)
        return node

    @staticmethod
    @contextmanager
    def _parsing(what: str) -> Iterator[None]:
        """
        Report shape errors met while reading a payload as MalformedResponseError.

        Covers wrong-typed values (pydantic ValidationError is a ValueError),
        nulls where objects are expected and missing keys.
        """
        try:
            yield
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise MalformedResponseError(f"unexpected {what} shape: {type(e).__name__}: {e}") from e

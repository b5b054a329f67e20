"""
Resilience Patterns

Error taxonomy for upstream sources and the throttled HTTP client every
source adapter fetches through. The client combines a per-source
RateLimiter, tenacity retries (fixed cooldown for rate-limit signals,
exponential backoff for transport failures) and a per-source circuit
breaker.
"""

from typing import Any, Callable, Optional

import requests
from circuitbreaker import CircuitBreaker, CircuitBreakerError
from tenacity import (
    Retrying,
    retry_if_exception,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_fixed,
)

from core.logging import get_logger
from core.rate_limiter import RateLimiter


# -----------------------------------------------------------------------------
# Custom Exceptions
# -----------------------------------------------------------------------------


class SourceError(Exception):
    """Base class for failures talking to an upstream data source."""

    pass


class NetworkError(SourceError):
    """Raised on transport failures and non-2xx responses (other than 404/429)."""

    retryable = True

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ClientError(NetworkError):
    """Raised on 4xx responses. Not retryable."""

    retryable = False


class CircuitOpenError(NetworkError):
    """Raised when a source's circuit breaker is open."""

    retryable = False


class RateLimitedError(SourceError):
    """Raised when the source keeps throttling after the retry budget is spent."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class NotFoundError(SourceError):
    """Raised on a well-formed empty result (404, 204, empty body)."""

    pass


class MalformedResponseError(SourceError):
    """Raised when a response body is not JSON or has an unexpected shape."""

    pass


class RateLimitSignal(Exception):
    """Internal: one throttled response. Retried after a cooldown."""

    def __init__(self, message: str, retry_after: Optional[int] = None):
        super().__init__(message)
        self.retry_after = retry_after


# -----------------------------------------------------------------------------
# Response classification
# -----------------------------------------------------------------------------


def is_rate_limited_payload(data: Any) -> bool:
    """Detect a rate-limit error delivered inside a 200 JSON body (MediaWiki style)."""
    if not isinstance(data, dict):
        return False
    error = data.get("error")
    return isinstance(error, dict) and error.get("code") == "ratelimited"


def classify_response_error(response: requests.Response, source: str) -> None:
    """
    Classify HTTP response errors and raise appropriate exceptions.

    Raises:
        RateLimitSignal: For 429 responses
        NotFoundError: For 404 and 204 responses
        NetworkError: For 5xx responses
        ClientError: For other 4xx responses
    """
    status = response.status_code

    if status == 429:
        retry_after = response.headers.get("Retry-After")
        raise RateLimitSignal(
            f"{source} rate limited",
            retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
        )

    if status in (204, 404):
        raise NotFoundError(f"{source} returned {status}: {response.url}")

    if status >= 500:
        raise NetworkError(f"{source} server error: {status}", status_code=status)

    if status >= 400:
        raise ClientError(
            f"{source} client error: {status} - {response.text[:200]}",
            status_code=status,
        )


def parse_json(response: requests.Response, source: str) -> Any:
    """Decode a response body, mapping empty and invalid bodies to the taxonomy."""
    if not response.content or not response.content.strip():
        raise NotFoundError(f"{source} returned an empty body: {response.url}")
    try:
        return response.json()
    except ValueError as e:
        raise MalformedResponseError(f"{source} returned invalid JSON: {e}") from e


# -----------------------------------------------------------------------------
# Throttled HTTP Client
# -----------------------------------------------------------------------------


def _is_retryable_network_error(error: BaseException) -> bool:
    return isinstance(error, NetworkError) and error.retryable


class ThrottledHTTPClient:
    """
    HTTP client for one upstream source.

    Every request first passes the source's RateLimiter. A rate-limit
    signal (HTTP 429, or a JSON body for which ``rate_limit_payload``
    returns True) suspends for ``cooldown`` seconds and retries up to
    ``rate_limit_retries`` times before RateLimitedError is raised.
    Transport failures and 5xx responses retry with exponential backoff.

    Example:
        client = ThrottledHTTPClient(
            "leaguepedia",
            limiter=RateLimiter("leaguepedia", min_interval=8.0),
            cooldown=30.0,
        )
        data = client.fetch("https://lol.fandom.com/api.php", params={...})
    """

    def __init__(
        self,
        name: str,
        limiter: RateLimiter,
        session: Optional[requests.Session] = None,
        headers: Optional[dict[str, str]] = None,
        cooldown: float = 30.0,
        rate_limit_retries: int = 3,
        max_attempts: int = 3,
        base_delay: float = 2.0,
        max_delay: float = 30.0,
        timeout: int = 30,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
        rate_limit_payload: Callable[[Any], bool] = is_rate_limited_payload,
    ):
        self.name = name
        self.limiter = limiter
        self.session = session or requests.Session()
        self.headers = headers or {}
        self.cooldown = cooldown
        self.rate_limit_retries = rate_limit_retries
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.timeout = timeout
        self.rate_limit_payload = rate_limit_payload
        self.circuit_breaker = CircuitBreaker(
            failure_threshold=failure_threshold,
            recovery_timeout=recovery_timeout,
            expected_exception=NetworkError,
            name=f"{name}_api",
        )
        self.log = get_logger("http_client").bind(source=name)

    def _send(self, url: str, params: Optional[dict[str, Any]]) -> Any:
        """Dispatch one throttled GET and return the decoded body."""
        self.limiter.acquire()
        self.log.debug("http_request", url=url)

        try:
            response = self.session.get(
                url, params=params, headers=self.headers, timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise NetworkError(f"{self.name} request timed out: {url}") from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(f"{self.name} connection failed: {url}") from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(f"{self.name} request failed: {url} - {e}") from e

        classify_response_error(response, self.name)
        data = parse_json(response, self.name)

        if self.rate_limit_payload(data):
            raise RateLimitSignal(f"{self.name} rate limited (payload)")

        self.log.debug("http_response", url=url, status=response.status_code)
        return data

    def _send_protected(self, url: str, params: Optional[dict[str, Any]]) -> Any:
        try:
            return self.circuit_breaker.call(self._send, url, params)
        except CircuitBreakerError as e:
            raise CircuitOpenError(f"{self.name} circuit open: {e}") from e

    def _send_with_backoff(self, url: str, params: Optional[dict[str, Any]]) -> Any:
        for attempt in Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.base_delay, max=self.max_delay),
            retry=retry_if_exception(_is_retryable_network_error),
            sleep=self.limiter.sleep,
            reraise=True,
        ):
            with attempt:
                return self._send_protected(url, params)

    def fetch(self, url: str, params: Optional[dict[str, Any]] = None) -> Any:
        """
        Fetch a JSON document from the source.

        Raises:
            NetworkError: Transport failure or unexpected status
            RateLimitedError: Still throttled after the retry budget
            NotFoundError: Empty result
            MalformedResponseError: Body is not JSON
        """
        attempts = self.rate_limit_retries + 1
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(attempts),
                wait=wait_fixed(self.cooldown),
                retry=retry_if_exception_type(RateLimitSignal),
                sleep=self.limiter.cooldown,
                reraise=True,
            ):
                with attempt:
                    return self._send_with_backoff(url, params)
        except RateLimitSignal as e:
            self.log.error("rate_limit_exhausted", url=url, attempts=attempts)
            raise RateLimitedError(
                f"{self.name} still rate limited after {attempts} attempts",
                attempts=attempts,
            ) from e


__all__ = [
    "SourceError",
    "NetworkError",
    "ClientError",
    "CircuitOpenError",
    "RateLimitedError",
    "NotFoundError",
    "MalformedResponseError",
    "RateLimitSignal",
    "is_rate_limited_payload",
    "classify_response_error",
    "parse_json",
    "ThrottledHTTPClient",
]

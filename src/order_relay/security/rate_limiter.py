"""
Rate limiting for the order lookup relay.

The relay throttles all callers through one shared key, so the limit is a
global request budget rather than a per-client quota. Limiter state lives in an
explicitly constructed store that is injected into the handler; the in-memory
implementation below is guarded by a lock so concurrent invocations in the same
process update it consistently.
"""

import math
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, Dict, Optional, Tuple

from aws_lambda_powertools.metrics import MetricUnit

from order_relay.handlers.utils.observability import logger, metrics, tracer

# All callers share one counter.
GLOBAL_RATE_LIMIT_KEY = "global"

DEFAULT_REQUESTS_PER_WINDOW = 100
DEFAULT_WINDOW_SECONDS = 15 * 60


class RateLimitAlgorithm(str, Enum):
    """Rate limiting algorithms."""

    FIXED_WINDOW = "fixed_window"
    SLIDING_LOG = "sliding_log"


@dataclass
class RateLimitConfig:
    """Configuration for rate limiting."""

    requests_per_window: int = DEFAULT_REQUESTS_PER_WINDOW
    window_size_seconds: int = DEFAULT_WINDOW_SECONDS
    algorithm: RateLimitAlgorithm = RateLimitAlgorithm.FIXED_WINDOW
    key_prefix: str = "rate_limit"

    def __post_init__(self):
        if self.requests_per_window < 1:
            raise ValueError("requests_per_window must be at least 1")
        if self.window_size_seconds < 1:
            raise ValueError("window_size_seconds must be at least 1")

    def item_key(self, key: str) -> str:
        return f"{self.key_prefix}:{self.algorithm.value}:{key}"


@dataclass
class RateLimitResult:
    """Result of rate limit check."""

    allowed: bool
    limit: int
    remaining: int
    reset_after: int
    retry_after: Optional[int] = None
    current_usage: int = 0

    def to_headers(self) -> Dict[str, str]:
        """Convert to HTTP headers."""
        headers = {
            'X-RateLimit-Limit': str(self.limit),
            'X-RateLimit-Remaining': str(self.remaining),
            'X-RateLimit-Reset': str(self.reset_after)
        }

        if self.retry_after is not None:
            headers['Retry-After'] = str(self.retry_after)

        return headers


class RateLimiter(ABC):
    """Base rate limiter interface."""

    @abstractmethod
    def check_rate_limit(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        """Check if request is within rate limit, consuming one unit of quota when it is."""
        pass

    @abstractmethod
    def reset_rate_limit(self, key: str, config: RateLimitConfig) -> bool:
        """Reset rate limit for a key."""
        pass


class InMemoryRateLimiter(RateLimiter):
    """
    Process-local rate limiter.

    Features:
    - Fixed window: one counter per time bucket, reset when the bucket rolls over
    - Sliding log: timestamps of accepted requests within the trailing window
    - Injectable clock for deterministic tests
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic, enable_metrics: bool = True):
        """
        Initialize in-memory rate limiter.

        Args:
            clock: Monotonic time source in seconds
            enable_metrics: Whether to emit CloudWatch metrics
        """
        self._clock = clock
        self.enable_metrics = enable_metrics
        self._lock = threading.Lock()
        # item key -> (window start, request count)
        self._windows: Dict[str, Tuple[float, int]] = {}
        # item key -> accepted request timestamps
        self._logs: Dict[str, Deque[float]] = {}

    @tracer.capture_method
    def check_rate_limit(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        """Check rate limit using configured algorithm."""
        with self._lock:
            if config.algorithm == RateLimitAlgorithm.FIXED_WINDOW:
                result = self._check_fixed_window(key, config)
            elif config.algorithm == RateLimitAlgorithm.SLIDING_LOG:
                result = self._check_sliding_log(key, config)
            else:
                raise ValueError(f"Unsupported algorithm: {config.algorithm}")

        if self.enable_metrics:
            if result.allowed:
                metrics.add_metric(name="RateLimitAllowed", unit=MetricUnit.Count, value=1)
            else:
                metrics.add_metric(name="RateLimitExceeded", unit=MetricUnit.Count, value=1)

        logger.debug(
            "Rate limit check completed",
            extra={
                "key": key,
                "algorithm": config.algorithm.value,
                "allowed": result.allowed,
                "remaining": result.remaining
            }
        )

        return result

    def _check_fixed_window(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        current_time = self._clock()
        item_key = config.item_key(key)

        window_start, count = self._windows.get(item_key, (current_time, 0))
        if current_time - window_start >= config.window_size_seconds:
            window_start, count = current_time, 0

        reset_after = max(1, math.ceil(window_start + config.window_size_seconds - current_time))

        if count >= config.requests_per_window:
            self._windows[item_key] = (window_start, count)
            return RateLimitResult(
                allowed=False,
                limit=config.requests_per_window,
                remaining=0,
                reset_after=reset_after,
                retry_after=reset_after,
                current_usage=count
            )

        count += 1
        self._windows[item_key] = (window_start, count)

        return RateLimitResult(
            allowed=True,
            limit=config.requests_per_window,
            remaining=config.requests_per_window - count,
            reset_after=reset_after,
            current_usage=count
        )

    def _check_sliding_log(self, key: str, config: RateLimitConfig) -> RateLimitResult:
        current_time = self._clock()
        window_start = current_time - config.window_size_seconds
        entries = self._logs.setdefault(config.item_key(key), deque())

        while entries and entries[0] <= window_start:
            entries.popleft()

        if len(entries) >= config.requests_per_window:
            # Quota frees up when the oldest accepted request leaves the window
            retry_after = max(1, math.ceil(entries[0] + config.window_size_seconds - current_time))
            return RateLimitResult(
                allowed=False,
                limit=config.requests_per_window,
                remaining=0,
                reset_after=retry_after,
                retry_after=retry_after,
                current_usage=len(entries)
            )

        entries.append(current_time)
        reset_after = max(1, math.ceil(entries[0] + config.window_size_seconds - current_time))

        return RateLimitResult(
            allowed=True,
            limit=config.requests_per_window,
            remaining=config.requests_per_window - len(entries),
            reset_after=reset_after,
            current_usage=len(entries)
        )

    @tracer.capture_method
    def reset_rate_limit(self, key: str, config: RateLimitConfig) -> bool:
        """Reset rate limit for a key."""
        item_key = config.item_key(key)
        with self._lock:
            existed = self._windows.pop(item_key, None) is not None
            existed = self._logs.pop(item_key, None) is not None or existed

        logger.info("Rate limit reset", extra={"key": key})

        if self.enable_metrics:
            metrics.add_metric(name="RateLimitReset", unit=MetricUnit.Count, value=1)

        return existed

    def clear(self) -> None:
        """Drop all counters."""
        with self._lock:
            self._windows.clear()
            self._logs.clear()

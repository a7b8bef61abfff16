"""
Security Module for the order lookup relay.

Access control (shared API key), global rate limiting, cross-origin policy and
upstream credential resolution.
"""

from .auth import (
    API_KEY_HEADER,
    APIKeyAuthenticator,
    AuthenticationError,
    AuthenticationResult,
)

from .rate_limiter import (
    GLOBAL_RATE_LIMIT_KEY,
    InMemoryRateLimiter,
    RateLimitAlgorithm,
    RateLimitConfig,
    RateLimiter,
    RateLimitResult,
)

from .origin_policy import (
    OriginPolicy,
    OriginPolicyMode,
)

__all__ = [
    # Authentication
    'API_KEY_HEADER',
    'APIKeyAuthenticator',
    'AuthenticationError',
    'AuthenticationResult',

    # Rate Limiting
    'GLOBAL_RATE_LIMIT_KEY',
    'InMemoryRateLimiter',
    'RateLimitAlgorithm',
    'RateLimitConfig',
    'RateLimiter',
    'RateLimitResult',

    # Origin Policy
    'OriginPolicy',
    'OriginPolicyMode',
]

"""
Dependency container for the order lookup handler.

Everything the handler needs per request (authenticator, rate limiter and its
configuration, origin policy, lookup service) is built once per cold start from
environment variables and held in a single ``RelayDependencies`` instance. The
instance can be replaced wholesale, which is how tests inject a stub upstream
or a fresh rate limiter.
"""

from dataclasses import dataclass
from functools import partial
from typing import Optional

import httpx

from order_relay.dal.upstream_client import UpstreamOrderClient
from order_relay.handlers.models.env_vars import RelayEnvVars, get_handler_env_vars
from order_relay.handlers.utils.observability import logger
from order_relay.logic.order_lookup import OrderLookupService
from order_relay.security.auth import APIKeyAuthenticator
from order_relay.security.origin_policy import OriginPolicy
from order_relay.security.rate_limiter import InMemoryRateLimiter, RateLimitConfig, RateLimiter
from order_relay.security.secrets import resolve_upstream_access_token


@dataclass
class RelayDependencies:
    """Collaborators of the lookup handler."""

    authenticator: APIKeyAuthenticator
    rate_limiter: RateLimiter
    rate_limit_config: RateLimitConfig
    origin_policy: OriginPolicy
    lookup_service: OrderLookupService


def build_relay_dependencies(
    env_vars: RelayEnvVars,
    rate_limiter: Optional[RateLimiter] = None,
    transport: Optional[httpx.BaseTransport] = None,
) -> RelayDependencies:
    """
    Build handler dependencies from validated configuration.

    Args:
        env_vars: Validated environment variables
        rate_limiter: Limiter store; a fresh in-memory store when omitted
        transport: Optional httpx transport for the upstream client

    Returns:
        Dependency container for the handler
    """
    upstream = UpstreamOrderClient(
        base_url=env_vars.UPSTREAM_STORE_URL,
        access_token=partial(resolve_upstream_access_token, env_vars),
        api_version=env_vars.UPSTREAM_API_VERSION,
        timeout_seconds=env_vars.upstream_timeout,
        token_header=env_vars.UPSTREAM_ACCESS_TOKEN_HEADER,
        transport=transport,
    )

    dependencies = RelayDependencies(
        authenticator=APIKeyAuthenticator(env_vars.API_SECRET_KEY),
        rate_limiter=rate_limiter or InMemoryRateLimiter(),
        rate_limit_config=RateLimitConfig(
            requests_per_window=env_vars.RATE_LIMIT_MAX_REQUESTS,
            window_size_seconds=env_vars.RATE_LIMIT_WINDOW_SECONDS,
            algorithm=env_vars.RATE_LIMIT_ALGORITHM,
        ),
        origin_policy=OriginPolicy(
            mode=env_vars.CORS_POLICY,
            allowed_origins=env_vars.allowed_origins,
        ),
        lookup_service=OrderLookupService(
            order_source=upstream,
            strategy=env_vars.LOOKUP_STRATEGY,
        ),
    )

    logger.info("Relay dependencies built", extra={
        "lookup_strategy": env_vars.LOOKUP_STRATEGY.value,
        "cors_policy": env_vars.CORS_POLICY.value,
        "allowed_origins": env_vars.allowed_origins,
        "rate_limit": f"{env_vars.RATE_LIMIT_MAX_REQUESTS}/{env_vars.RATE_LIMIT_WINDOW_SECONDS}s",
        "upstream_timeout_seconds": env_vars.upstream_timeout,
        "token_source": "secrets_manager" if env_vars.UPSTREAM_ACCESS_TOKEN_SECRET_NAME else "environment",
    })

    return dependencies


# Built lazily on first request, replaced by set_relay_dependencies
_relay_dependencies: Optional[RelayDependencies] = None


def get_relay_dependencies() -> RelayDependencies:
    """Get or create the relay dependency container."""
    global _relay_dependencies

    if _relay_dependencies is None:
        _relay_dependencies = build_relay_dependencies(get_handler_env_vars())

    return _relay_dependencies


def set_relay_dependencies(dependencies: Optional[RelayDependencies]) -> None:
    """Replace the dependency container; None rebuilds from the environment on next use."""
    global _relay_dependencies
    _relay_dependencies = dependencies

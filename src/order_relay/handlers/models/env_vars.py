"""
Environment variable models for type-safe configuration.

The relay is configured exclusively through environment variables read once per
cold start. Secrets are held as ``SecretStr`` so they never render in reprs or
log records.
"""

from typing import Annotated, List, Optional

from aws_lambda_env_modeler import get_environment_variables
from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from order_relay.models.lookup import LookupStrategy
from order_relay.security.origin_policy import OriginPolicyMode
from order_relay.security.rate_limiter import RateLimitAlgorithm


class RelayEnvVars(BaseModel):
    """Environment variables for the order lookup handler."""

    # Shared secret expected in the x-api-key header
    API_SECRET_KEY: Annotated[SecretStr, Field(
        description='Shared secret callers must present in the x-api-key header'
    )]

    # Upstream store, e.g. https://example.myshopify.com
    UPSTREAM_STORE_URL: Annotated[str, Field(
        description='Base URL of the upstream order-management API',
        pattern=r'^https://[^\s/]+(/[^\s]*)?$'
    )]

    UPSTREAM_ACCESS_TOKEN: Annotated[Optional[SecretStr], Field(
        default=None,
        description='Upstream access token (mutually exclusive with UPSTREAM_ACCESS_TOKEN_SECRET_NAME)'
    )] = None

    UPSTREAM_ACCESS_TOKEN_SECRET_NAME: Annotated[Optional[str], Field(
        default=None,
        min_length=1,
        description='AWS Secrets Manager secret holding the upstream access token'
    )] = None

    UPSTREAM_ACCESS_TOKEN_HEADER: Annotated[str, Field(
        default='X-Shopify-Access-Token',
        min_length=1,
        description='Header the upstream expects the access token in'
    )] = 'X-Shopify-Access-Token'

    UPSTREAM_API_VERSION: Annotated[str, Field(
        default='2023-04',
        description='Upstream REST API version segment',
        pattern=r'^\d{4}-\d{2}$'
    )] = '2023-04'

    # 0 disables the bound
    UPSTREAM_TIMEOUT_SECONDS: Annotated[float, Field(
        default=10.0,
        description='Seconds to wait for the upstream before answering 504',
        ge=0,
        le=60
    )] = 10.0

    LOOKUP_STRATEGY: Annotated[LookupStrategy, Field(
        description='Upstream call shape: by_id or by_name_filter'
    )]

    CORS_POLICY: Annotated[OriginPolicyMode, Field(
        description='Cross-origin policy: strict (allow-list) or permissive'
    )]

    CORS_ALLOWED_ORIGINS: Annotated[str, Field(
        default='',
        description='Comma separated origins allowed in strict mode'
    )] = ''

    RATE_LIMIT_MAX_REQUESTS: Annotated[int, Field(
        default=100,
        description='Requests allowed per window across all callers',
        ge=1
    )] = 100

    RATE_LIMIT_WINDOW_SECONDS: Annotated[int, Field(
        default=900,
        description='Rate limit window length in seconds',
        ge=1
    )] = 900

    RATE_LIMIT_ALGORITHM: Annotated[RateLimitAlgorithm, Field(
        default=RateLimitAlgorithm.FIXED_WINDOW,
        description='Rate limit algorithm: fixed_window or sliding_log'
    )] = RateLimitAlgorithm.FIXED_WINDOW

    LOG_LEVEL: Annotated[str, Field(
        default='INFO',
        description='Log level for application logging',
        pattern=r'^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$'
    )] = 'INFO'

    @field_validator('API_SECRET_KEY')
    @classmethod
    def validate_secret_not_empty(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError('API_SECRET_KEY must not be empty')
        return v

    @field_validator('UPSTREAM_STORE_URL')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip('/')

    @model_validator(mode='after')
    def validate_cross_field_rules(self) -> 'RelayEnvVars':
        """Enforce exactly one token source and a usable strict allow-list."""
        has_token = self.UPSTREAM_ACCESS_TOKEN is not None and bool(self.UPSTREAM_ACCESS_TOKEN.get_secret_value())
        has_secret_name = bool(self.UPSTREAM_ACCESS_TOKEN_SECRET_NAME)
        if has_token == has_secret_name:
            raise ValueError(
                'exactly one of UPSTREAM_ACCESS_TOKEN or UPSTREAM_ACCESS_TOKEN_SECRET_NAME must be set'
            )
        if self.CORS_POLICY == OriginPolicyMode.STRICT and not self.allowed_origins:
            raise ValueError('CORS_ALLOWED_ORIGINS must list at least one origin when CORS_POLICY is strict')
        return self

    @property
    def allowed_origins(self) -> List[str]:
        """Allow-list parsed from CORS_ALLOWED_ORIGINS."""
        return [origin.strip() for origin in self.CORS_ALLOWED_ORIGINS.split(',') if origin.strip()]

    @property
    def upstream_timeout(self) -> Optional[float]:
        """Upstream timeout in seconds, or None when unbounded."""
        return self.UPSTREAM_TIMEOUT_SECONDS or None


def get_handler_env_vars() -> RelayEnvVars:
    """
    Get typed environment variables for the relay handler.

    Returns:
        Validated environment variables model instance
    """
    return get_environment_variables(model=RelayEnvVars)

"""
Cross-origin policy for the order lookup relay.

Two modes are supported and one must be chosen explicitly in configuration:

- ``strict``: only origins on the allow-list may call the relay from a browser.
  A request carrying any other ``Origin`` header is rejected before the
  upstream is contacted. Requests without an ``Origin`` header (server to
  server callers, curl) are not browser requests and pass.
- ``permissive``: every origin is allowed.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from aws_lambda_powertools.event_handler import CORSConfig

from order_relay.security.auth import API_KEY_HEADER

CORS_MAX_AGE_SECONDS = 600


class OriginPolicyMode(str, Enum):
    """Cross-origin policy modes."""

    STRICT = "strict"
    PERMISSIVE = "permissive"


@dataclass
class OriginPolicy:
    """Origin allow-list evaluated on every non-preflight request."""

    mode: OriginPolicyMode
    allowed_origins: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.mode = OriginPolicyMode(self.mode)
        if self.mode == OriginPolicyMode.STRICT and not self.allowed_origins:
            raise ValueError("strict origin policy requires at least one allowed origin")

    def is_allowed(self, origin: Optional[str]) -> bool:
        """Check whether a request from ``origin`` may proceed."""
        if self.mode == OriginPolicyMode.PERMISSIVE:
            return True
        if not origin:
            return True
        return origin in self.allowed_origins

    def to_cors_config(self) -> CORSConfig:
        """Build the resolver CORS configuration emitting matching response headers."""
        if self.mode == OriginPolicyMode.PERMISSIVE:
            allow_origin, extra_origins = "*", None
        else:
            allow_origin, extra_origins = self.allowed_origins[0], self.allowed_origins[1:] or None

        return CORSConfig(
            allow_origin=allow_origin,
            extra_origins=extra_origins,
            allow_headers=["content-type", API_KEY_HEADER],
            max_age=CORS_MAX_AGE_SECONDS,
        )

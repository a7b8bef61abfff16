"""
API key authentication for the order lookup relay.

Callers present a single process-wide shared secret in the ``x-api-key``
header. The comparison is byte-for-byte and constant time; neither the
presented nor the expected key is ever logged.
"""

import hmac
from abc import ABC, abstractmethod
from typing import Optional, Union

from aws_lambda_powertools.metrics import MetricUnit
from pydantic import BaseModel, SecretStr

from order_relay.handlers.utils.observability import logger, metrics, tracer

API_KEY_HEADER = "x-api-key"


class AuthenticationError(Exception):
    """Base authentication error."""
    pass


class AuthenticationResult(BaseModel):
    """Result of authentication operation."""

    authenticated: bool
    error_message: Optional[str] = None


class Authenticator(ABC):
    """Base authenticator interface."""

    @abstractmethod
    def authenticate(self, credential: Optional[str]) -> AuthenticationResult:
        """Authenticate a credential presented by the caller."""
        pass


class APIKeyAuthenticator(Authenticator):
    """
    Shared-secret authenticator.

    The expected key comes from configuration; it is never a source literal.
    """

    def __init__(self, expected_key: Union[str, SecretStr]):
        """
        Initialize API key authenticator.

        Args:
            expected_key: The configured shared secret

        Raises:
            AuthenticationError: If the configured secret is empty
        """
        if isinstance(expected_key, SecretStr):
            expected_key = expected_key.get_secret_value()
        if not expected_key:
            raise AuthenticationError("Configured API key must not be empty")

        self._expected_key = expected_key.encode("utf-8")

        logger.debug("API Key Authenticator initialized")

    @tracer.capture_method
    def authenticate(self, credential: Optional[str]) -> AuthenticationResult:
        """Authenticate an API key presented by the caller."""
        if not credential:
            metrics.add_metric(name="APIKeyMissing", unit=MetricUnit.Count, value=1)
            logger.info("API key missing from request")
            return AuthenticationResult(authenticated=False, error_message="Missing API key")

        if not hmac.compare_digest(credential.encode("utf-8"), self._expected_key):
            metrics.add_metric(name="APIKeyAuthenticationFailed", unit=MetricUnit.Count, value=1)
            logger.info("API key rejected", extra={"key_present": True})
            return AuthenticationResult(authenticated=False, error_message="Invalid API key")

        return AuthenticationResult(authenticated=True)

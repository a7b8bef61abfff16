"""
Error taxonomy and response helpers for the order lookup relay.

Every failure on the lookup path is raised as a RelayError subclass and
rendered at a single boundary into a JSON body of the form
``{"error": "<message>"}`` with the status code the error carries.
"""

import json
import uuid
from enum import Enum
from typing import Any, Dict, Optional

from aws_lambda_powertools.event_handler import Response, content_types
from aws_lambda_powertools.metrics import MetricUnit

from order_relay.handlers.utils.observability import logger, metrics, tracer

NOT_FOUND_MESSAGE = "Order not found"
INVALID_API_KEY_MESSAGE = "Forbidden: Invalid API Key"
ORIGIN_DENIED_MESSAGE = "Not allowed by CORS"
RATE_LIMITED_MESSAGE = "Too many requests, please try again later."
TIMEOUT_MESSAGE = "Request timed out. Try again later."
TOKEN_UNAVAILABLE_MESSAGE = "Upstream credentials unavailable"


class ErrorCategory(str, Enum):
    """Error categories for classification."""
    VALIDATION = "VALIDATION"
    SECURITY = "SECURITY"
    RATE_LIMIT = "RATE_LIMIT"
    BUSINESS_LOGIC = "BUSINESS_LOGIC"
    EXTERNAL_SERVICE = "EXTERNAL_SERVICE"
    TIMEOUT = "TIMEOUT"
    INFRASTRUCTURE = "INFRASTRUCTURE"


class RelayError(Exception):
    """Base exception class for relay errors."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = 500,
        category: ErrorCategory = ErrorCategory.INFRASTRUCTURE,
        retry_after: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.category = category
        self.retry_after = retry_after
        self.headers = headers or {}
        self.error_id = str(uuid.uuid4())

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_id": self.error_id,
            "error_code": self.error_code,
            "message": self.message,
            "status_code": self.status_code,
            "category": self.category.value,
            "retry_after": self.retry_after,
        }


class InvalidLookupRequestError(RelayError):
    """Raised when the order identifier fails validation."""

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="INVALID_REQUEST",
            status_code=400,
            category=ErrorCategory.VALIDATION,
        )


class AuthDeniedError(RelayError):
    """Raised when the shared secret is missing or wrong."""

    def __init__(self):
        super().__init__(
            message=INVALID_API_KEY_MESSAGE,
            error_code="AUTH_DENIED",
            status_code=403,
            category=ErrorCategory.SECURITY,
        )


class OriginDeniedError(RelayError):
    """Raised when a browser origin is outside the allow-list."""

    def __init__(self, origin: str):
        super().__init__(
            message=ORIGIN_DENIED_MESSAGE,
            error_code="ORIGIN_DENIED",
            status_code=403,
            category=ErrorCategory.SECURITY,
        )
        self.origin = origin


class RateLimitedError(RelayError):
    """Raised when the global request quota is exhausted."""

    def __init__(
        self,
        limit: int,
        window_seconds: int,
        retry_after: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(
            message=RATE_LIMITED_MESSAGE,
            error_code="RATE_LIMITED",
            status_code=429,
            category=ErrorCategory.RATE_LIMIT,
            retry_after=retry_after,
            headers=headers,
        )
        self.limit = limit
        self.window_seconds = window_seconds


class OrderNotFoundError(RelayError):
    """Raised when the upstream reports no matching order."""

    def __init__(self, order_id: str):
        super().__init__(
            message=NOT_FOUND_MESSAGE,
            error_code="ORDER_NOT_FOUND",
            status_code=404,
            category=ErrorCategory.BUSINESS_LOGIC,
        )
        self.order_id = order_id


class UpstreamStatusError(RelayError):
    """Raised when the upstream answers with a non-success status.

    The upstream status is passed through to the caller unchanged.
    """

    def __init__(self, status_code: int, reason: str):
        super().__init__(
            message=f"Upstream API error: {reason}",
            error_code="UPSTREAM_ERROR",
            status_code=status_code,
            category=ErrorCategory.EXTERNAL_SERVICE,
        )
        self.reason = reason


class UpstreamTimeoutError(RelayError):
    """Raised when the upstream call exceeds the configured bound."""

    def __init__(self, timeout_seconds: Optional[float] = None):
        super().__init__(
            message=TIMEOUT_MESSAGE,
            error_code="UPSTREAM_TIMEOUT",
            status_code=504,
            category=ErrorCategory.TIMEOUT,
        )
        self.timeout_seconds = timeout_seconds


class UpstreamTokenUnavailableError(RelayError):
    """Raised when the upstream access token cannot be resolved."""

    def __init__(self, retry_after: int = 30):
        super().__init__(
            message=TOKEN_UNAVAILABLE_MESSAGE,
            error_code="UPSTREAM_TOKEN_UNAVAILABLE",
            status_code=503,
            category=ErrorCategory.INFRASTRUCTURE,
            retry_after=retry_after,
        )


class InternalRelayError(RelayError):
    """Raised for network and parse failures.

    The raw error message is returned to the caller.
    """

    def __init__(self, message: str):
        super().__init__(
            message=message,
            error_code="INTERNAL_ERROR",
            status_code=500,
            category=ErrorCategory.INFRASTRUCTURE,
        )


@tracer.capture_method
def log_error_metrics(error: RelayError) -> None:
    """Log error metrics for monitoring and alerting."""
    metrics.add_metric(name="ErrorCount", unit=MetricUnit.Count, value=1)
    metrics.add_metric(name=f"Error{error.category.value}Count", unit=MetricUnit.Count, value=1)

    tracer.put_annotation("error_code", error.error_code)
    tracer.put_annotation("error_category", error.category.value)

    log = logger.error if error.status_code >= 500 else logger.warning
    log(
        "Relay error occurred",
        extra={
            "error_id": error.error_id,
            "error_code": error.error_code,
            "error_category": error.category.value,
            "error_message": error.message,
            "status_code": error.status_code,
        }
    )


def dump_json(payload: Any) -> str:
    """Serialize compactly with key order preserved."""
    return json.dumps(payload, separators=(",", ":"), ensure_ascii=False)


def format_error_response(error: RelayError) -> Dict[str, Any]:
    """Format error for API response."""
    return {"error": error.message}


def create_api_response(
    status_code: int,
    body: Any,
    headers: Optional[Dict[str, str]] = None,
) -> Response:
    """Create a JSON response for the REST resolver."""
    default_headers = {
        "X-Request-ID": str(uuid.uuid4()),
    }

    if headers:
        default_headers.update(headers)

    return Response(
        status_code=status_code,
        content_type=content_types.APPLICATION_JSON,
        body=body if isinstance(body, str) else dump_json(body),
        headers=default_headers,
    )


def create_error_response(error: RelayError) -> Response:
    """Render a RelayError as an API response."""
    headers = dict(error.headers)
    if error.retry_after:
        headers["Retry-After"] = str(error.retry_after)

    return create_api_response(
        status_code=error.status_code,
        body=format_error_response(error),
        headers=headers,
    )

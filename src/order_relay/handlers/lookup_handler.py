"""
Order Lookup Handler - Lambda function relaying order lookups upstream.

Request pipeline for ``GET /order/<order_id>``:

1. API key check (``x-api-key``), 403 on failure
2. Global rate limit, 429 once the window budget is spent
3. Origin policy, 403 for a disallowed browser origin
4. Upstream lookup and envelope unwrapping

Steps 1-3 run as middlewares on the lookup route and raise before the upstream
is contacted. All failures are rendered by the exception handlers registered in
``build_resolver``. CORS preflight requests are answered by the resolver itself
and never reach the middlewares.
"""

from typing import Any, Dict, Optional
from urllib.parse import unquote

from aws_lambda_powertools.event_handler import APIGatewayRestResolver, Response
from aws_lambda_powertools.event_handler.api_gateway import Router
from aws_lambda_powertools.event_handler.exceptions import NotFoundError
from aws_lambda_powertools.event_handler.middlewares import NextMiddleware
from aws_lambda_powertools.logging import correlation_paths
from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities.typing import LambdaContext
from pydantic import ValidationError

from order_relay.handlers.utils.dependencies import RelayDependencies, get_relay_dependencies
from order_relay.handlers.utils.errors import (
    AuthDeniedError,
    InternalRelayError,
    InvalidLookupRequestError,
    OriginDeniedError,
    RateLimitedError,
    RelayError,
    create_api_response,
    create_error_response,
    dump_json,
    log_error_metrics,
)
from order_relay.handlers.utils.observability import logger, metrics, tracer
from order_relay.models.lookup import LookupRequest
from order_relay.security.auth import API_KEY_HEADER
from order_relay.security.rate_limiter import GLOBAL_RATE_LIMIT_KEY

ORDER_PATH = "/order/<order_id>"
MISCONFIGURED_MESSAGE = "Relay is misconfigured"
ROUTE_NOT_FOUND_MESSAGE = "Not found"

router = Router()


def _get_header(app: APIGatewayRestResolver, name: str) -> Optional[str]:
    headers = app.current_event.headers or {}
    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def enforce_api_key(app: APIGatewayRestResolver, next_middleware: NextMiddleware) -> Response:
    """Reject requests without the configured shared secret."""
    result = get_relay_dependencies().authenticator.authenticate(_get_header(app, API_KEY_HEADER))
    if not result.authenticated:
        metrics.add_metric(name="AuthDenied", unit=MetricUnit.Count, value=1)
        raise AuthDeniedError()

    return next_middleware(app)


def enforce_rate_limit(app: APIGatewayRestResolver, next_middleware: NextMiddleware) -> Response:
    """Apply the global request budget."""
    dependencies = get_relay_dependencies()
    config = dependencies.rate_limit_config
    result = dependencies.rate_limiter.check_rate_limit(GLOBAL_RATE_LIMIT_KEY, config)

    if not result.allowed:
        metrics.add_metric(name="RateLimited", unit=MetricUnit.Count, value=1)
        raise RateLimitedError(
            limit=config.requests_per_window,
            window_seconds=config.window_size_seconds,
            retry_after=result.retry_after,
            headers=result.to_headers(),
        )

    response = next_middleware(app)
    response.headers.update(result.to_headers())
    return response


def enforce_origin_policy(app: APIGatewayRestResolver, next_middleware: NextMiddleware) -> Response:
    """Fail closed for browser origins outside the allow-list."""
    origin = _get_header(app, "origin")
    if not get_relay_dependencies().origin_policy.is_allowed(origin):
        metrics.add_metric(name="OriginDenied", unit=MetricUnit.Count, value=1)
        logger.warning("Request origin not allowed", extra={"origin": origin})
        raise OriginDeniedError(origin)

    return next_middleware(app)


@router.get(ORDER_PATH, middlewares=[enforce_api_key, enforce_rate_limit, enforce_origin_policy])
@tracer.capture_method
def get_order(order_id: str) -> Response:
    """
    Look up a single order upstream.

    Args:
        order_id: Order identifier from the request path, percent-encoded

    Returns:
        The upstream order object, unmodified
    """
    try:
        request = LookupRequest(order_id=unquote(order_id))
    except ValidationError as e:
        raise InvalidLookupRequestError(e.errors()[0]["msg"]) from e

    logger.info("Order lookup request received", extra={"order_id": request.order_id})
    tracer.put_annotation("order_id", request.order_id)

    order = get_relay_dependencies().lookup_service.lookup(request.order_id)

    logger.info("Order retrieved successfully", extra={"order_id": request.order_id})

    return create_api_response(status_code=200, body=order)


def handle_relay_error(ex: RelayError) -> Response:
    log_error_metrics(ex)
    return create_error_response(ex)


def handle_route_not_found(ex: NotFoundError) -> Response:
    logger.info("No route matched the request")
    return create_api_response(status_code=404, body={"error": ROUTE_NOT_FOUND_MESSAGE})


def handle_unexpected_error(ex: Exception) -> Response:
    logger.exception("Unexpected error in handler", extra={"error_type": type(ex).__name__})
    metrics.add_metric(name="UnexpectedError", unit=MetricUnit.Count, value=1)
    return create_error_response(InternalRelayError(str(ex) or type(ex).__name__))


def build_resolver(dependencies: RelayDependencies) -> APIGatewayRestResolver:
    """Create the REST resolver for a dependency container.

    CORS headers depend on the configured origin policy, so the resolver is
    built from the container rather than at import time.
    """
    app = APIGatewayRestResolver(cors=dependencies.origin_policy.to_cors_config())
    app.include_router(router)
    app.not_found(handle_route_not_found)
    app.exception_handler(RelayError)(handle_relay_error)
    app.exception_handler(Exception)(handle_unexpected_error)
    return app


_resolver: Optional[APIGatewayRestResolver] = None
_resolver_dependencies: Optional[RelayDependencies] = None


def get_resolver() -> APIGatewayRestResolver:
    """Get the resolver for the current dependency container, rebuilding it if the container changed."""
    global _resolver, _resolver_dependencies

    dependencies = get_relay_dependencies()
    if _resolver is None or _resolver_dependencies is not dependencies:
        _resolver = build_resolver(dependencies)
        _resolver_dependencies = dependencies

    return _resolver


@tracer.capture_lambda_handler
@logger.inject_lambda_context(correlation_id_path=correlation_paths.API_GATEWAY_REST)
@metrics.log_metrics(capture_cold_start_metric=True)
def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Main Lambda handler function.

    Args:
        event: API Gateway REST proxy event
        context: Lambda context object

    Returns:
        API Gateway response
    """
    metrics.add_metric(name="RequestCount", unit=MetricUnit.Count, value=1)

    try:
        resolver = get_resolver()
    except ValidationError as e:
        # Only field names are logged; pydantic errors may echo secret input values
        logger.error("Invalid relay configuration", extra={
            "invalid_fields": [".".join(str(part) for part in error["loc"]) for error in e.errors()],
        })
        return _misconfigured_response()
    except Exception:
        logger.exception("Failed to initialize relay")
        return _misconfigured_response()

    return resolver.resolve(event, context)


def _misconfigured_response() -> Dict[str, Any]:
    metrics.add_metric(name="ConfigurationError", unit=MetricUnit.Count, value=1)
    return {
        "statusCode": 500,
        "headers": {"Content-Type": "application/json"},
        "body": dump_json({"error": MISCONFIGURED_MESSAGE}),
        "isBase64Encoded": False,
    }

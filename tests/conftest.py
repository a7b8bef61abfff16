"""
Pytest configuration and shared fixtures for the order lookup relay.

This module provides common test fixtures used across unit and integration
tests: environment setup, relay configuration factories, API Gateway event
factories and a mock Lambda context.
"""

import json
import os
from typing import Any, Callable, Dict, Optional
from unittest.mock import Mock

import pytest

# Powertools reads these at import time, before any fixture runs
os.environ.update({
    "AWS_DEFAULT_REGION": "us-east-1",
    "POWERTOOLS_SERVICE_NAME": "test-order-relay",
    "POWERTOOLS_METRICS_NAMESPACE": "TestOrderRelay",
    "POWERTOOLS_TRACE_DISABLED": "true",  # Disable X-Ray in tests
    "LOG_LEVEL": "DEBUG",
})

from order_relay.handlers.models.env_vars import RelayEnvVars  # noqa: E402
from order_relay.handlers.utils.dependencies import (  # noqa: E402
    RelayDependencies,
    build_relay_dependencies,
    set_relay_dependencies,
)
from order_relay.handlers.utils.observability import metrics  # noqa: E402
from order_relay.security.rate_limiter import InMemoryRateLimiter  # noqa: E402

API_SECRET = "test-shared-secret"
UPSTREAM_TOKEN = "shpat_test_token"
STORE_URL = "https://relay-test.myshopify.com"
API_BASE = f"{STORE_URL}/admin/api/2023-04"
ALLOWED_ORIGIN = "https://shop.example.com"

SAMPLE_ORDER: Dict[str, Any] = {
    "id": 450789469,
    "name": "#1001",
    "email": "bob.norman@example.com",
    "financial_status": "paid",
    "total_price": "598.94",
    "line_items": [
        {"id": 466157049, "title": "IPod Nano - 8gb", "quantity": 1, "price": "199.00"},
    ],
    "note": "Ünicode note",
}

BASE_RELAY_ENV: Dict[str, str] = {
    "API_SECRET_KEY": API_SECRET,
    "UPSTREAM_STORE_URL": STORE_URL,
    "UPSTREAM_ACCESS_TOKEN": UPSTREAM_TOKEN,
    "LOOKUP_STRATEGY": "by_id",
    "CORS_POLICY": "strict",
    "CORS_ALLOWED_ORIGINS": ALLOWED_ORIGIN,
}


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_relay_env() -> Callable[..., RelayEnvVars]:
    """Factory building validated relay configuration with overrides."""

    def _make(**overrides: Optional[str]) -> RelayEnvVars:
        values = {**BASE_RELAY_ENV, **overrides}
        values = {key: value for key, value in values.items() if value is not None}
        return RelayEnvVars(**values)

    return _make


@pytest.fixture
def install_relay(make_relay_env) -> Callable[..., RelayDependencies]:
    """Install relay dependencies for the handler, built from config overrides."""

    def _install(rate_limiter: Optional[InMemoryRateLimiter] = None, **overrides: Optional[str]) -> RelayDependencies:
        dependencies = build_relay_dependencies(
            make_relay_env(**overrides),
            rate_limiter=rate_limiter or InMemoryRateLimiter(enable_metrics=False),
        )
        set_relay_dependencies(dependencies)
        return dependencies

    yield _install
    set_relay_dependencies(None)


@pytest.fixture
def api_gateway_event() -> Callable[..., Dict[str, Any]]:
    """Factory for API Gateway REST proxy events."""

    def _event(
        path: str = "/order/450789469",
        method: str = "GET",
        api_key: Optional[str] = API_SECRET,
        origin: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        request_headers = {"User-Agent": "test-agent/1.0"}
        if api_key is not None:
            request_headers["x-api-key"] = api_key
        if origin is not None:
            request_headers["Origin"] = origin
        request_headers.update(headers or {})

        return {
            "resource": "/order/{order_id}",
            "path": path,
            "httpMethod": method,
            "headers": request_headers,
            "multiValueHeaders": {key: [value] for key, value in request_headers.items()},
            "queryStringParameters": None,
            "multiValueQueryStringParameters": None,
            "pathParameters": None,
            "stageVariables": None,
            "requestContext": {
                "requestId": "test-request-id-123",
                "accountId": "123456789012",
                "stage": "test",
                "httpMethod": method,
                "path": path,
                "resourcePath": "/order/{order_id}",
                "protocol": "HTTP/1.1",
                "requestTimeEpoch": 1704110400000,
                "identity": {
                    "sourceIp": "127.0.0.1",
                    "userAgent": "test-agent/1.0",
                },
            },
            "body": None,
            "isBase64Encoded": False,
        }

    return _event


@pytest.fixture
def lambda_context():
    """Create a mock Lambda context for testing."""
    context = Mock()
    context.function_name = "test-order-lookup"
    context.function_version = "1"
    context.invoked_function_arn = "arn:aws:lambda:us-east-1:123456789012:function:test-order-lookup"
    context.memory_limit_in_mb = "256"
    context.aws_request_id = "test-request-id-123"
    context.log_group_name = "/aws/lambda/test-order-lookup"
    context.log_stream_name = "2024/01/01/[$LATEST]test123"
    context.get_remaining_time_in_millis.return_value = 30000
    return context


def response_headers(response: Dict[str, Any]) -> Dict[str, str]:
    """Flatten resolver response headers (single and multi-value) with lower-cased names."""
    headers = {key.lower(): values[-1] for key, values in (response.get("multiValueHeaders") or {}).items()}
    headers.update({key.lower(): value for key, value in (response.get("headers") or {}).items()})
    return headers


def response_json(response: Dict[str, Any]) -> Any:
    return json.loads(response["body"])


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


@pytest.fixture(autouse=True)
def reset_relay_state():
    """Reset shared relay state between tests."""
    set_relay_dependencies(None)
    metrics.clear_metrics()
    yield
    set_relay_dependencies(None)
    metrics.clear_metrics()

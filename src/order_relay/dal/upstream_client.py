"""
HTTP client for the upstream order-management API.

Each call opens its own ``httpx.Client`` and closes it before returning, so no
connection outlives the request that needed it. The timeout bounds the whole
call, not each socket operation: the body is streamed and checked against a
deadline, so an upstream trickling bytes still gets cut off. When the deadline
passes the stream and client are closed as the exception unwinds.
"""

import json
import time
from typing import Any, Callable, Dict, Optional, Union
from urllib.parse import quote

import httpx
from aws_lambda_powertools.metrics import MetricUnit

from order_relay.handlers.utils.errors import (
    InternalRelayError,
    UpstreamStatusError,
    UpstreamTimeoutError,
)
from order_relay.handlers.utils.observability import logger, metrics, tracer

DEFAULT_API_VERSION = "2023-04"
DEFAULT_TOKEN_HEADER = "X-Shopify-Access-Token"


class UpstreamOrderClient:
    """Thin wrapper over the upstream REST endpoints used for order lookups."""

    def __init__(
        self,
        base_url: str,
        access_token: Union[str, Callable[[], str]],
        api_version: str = DEFAULT_API_VERSION,
        timeout_seconds: Optional[float] = None,
        token_header: str = DEFAULT_TOKEN_HEADER,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        """
        Initialize upstream client.

        Args:
            base_url: Store base URL, without trailing slash
            access_token: Server-side credential injected into every call, or a
                callable returning it (resolved per call)
            api_version: Version segment of the admin API path
            timeout_seconds: Bound on each call; None waits indefinitely
            token_header: Header carrying the access token
            transport: Optional httpx transport (tests)
            clock: Monotonic clock used for the deadline and latency
        """
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.timeout_seconds = timeout_seconds
        self.token_header = token_header
        self._access_token = access_token
        self._transport = transport
        self._clock = clock

    @property
    def resource_path(self) -> str:
        return f"/admin/api/{self.api_version}"

    def _headers(self) -> Dict[str, str]:
        token = self._access_token() if callable(self._access_token) else self._access_token
        return {
            self.token_header: token,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @tracer.capture_method
    def get_order_by_id(self, order_id: str) -> Dict[str, Any]:
        """GET /orders/<id>.json and return the decoded envelope."""
        path = f"{self.resource_path}/orders/{quote(order_id, safe='')}.json"
        return self._get_json(path)

    @tracer.capture_method
    def find_orders_by_name(self, order_name: str) -> Dict[str, Any]:
        """GET /orders.json?name=<name> and return the decoded envelope."""
        path = f"{self.resource_path}/orders.json"
        return self._get_json(path, params={"name": order_name})

    def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = self._headers()
        started = self._clock()
        deadline = started + self.timeout_seconds if self.timeout_seconds else None
        body = b""

        try:
            with httpx.Client(
                timeout=self.timeout_seconds,
                transport=self._transport,
                follow_redirects=True,
            ) as client:
                with client.stream("GET", url, params=params, headers=headers) as response:
                    if response.is_success:
                        body = self._read_body(response, deadline)
        except httpx.TimeoutException as e:
            metrics.add_metric(name="UpstreamTimeout", unit=MetricUnit.Count, value=1)
            logger.warning("Timeout contacting upstream", extra={
                "path": path,
                "timeout_seconds": self.timeout_seconds,
                "error_type": type(e).__name__,
            })
            raise UpstreamTimeoutError(self.timeout_seconds) from e
        except httpx.HTTPError as e:
            logger.exception("Request error contacting upstream", extra={"path": path})
            raise InternalRelayError(str(e) or type(e).__name__) from e

        elapsed_ms = (self._clock() - started) * 1000
        metrics.add_metric(name="UpstreamLatency", unit=MetricUnit.Milliseconds, value=elapsed_ms)
        logger.info("Upstream call completed", extra={
            "path": path,
            "status": response.status_code,
            "elapsed_ms": round(elapsed_ms, 2),
        })

        if not response.is_success:
            metrics.add_metric(name="UpstreamError", unit=MetricUnit.Count, value=1)
            raise UpstreamStatusError(response.status_code, response.reason_phrase)

        try:
            payload = json.loads(body)
        except ValueError as e:
            raise InternalRelayError(f"Invalid JSON from upstream: {e}") from e

        if not isinstance(payload, dict):
            raise InternalRelayError("Unexpected upstream payload: expected a JSON object")

        return payload

    def _read_body(self, response: httpx.Response, deadline: Optional[float]) -> bytes:
        """Read the streamed body, raising ReadTimeout once the deadline has passed."""
        chunks = []
        self._check_deadline(response, deadline)
        for chunk in response.iter_bytes():
            chunks.append(chunk)
            self._check_deadline(response, deadline)
        return b"".join(chunks)

    def _check_deadline(self, response: httpx.Response, deadline: Optional[float]) -> None:
        if deadline is not None and self._clock() >= deadline:
            raise httpx.ReadTimeout("Upstream call exceeded its time bound", request=response.request)

"""
Business logic for single-order lookups.

Two upstream call shapes exist and are not interchangeable:

- ``by_id`` resolves the platform's internal numeric order ID and expects an
  ``{"order": {...}}`` envelope.
- ``by_name_filter`` filters the order list by the human-facing order name
  (``#1001``) and expects an ``{"orders": [...]}`` envelope.

The strategy is fixed per deployment by configuration. The unwrapped order is
returned exactly as the upstream sent it.
"""

from typing import Any, Dict

from aws_lambda_powertools.metrics import MetricUnit

from order_relay.dal import OrderSource
from order_relay.handlers.utils.errors import InternalRelayError, OrderNotFoundError
from order_relay.handlers.utils.observability import logger, metrics, tracer
from order_relay.models.lookup import LookupStrategy


class OrderLookupService:
    """Resolve one order identifier against the upstream API."""

    def __init__(self, order_source: OrderSource, strategy: LookupStrategy):
        """
        Initialize lookup service.

        Args:
            order_source: Upstream client
            strategy: Which upstream call shape to use
        """
        self.order_source = order_source
        self.strategy = LookupStrategy(strategy)

    @tracer.capture_method
    def lookup(self, order_id: str) -> Dict[str, Any]:
        """
        Fetch a single order.

        Raises:
            OrderNotFoundError: The upstream reported no matching order
            UpstreamStatusError: The upstream answered with a non-2xx status
            UpstreamTimeoutError: The upstream exceeded the configured bound
            InternalRelayError: Network or payload failure
        """
        tracer.put_annotation("lookup_strategy", self.strategy.value)

        if self.strategy == LookupStrategy.BY_ID:
            order = self._unwrap_single(self.order_source.get_order_by_id(order_id))
        else:
            order = self._unwrap_first(self.order_source.find_orders_by_name(order_id))

        if order is None:
            metrics.add_metric(name="OrderNotFound", unit=MetricUnit.Count, value=1)
            logger.info("Order not found", extra={"order_id": order_id, "strategy": self.strategy.value})
            raise OrderNotFoundError(order_id)

        metrics.add_metric(name="OrderFound", unit=MetricUnit.Count, value=1)
        return order

    @staticmethod
    def _unwrap_single(envelope: Dict[str, Any]):
        order = envelope.get("order")
        if order is None:
            return None
        if not isinstance(order, dict):
            raise InternalRelayError("Unexpected upstream payload: 'order' is not an object")
        return order

    @staticmethod
    def _unwrap_first(envelope: Dict[str, Any]):
        orders = envelope.get("orders")
        if not orders:
            return None
        if not isinstance(orders, list):
            raise InternalRelayError("Unexpected upstream payload: 'orders' is not an array")
        return orders[0]

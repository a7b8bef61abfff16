"""
Data access layer for the order lookup relay.

The relay stores nothing; its only data source is the upstream
order-management API reached over HTTPS.
"""

from typing import Any, Dict, Protocol, runtime_checkable

from order_relay.dal.upstream_client import UpstreamOrderClient


@runtime_checkable
class OrderSource(Protocol):
    """Protocol defining the upstream lookup interface."""

    def get_order_by_id(self, order_id: str) -> Dict[str, Any]:
        """Fetch the single-order envelope for an internal order ID."""
        ...

    def find_orders_by_name(self, order_name: str) -> Dict[str, Any]:
        """Fetch the order-list envelope filtered by order name."""
        ...


__all__ = [
    "OrderSource",
    "UpstreamOrderClient",
]

"""
Business Logic Layer Module.

Sits between the REST handler and the upstream client: picks the configured
lookup strategy, unwraps the upstream envelope and decides when a lookup is a
"not found".
"""

from order_relay.logic.order_lookup import OrderLookupService

__all__ = [
    "OrderLookupService",
]

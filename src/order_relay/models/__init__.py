"""
Data models for the order lookup relay.

Upstream orders are opaque JSON objects and are not modelled; only the
inbound lookup request is validated.
"""

from order_relay.models.lookup import LookupRequest, LookupStrategy

__all__ = [
    "LookupRequest",
    "LookupStrategy",
]

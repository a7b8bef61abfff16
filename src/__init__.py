"""
Order Lookup Relay - Source Package

Lambda entry points live in per-function directories (``order_lookup``); the
shared implementation is the ``order_relay`` package.
"""

__version__ = "1.0.0"

__all__ = [
    "__version__",
]

"""
Lambda handlers for the order lookup relay.

The handler layer owns request/response concerns: API key checks, the global
rate limit, origin policy, path parameter validation and error rendering. The
lookup itself is delegated to ``order_relay.logic``, which reaches the upstream
through ``order_relay.dal``.

Handler Types:
- REST API handlers: ``lookup_handler`` (GET /order/<order_id>)

Submodules are imported explicitly; ``handlers.utils`` is imported by every
other layer and must not pull the handler module in.
"""

__version__ = "1.0.0"

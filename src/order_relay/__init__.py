"""
Order lookup relay.

Forwards single-order lookups to an upstream e-commerce admin API, injecting
the server-side access token so it never reaches browsers. Packaged as an AWS
Lambda function behind API Gateway:

- handlers: API Gateway entry point, middlewares and error rendering
- logic: lookup strategy and envelope unwrapping
- dal: upstream HTTP client
- security: API key, rate limiting, origin policy, credential resolution
- models: request models
"""

__version__ = "1.0.0"

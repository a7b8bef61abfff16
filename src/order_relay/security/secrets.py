"""
Upstream access token resolution.

The token is either supplied directly through ``UPSTREAM_ACCESS_TOKEN`` or
fetched from AWS Secrets Manager by name. Fetched values are cached by
Powertools for ``SECRET_MAX_AGE_SECONDS`` so rotation is picked up without a
redeploy.
"""

from aws_lambda_powertools.metrics import MetricUnit
from aws_lambda_powertools.utilities import parameters
from aws_lambda_powertools.utilities.parameters.exceptions import GetParameterError

from order_relay.handlers.models.env_vars import RelayEnvVars
from order_relay.handlers.utils.errors import UpstreamTokenUnavailableError
from order_relay.handlers.utils.observability import logger, metrics, tracer

SECRET_MAX_AGE_SECONDS = 300


@tracer.capture_method
def resolve_upstream_access_token(env_vars: RelayEnvVars) -> str:
    """Return the upstream access token from configuration or Secrets Manager.

    Raises:
        UpstreamTokenUnavailableError: If the secret cannot be fetched or is empty
    """
    if env_vars.UPSTREAM_ACCESS_TOKEN is not None:
        return env_vars.UPSTREAM_ACCESS_TOKEN.get_secret_value()

    secret_name = env_vars.UPSTREAM_ACCESS_TOKEN_SECRET_NAME
    try:
        token = parameters.get_secret(secret_name, max_age=SECRET_MAX_AGE_SECONDS)
    except GetParameterError as e:
        metrics.add_metric(name="UpstreamTokenFetchFailed", unit=MetricUnit.Count, value=1)
        logger.error("Failed to fetch upstream access token", extra={
            "secret_name": secret_name,
            "error_type": type(e).__name__,
        })
        raise UpstreamTokenUnavailableError() from e

    if isinstance(token, bytes):
        token = token.decode("utf-8")
    token = (token or "").strip()
    if not token:
        logger.error("Upstream access token secret is empty", extra={"secret_name": secret_name})
        raise UpstreamTokenUnavailableError()

    return token

"""
Shared Powertools instances for the order lookup relay.

Every layer logs, traces and emits metrics through the objects defined here so
that correlation ids and the service name are consistent across a request.
"""

import os

from aws_lambda_powertools.logging import Logger
from aws_lambda_powertools.metrics import Metrics
from aws_lambda_powertools.tracing import Tracer

SERVICE_NAME = os.environ.get('POWERTOOLS_SERVICE_NAME', 'order-relay')

# Overridable with POWERTOOLS_METRICS_NAMESPACE
METRICS_NAMESPACE = os.environ.get('POWERTOOLS_METRICS_NAMESPACE', 'OrderRelay')

# Header values are never logged; only their presence is.
logger: Logger = Logger(service=SERVICE_NAME)

# No-op outside Lambda or when POWERTOOLS_TRACE_DISABLED is "true"
tracer: Tracer = Tracer(service=SERVICE_NAME)

metrics: Metrics = Metrics(namespace=METRICS_NAMESPACE, service=SERVICE_NAME)

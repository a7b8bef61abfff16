"""
Order Lookup Lambda Function - Entry point for the order lookup relay.

This module serves as the Lambda function entry point and delegates to the
lookup handler, which authenticates, throttles and relays the request upstream.
"""

import os
import sys
from typing import Any, Dict

# Add the shared relay package to the Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from aws_lambda_powertools.utilities.typing import LambdaContext
from order_relay.handlers.lookup_handler import lambda_handler as lookup_handler


def lambda_handler(event: Dict[str, Any], context: LambdaContext) -> Dict[str, Any]:
    """
    Lambda function entry point for the order lookup API.

    Args:
        event: Lambda event payload (API Gateway event)
        context: Lambda context object

    Returns:
        API Gateway response dictionary
    """
    return lookup_handler(event, context)

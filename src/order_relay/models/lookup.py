"""
Input models for order lookup requests.

The order identifier arrives as an untrusted path segment; it is validated
here before it is placed into an upstream URL or query string.
"""

import re
from enum import Enum
from typing import Annotated

from pydantic import BaseModel, Field, field_validator

_CONTROL_CHARS = re.compile(r'[\x00-\x1f\x7f]')


class LookupStrategy(str, Enum):
    """Upstream call shape used to resolve an order identifier."""

    # GET /orders/<id>.json, identifier is the platform's internal numeric ID
    BY_ID = 'by_id'
    # GET /orders.json?name=<id>, identifier is the human-facing order name
    BY_NAME_FILTER = 'by_name_filter'


class LookupRequest(BaseModel):
    """Request model for a single order lookup."""

    order_id: Annotated[str, Field(
        min_length=1,
        max_length=255,
        description='Order identifier supplied by the caller',
        examples=['450789469', '#1001'],
    )]

    @field_validator('order_id', mode='before')
    @classmethod
    def strip_whitespace(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @field_validator('order_id')
    @classmethod
    def reject_control_characters(cls, v: str) -> str:
        """Reject identifiers carrying control characters."""
        if _CONTROL_CHARS.search(v):
            raise ValueError('order_id must not contain control characters')
        return v

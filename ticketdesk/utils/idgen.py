"""Identifier helpers: prefixed random ids for stored records, timestamped ids for tracing"""
import uuid
from typing import Optional

from .time import utc_now

TICKET_PREFIX = "TKT"
COMMENT_PREFIX = "CMT"
HISTORY_PREFIX = "HST"
CORRELATION_PREFIX = "COR"


def generate_id(prefix: Optional[str] = None, length: int = 12) -> str:
    """
    Random hex id, optionally prefixed.

    >>> generate_id("TKT")  # doctest: +SKIP
    'TKT-3f9c0a41d27b'
    """
    token = uuid.uuid4().hex[:length]
    return f"{prefix}-{token}" if prefix else token


def generate_ticket_id() -> str:
    return generate_id(TICKET_PREFIX)


def generate_comment_id() -> str:
    return generate_id(COMMENT_PREFIX)


def generate_history_id() -> str:
    return generate_id(HISTORY_PREFIX)


def generate_correlation_id() -> str:
    # Sortable by creation second when grepping logs
    stamp = utc_now().strftime("%Y%m%d%H%M%S")
    return generate_id(f"{CORRELATION_PREFIX}-{stamp}", length=8)

"""Shared helpers: logging, ids, UTC time"""
from .logger import get_logger, setup_logging, get_correlation_id, set_correlation_id
from .idgen import generate_ticket_id, generate_comment_id, generate_history_id, generate_correlation_id
from .time import utc_now, ensure_utc, to_storage_document, start_of_day, end_of_day, hours_between

__all__ = [
    "get_logger",
    "setup_logging",
    "get_correlation_id",
    "set_correlation_id",
    "generate_ticket_id",
    "generate_comment_id",
    "generate_history_id",
    "generate_correlation_id",
    "utc_now",
    "ensure_utc",
    "to_storage_document",
    "start_of_day",
    "end_of_day",
    "hours_between",
]

"""Lifecycle Engine - Ticket state machine, ledger and analytics"""
from .engine import LifecycleEngine
from .permission_guard import PermissionGuard
from .access_scope import AccessScopeResolver
from .history_writer import HistoryWriter
from .transition_resolver import resolve_next_status, status_after_comment
from .bucketing import bucket_key, bucket_sequence
from .aggregator import aggregate_resolutions

__all__ = [
    "LifecycleEngine",
    "PermissionGuard",
    "AccessScopeResolver",
    "HistoryWriter",
    "resolve_next_status",
    "status_after_comment",
    "bucket_key",
    "bucket_sequence",
    "aggregate_resolutions",
]

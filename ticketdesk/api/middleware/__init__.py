"""
Request middleware and exception handlers.

Order on the way in: correlation id, tenant slug from the Host header, CORS.
Domain errors raised by routes are rendered by ``error_handlers``.
"""

from .correlation import CorrelationIdMiddleware
from .tenant import TenantMiddleware
from .error_handlers import register_error_handlers

__all__ = ["CorrelationIdMiddleware", "TenantMiddleware", "register_error_handlers"]

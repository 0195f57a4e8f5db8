"""
Tenant Middleware

Extracts the tenant slug from the Host subdomain, e.g. ``acme.ticketdesk.io``.
Resolution against the directory happens in the route dependencies.
"""

import ipaddress
from typing import Optional

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

LOCAL_HOSTS = ("localhost", "testserver")


def extract_tenant_slug(host: Optional[str]) -> Optional[str]:
    """
    Tenant slug from a Host header value.
    
    Returns None for localhost, IP addresses and hosts without a subdomain.
    """
    if not host:
        return None

    hostname = host.strip().lower()
    if hostname.startswith("["):
        return None  # IPv6 literal
    hostname = hostname.split(":")[0]

    if hostname in LOCAL_HOSTS or hostname.endswith(".localhost"):
        return None
    try:
        ipaddress.ip_address(hostname)
        return None
    except ValueError:
        pass

    labels = hostname.split(".")
    if len(labels) < 3 or labels[0] == "www":
        return None
    return labels[0]


class TenantMiddleware(BaseHTTPMiddleware):
    """Stores the Host subdomain slug on ``request.state.tenant_slug``"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request.state.tenant_slug = extract_tenant_slug(request.headers.get("host"))
        return await call_next(request)

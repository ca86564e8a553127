"""Requester attribution (client IP and user agent) for audit entries."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

from app.core.config import get_settings


@dataclass(frozen=True, slots=True)
class RequestContext:
    ip_address: str | None = None
    user_agent: str | None = None


def resolve_client_ip(request: Request, *, trusted_proxy_ips: set[str]) -> str | None:
    """Return the peer address, or the first forwarded hop when the peer is a trusted proxy."""
    client_ip = request.client.host if request.client and request.client.host else None

    forwarded_for = request.headers.get("x-forwarded-for")
    if not forwarded_for or client_ip not in trusted_proxy_ips:
        return client_ip

    forwarded_client = forwarded_for.split(",")[0].strip()
    return forwarded_client or client_ip


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency building the audit attribution for a request."""
    settings = get_settings()
    return RequestContext(
        ip_address=resolve_client_ip(request, trusted_proxy_ips=set(settings.trusted_proxy_ips)),
        user_agent=request.headers.get("user-agent"),
    )

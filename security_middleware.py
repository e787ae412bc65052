"""
Security middleware for the ASMIN API.

Response hardening headers, a declared body size cap sized for inline base64
attachments, an optional IP allow-list in front of the admin dashboards, and
the slowapi limiter shared by the public write endpoints.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Callable, List, Optional
import logging
import os

logger = logging.getLogger(__name__)

# Three evidence images plus a letter at 5MB each, base64 encoded
MAX_REQUEST_BYTES = int(os.getenv("MAX_REQUEST_BYTES", 50 * 1024 * 1024))

RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() not in ("0", "false", "no")

# Per-IP limits for unauthenticated endpoints
LOGIN_LIMIT = "5/minute"
REGISTER_LIMIT = "10/minute"
PASSWORD_RESET_LIMIT = "5/minute"
PUBLIC_SUBMISSION_LIMIT = "10/minute"

ADMIN_PATH_PREFIX = "/api/admin"

limiter = Limiter(key_func=get_remote_address, enabled=RATE_LIMIT_ENABLED)

# JSON API only: nothing here is rendered in a browser frame
SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
    "Content-Security-Policy": "default-src 'none'; img-src 'self' data:; frame-ancestors 'none'",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject write requests whose Content-Length exceeds ``max_bytes``.

    Attachments travel inline as base64, so the cap applies before the body
    is read or parsed.
    """

    def __init__(self, app, max_bytes: int = MAX_REQUEST_BYTES):
        super().__init__(app)
        self.max_bytes = max_bytes

    async def dispatch(self, request: Request, call_next: Callable):
        if request.method not in ("POST", "PUT", "PATCH"):
            return await call_next(request)

        content_length = request.headers.get("content-length")
        if not content_length:
            return await call_next(request)

        if not content_length.isdigit():
            return JSONResponse(status_code=400, content={"error": "Invalid Content-Length header"})

        if int(content_length) > self.max_bytes:
            logger.warning(f"Rejected {content_length} byte request to {request.url.path}")
            return JSONResponse(
                status_code=413,
                content={"error": f"Request payload too large. Maximum size is {self.max_bytes // (1024 * 1024)}MB."}
            )

        return await call_next(request)


def parse_whitelist(value: Optional[str]) -> List[str]:
    """Split a comma separated ADMIN_IP_WHITELIST value."""
    return [ip.strip() for ip in (value or "").split(",") if ip.strip()]


class IPWhitelistMiddleware(BaseHTTPMiddleware):
    """Only listed client addresses may reach the officer and master admin dashboards."""

    def __init__(self, app, whitelist: Optional[List[str]] = None):
        super().__init__(app)
        self.whitelist = set(whitelist or [])

    async def dispatch(self, request: Request, call_next: Callable):
        if self.whitelist and request.url.path.startswith(ADMIN_PATH_PREFIX):
            client_ip = get_remote_address(request)
            if client_ip not in self.whitelist:
                logger.warning(f"Blocked admin request from {client_ip} to {request.url.path}")
                return JSONResponse(status_code=403, content={"error": "Access denied from this IP address"})

        return await call_next(request)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded on {request.url.path} by {get_remote_address(request)}")
    return JSONResponse(status_code=429, content={"error": f"Too many requests: {exc.detail}"})


def setup_rate_limits(app) -> Limiter:
    """Attach the shared limiter and its error handler to the app."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    return limiter

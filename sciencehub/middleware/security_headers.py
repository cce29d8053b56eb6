from __future__ import annotations

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from sciencehub.core.config import settings

BASE_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Permissions-Policy": "geolocation=(), microphone=(), camera=()",
}

HSTS = "max-age=63072000; includeSubDomains"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        response: Response = await call_next(request)
        if not settings.security_headers_enabled:
            return response

        for name, value in BASE_HEADERS.items():
            response.headers.setdefault(name, value)
        # HSTS only makes sense behind TLS, which local runs lack
        if settings.env != "local":
            response.headers.setdefault("Strict-Transport-Security", HSTS)
        return response

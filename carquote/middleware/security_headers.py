"""
Security headers for API responses.

The service only serves JSON, so the content security policy forbids
loading anything and forbids framing. Headers already set by a route are
left alone.
"""

from typing import Callable, Dict, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from carquote.core.logging_config import get_logger


logger = get_logger(__name__)

API_CSP_POLICY = "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Add OWASP-recommended security headers to every response.

    Example:
        app.add_middleware(SecurityHeadersMiddleware, hsts=settings.cookie_secure)
    """

    def __init__(self, app, csp_policy: Optional[str] = None, hsts: bool = False):
        super().__init__(app)
        self.headers: Dict[str, str] = {
            "X-Content-Type-Options": "nosniff",
            "X-Frame-Options": "DENY",
            "Referrer-Policy": "strict-origin-when-cross-origin",
            "Content-Security-Policy": csp_policy or API_CSP_POLICY,
        }
        if hsts:
            self.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        logger.debug("Security headers middleware initialized", extra={"hsts": hsts})

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in self.headers.items():
            response.headers.setdefault(name, value)
        return response

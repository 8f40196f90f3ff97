"""
Typed request context.

Route handlers and the session layer work against ``RequestContext``
instead of reaching into Starlette's request object, so the session
functions can be exercised without an HTTP round trip.
"""

from dataclasses import dataclass, field
from typing import Mapping, Optional

from fastapi import Request


BEARER_PREFIX = "bearer "


@dataclass(frozen=True)
class RequestContext:
    """
    Headers, cookies and query parameters of a single request.

    Header names are stored lower-cased.
    """

    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)
    peer_ip: Optional[str] = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        return cls(
            headers={key.lower(): value for key, value in request.headers.items()},
            cookies=dict(request.cookies),
            query=dict(request.query_params),
            peer_ip=request.client.host if request.client else None,
        )

    @property
    def bearer_token(self) -> Optional[str]:
        """
        Token from an ``Authorization: Bearer <token>`` header.

        Returns None when the header is absent, uses another scheme, or has
        an empty token.
        """
        authorization = self.headers.get("authorization", "")
        if not authorization.lower().startswith(BEARER_PREFIX):
            return None
        token = authorization[len(BEARER_PREFIX):].strip()
        return token or None

    @property
    def client_ip(self) -> str:
        """
        Best-effort client address.

        Prefers the first hop of X-Forwarded-For, then X-Real-IP, then the
        socket peer address.
        """
        forwarded = self.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()

        real_ip = self.headers.get("x-real-ip")
        if real_ip:
            return real_ip.strip()

        return self.peer_ip or "unknown"

    def cookie(self, name: str) -> Optional[str]:
        return self.cookies.get(name)

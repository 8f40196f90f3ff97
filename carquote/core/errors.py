"""
Exception taxonomy for the quote service.

Each error carries the HTTP status it maps to; ``carquote.main`` registers
a single handler that renders them as ``{"error": message}``.
"""


class CarQuoteError(Exception):
    """Base exception for the quote service"""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class UnauthenticatedError(CarQuoteError):
    """Raised when a request carries no valid credentials"""

    status_code = 401
    default_message = "Authentication failed"


class InvalidTokenError(UnauthenticatedError):
    """Raised when a token is malformed, wrongly signed or expired"""

    default_message = "Invalid token"


class ForbiddenError(CarQuoteError):
    """Raised when an authenticated admin lacks a required permission"""

    status_code = 403
    default_message = "Insufficient permissions"


class NotFoundError(CarQuoteError):
    """Raised when a referenced document does not exist"""

    status_code = 404
    default_message = "Not found"


class UpstreamError(CarQuoteError):
    """Raised when the database cannot be reached or a query fails"""

    status_code = 500
    default_message = "Upstream failure"


class BadRequestError(CarQuoteError):
    """Raised when a request is well-formed but not acceptable in the current state"""

    status_code = 400
    default_message = "Bad request"


class ConflictError(CarQuoteError):
    """Raised when a write collides with an existing document"""

    status_code = 409
    default_message = "Conflict"

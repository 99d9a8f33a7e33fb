"""
Error taxonomy for the storefront API.

Every error carries a stable ``kind`` and the HTTP status it maps to. The
exception handlers in ``storefront.main`` render them as
``{"error": kind, "message": message}``.
"""


class StorefrontError(Exception):
    kind = "internal_error"
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(StorefrontError):
    kind = "validation_error"
    status_code = 400
    default_message = "Invalid request"


class AuthError(StorefrontError):
    kind = "auth_error"
    status_code = 401
    default_message = "Could not validate credentials"


class AuthorizationError(StorefrontError):
    kind = "authorization_error"
    status_code = 403
    default_message = "Not authorized"


class NotFoundError(StorefrontError):
    kind = "not_found"
    status_code = 404
    default_message = "Not found"


class ConflictError(StorefrontError):
    kind = "conflict"
    status_code = 409
    default_message = "Conflict"


class UpstreamUnavailable(StorefrontError):
    kind = "upstream_unavailable"
    status_code = 503
    default_message = "Upstream service unavailable"


class IntegrityError(StorefrontError):
    """Signature/authenticity failures. Logged as security events."""

    kind = "integrity_error"
    status_code = 400
    default_message = "Integrity check failed"


# -------- specific errors --------

class ProductNotFound(NotFoundError):
    default_message = "Product not found"


class OrderNotFound(NotFoundError):
    default_message = "Order not found"


class AlreadyPurchased(ConflictError):
    # checkout contract answers 400 here, not 409
    status_code = 400
    default_message = "You have already purchased this product"


class OrderTerminal(ConflictError):
    default_message = "Order is already closed"


class NotEntitled(AuthorizationError):
    default_message = "You have not purchased this product"


class GatewayUnavailable(UpstreamUnavailable):
    default_message = "Payment gateway unavailable"


class StorageUnconfigured(UpstreamUnavailable):
    default_message = "File storage is not configured"


class SignatureMismatch(IntegrityError):
    default_message = "Payment verification failed"

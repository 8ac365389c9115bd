"""
Service-layer exceptions

Routers translate these into HTTP status codes:
NotFoundError -> 404, ValidationError -> 400, AccessDeniedError -> 403,
PaymentError -> 402, GoldPriceUnavailable -> 503, ContentGenerationError -> 502
(503 when the AI is not configured).
"""


class NotFoundError(LookupError):
    """A referenced record does not exist"""


class ValidationError(ValueError):
    """Input is well-formed but violates a business rule"""


class AccessDeniedError(PermissionError):
    """The caller may not use a record owned by someone else"""


class PaymentError(Exception):
    """PayPal rejected or failed a payment step"""


class GoldPriceUnavailable(Exception):
    """No live or cached gold price is available"""


class ContentGenerationError(Exception):
    """The AI call failed or answered in an unusable format"""

    def __init__(self, message: str, configured: bool = True):
        super().__init__(message)
        self.configured = configured

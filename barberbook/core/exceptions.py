"""
Custom exceptions for the application.

Services raise these and controllers translate them into HTTP statuses:
``ValueError`` (and subclasses) -> 400, ``NotFoundError`` -> 404,
``PermissionDeniedError`` -> 403.
"""


class NotFoundError(Exception):
    """Raised when a requested record does not exist or is not visible."""

    pass


class PermissionDeniedError(Exception):
    """Raised when the acting user may not touch the requested record."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message)


class ConflictError(ValueError):
    """Raised when a worker already has a booking in the requested slot."""

    def __init__(
        self,
        message: str = "Worker is not available at this time. Please choose another time.",
    ):
        super().__init__(message)


class PaymentProviderError(Exception):
    """Raised when the payment processor rejects or fails a request."""

    pass

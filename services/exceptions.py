class MarketplaceError(Exception):
    """Base error raised by the service layer; carries the HTTP status to answer with."""
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(MarketplaceError):
    status_code = 400


class AuthError(MarketplaceError):
    status_code = 401


class PermissionDenied(MarketplaceError):
    status_code = 403


class NotFound(MarketplaceError):
    status_code = 404


class InvalidStatusTransition(MarketplaceError):
    status_code = 409


class DuplicateCheckout(MarketplaceError):
    status_code = 409


class PaymentConflict(MarketplaceError):
    status_code = 409

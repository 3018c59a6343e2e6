from rest_framework import status


class BillingError(Exception):
    """Base error raised by the invoicing core.

    ``code`` and ``status_code`` are what the API layer sends back in the
    ``{"error": {"code": ..., "message": ...}}`` envelope.
    """

    code = "BILLING_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message):
        super().__init__(message)
        self.message = message


class ValidationError(BillingError):
    """Bad input. ``message`` may be a field -> message mapping."""

    code = "VALIDATION_ERROR"


class InvalidCoupon(BillingError):
    code = "INVALID_COUPON"


class DuplicateCode(BillingError):
    code = "DUPLICATE_CODE"
    status_code = status.HTTP_409_CONFLICT


class DuplicateNumber(BillingError):
    code = "DUPLICATE_NUMBER"
    status_code = status.HTTP_409_CONFLICT


class RateFetchFailure(BillingError):
    """Exchange-rate provider unreachable or returned garbage."""

    code = "RATE_FETCH_FAILURE"
    status_code = status.HTTP_502_BAD_GATEWAY


class PersistenceFailure(BillingError):
    code = "PERSISTENCE_FAILURE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

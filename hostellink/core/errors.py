"""Typed rejections raised by the booking, escrow and wallet services.

Each error carries a stable ``code`` for clients, a human readable message,
the HTTP status the API maps it to, and whether retrying the same request
can succeed.
"""


class ServiceError(Exception):
    code = "SERVICE_ERROR"
    status_code = 400
    retryable = False
    default_message = "Request could not be completed"

    def __init__(self, message: str | None = None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class NotFound(ServiceError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class Forbidden(ServiceError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Forbidden"


class ValidationFailed(ServiceError):
    code = "VALIDATION_ERROR"
    status_code = 400
    default_message = "Invalid request"


class RoomAlreadyBooked(ServiceError):
    code = "ROOM_ALREADY_BOOKED"
    status_code = 409
    default_message = "This room has already been booked"


class RoomHasActiveBooking(ServiceError):
    code = "ROOM_HAS_ACTIVE_BOOKING"
    status_code = 409
    default_message = "Room has a booking in escrow and cannot be marked vacant"


class StaleTransition(ServiceError):
    code = "STALE_TRANSITION"
    status_code = 409
    default_message = "Booking has already been finalized"


class InsufficientBalance(ServiceError):
    code = "INSUFFICIENT_BALANCE"
    status_code = 400
    default_message = "Insufficient balance"


class InvalidAmount(ServiceError):
    code = "INVALID_AMOUNT"
    status_code = 400
    default_message = "Enter a valid amount"


class PaymentFailed(ServiceError):
    code = "PAYMENT_FAILED"
    status_code = 402
    default_message = "Payment was not completed"


class StorageFailure(ServiceError):
    code = "STORAGE_FAILURE"
    status_code = 503
    retryable = True
    default_message = "Something went wrong. Please try again."

"""Booking errors and the handlers that render them as ``ErrorResponse`` bodies."""

import logging

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BookingError(Exception):
    """Base error with a machine code, a user-facing message and an HTTP status."""

    error = "booking_error"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class BookingValidationError(BookingError):
    """Malformed request, rejected before the store is touched."""

    error = "validation_error"
    status_code = 422


class SeatNotFoundError(BookingError):
    error = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class StoreError(BookingError):
    """Reading from or writing to the store failed; nothing was committed."""

    error = "store_error"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Something went wrong, please try again later"):
        super().__init__(message)


class SeatRaceError(BookingError):
    """Another request claimed the seat between the availability read and the write."""

    error = "seat_unavailable"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "Seat no longer available, please retry"):
        super().__init__(message)


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.error, "message": exc.message},
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)

from fastapi import HTTPException, status


class AppError(HTTPException):
    """HTTPException carrying a machine-readable error code."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"
    message = "An unexpected error occurred."

    def __init__(self, message: str = None, code: str = None, status_code: int = None):
        super().__init__(
            status_code=status_code or self.status_code,
            detail=message or self.message,
        )
        if code:
            self.code = code


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    message = "Resource not found"


class ValidationError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    message = "Conflicting resource state"


class BookingConflictError(ConflictError):
    # surfaced as 400 on the booking endpoints
    status_code = status.HTTP_400_BAD_REQUEST
    code = "BOOKING_CONFLICT"
    message = "Vehicle is already booked for these dates"


class ForbiddenError(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "FORBIDDEN"
    message = "You are not authorized to perform this action"


class UnauthorizedError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "UNAUTHORIZED"
    message = "Invalid or expired token"

    def __init__(self, message: str = None, code: str = None, status_code: int = None):
        super().__init__(message, code, status_code)
        self.headers = {"WWW-Authenticate": "Bearer"}


class InternalError(AppError):
    pass


STATUS_CODES = {
    400: ValidationError.code,
    401: UnauthorizedError.code,
    403: ForbiddenError.code,
    404: NotFoundError.code,
    409: ConflictError.code,
}


def error_code_for(exc: HTTPException) -> str:
    code = getattr(exc, "code", None)
    if code:
        return code
    return STATUS_CODES.get(exc.status_code, InternalError.code)

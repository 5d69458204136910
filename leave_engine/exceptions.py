from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class NotFoundError(AppError):
    """A referenced row does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class LeaveValidationError(AppError):
    """Bad date range, zero working days, inactive leave type or bad override values."""

    status_code = status.HTTP_400_BAD_REQUEST


class EligibilityError(AppError):
    """The employee has not yet served the qualifying period for this leave type."""

    status_code = status.HTTP_400_BAD_REQUEST


class InsufficientBalance(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class OverlapConflict(AppError):
    status_code = status.HTTP_409_CONFLICT


class NoManagerAssigned(AppError):
    """The employee has no line manager to route the application to."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class ManagerInactive(NoManagerAssigned):
    """The assigned line manager is missing or soft-deleted."""


class NotAuthorized(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class InvalidStateTransition(AppError):
    """The application is no longer in a state that allows the action.

    Usually the benign loser of a race (e.g. an auto-approval sweep and an
    employee cancel hitting the same row).
    """

    status_code = status.HTTP_409_CONFLICT


class LedgerInvariantViolation(AppError):
    """A balance mutation would leave used, pending, total or available below zero."""

    status_code = status.HTTP_409_CONFLICT


class PersistenceFailure(AppError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]

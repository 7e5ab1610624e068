"""Error classes for the panel."""

from typing import Any

from pydantic import BaseModel


class PanelErrorResponse(BaseModel):
    """Standard error response model for JSON endpoints."""

    error: str
    message: str
    details: dict[str, Any] | None = None


class PanelError(Exception):
    """Base exception for panel errors."""

    def __init__(
        self,
        error: str,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.error = error
        self.message = message
        self.details = details
        super().__init__(message)

    def to_response(self) -> PanelErrorResponse:
        """Convert exception to error response model."""
        return PanelErrorResponse(
            error=self.error,
            message=self.message,
            details=self.details,
        )


class ApiUnavailableError(PanelError):
    """The remote API could not be reached."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            error="api_unavailable",
            message=message,
            details=details,
        )


class ApiUnauthorizedError(PanelError):
    """The remote API kept answering 401 after the retry."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            error="api_unauthorized",
            message=message,
            details=details,
        )


class ApiResponseError(PanelError):
    """The remote API answered with a non-success status."""

    def __init__(
        self,
        message: str,
        status_code: int,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(
            error="api_response_error",
            message=message,
            details=details,
        )


class LoginError(PanelError):
    """Login was rejected or produced no usable token."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            error="login_error",
            message=message,
            details=details,
        )


class NotAuthenticatedError(PanelError):
    """No signed-in principal for a protected route."""

    def __init__(self, return_url: str | None = None) -> None:
        self.return_url = return_url
        super().__init__(
            error="not_authenticated",
            message="Authentication required",
            details={"return_url": return_url} if return_url else None,
        )

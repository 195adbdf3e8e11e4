"""Domain errors raised by services and rendered by the global error handler."""


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class BadRequestError(AppError):
    status_code = 400


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class UpstreamError(AppError):
    """An external platform failed or refused the request."""

    status_code = 502

import logging

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base error carrying the HTTP status and the message shown to the caller."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class NotFoundOrUnauthorized(AppError):
    """
    Raised when an ownership-filtered lookup matches nothing. A missing post
    and a post owned by someone else are reported the same way.
    """

    status_code = 404


class UpstreamError(AppError):
    status_code = 500


class StoreError(UpstreamError):
    pass


class StorageError(UpstreamError):
    pass


class StoreTimeout(StoreError):
    status_code = 503


def public_error(error: UpstreamError, message: str) -> UpstreamError:
    """
    Log an upstream failure with its details and return a generic error for
    the caller. Timeouts keep their retryable status.
    """
    logger.error("%s: %s", message, error.message, exc_info=error)
    if isinstance(error, StoreTimeout):
        return StoreTimeout(f"{message}, please try again")
    return UpstreamError(message)

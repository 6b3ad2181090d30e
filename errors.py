"""
Domain errors raised by the services.

Each carries the HTTP status it maps to; ``main`` turns them into the same
``{"detail": ...}`` payload that ``HTTPException`` produces.
"""
from typing import Optional


class PortfolioError(Exception):
    status_code = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class InvalidRequestError(PortfolioError):
    status_code = 400


class NotFoundError(PortfolioError):
    status_code = 404


class ProjectNotFound(NotFoundError):
    def __init__(self, locale: str, key: str):
        super().__init__(f"Project not found: {locale}/{key}")
        self.locale = locale
        self.key = key


class DuplicateRecordError(PortfolioError):
    """A record already holds the slug or the (locale, originalId) pair."""
    status_code = 409

    def __init__(self, detail: str, suggestion: Optional[str] = None):
        super().__init__(detail)
        self.suggestion = suggestion


class DatabaseUnavailable(PortfolioError):
    status_code = 500


class StorageError(PortfolioError):
    status_code = 500


class InvalidUploadError(StorageError):
    status_code = 400


class UploadTooLargeError(StorageError):
    status_code = 413


class RateLimitedError(PortfolioError):
    status_code = 429

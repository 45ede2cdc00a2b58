# docshare/errors.py
import logging
from typing import Optional
from fastapi import HTTPException

logger = logging.getLogger(__name__)


class DocShareError(Exception):
    """Base class for every failure surfaced to a page."""
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class Unauthenticated(DocShareError):
    """No token held, or the backend rejected the one we sent."""
    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class InvalidCredentials(DocShareError):
    status_code = 401

    def __init__(self, message: str = "Invalid username or password"):
        super().__init__(message)


class Forbidden(DocShareError):
    status_code = 403

    def __init__(self, message: str = "Admin role required"):
        super().__init__(message)


class NotShareable(DocShareError):
    status_code = 409

    def __init__(self, message: str = "This document does not have a shareable link for preview. Please share it first."):
        super().__init__(message)


class NetworkError(DocShareError):
    """Transport failure, timeout or non-success status from the backend."""
    status_code = 502

    def __init__(self, message: str = "Backend request failed", status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class FetchError(DocShareError):
    """A secondary fetch of an access URL did not succeed."""
    status_code = 502

    def __init__(self, status: int, message: Optional[str] = None):
        super().__init__(message or f"HTTP error! status: {status}")
        self.status = status


class EmptyBody(DocShareError):
    status_code = 422

    def __init__(self, message: str = "No content returned for preview"):
        super().__init__(message)


class DecodeError(DocShareError):
    status_code = 422

    def __init__(self, message: str = "Content could not be decoded"):
        super().__init__(message)


class ValidationError(DocShareError):
    """Local form constraint violated; blocks submission."""
    status_code = 422


class ConfirmationRequired(DocShareError):
    status_code = 409

    def __init__(self, message: str = "This action requires confirmation"):
        super().__init__(message)


def to_http(exc: DocShareError, message: Optional[str] = None) -> HTTPException:
    """
    Convert a domain error into an HTTPException for the front server.

    `message` is the page-level text ("Failed to fetch documents"); local
    validation and gating errors keep their own text since that is what the
    user has to act on.
    """
    if isinstance(exc, (ValidationError, ConfirmationRequired, Unauthenticated, Forbidden, NotShareable)):
        detail = exc.message
    else:
        detail = message or exc.message
    logger.error(f"{detail}: {exc.__class__.__name__}: {exc.message}")
    return HTTPException(status_code=exc.status_code, detail=detail)

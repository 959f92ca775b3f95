"""
Error taxonomy for the book store API.
Each error carries the HTTP status code it is reported with.
"""

from fastapi import status


class BooksAPIError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error: str = "Internal server error"

    def __init__(self, detail: str = ""):
        super().__init__(detail or self.error)
        self.detail = detail or None


class NotFound(BooksAPIError):
    """No document exists for the requested identifier."""

    status_code = status.HTTP_404_NOT_FOUND
    error = "Not found"


class InvalidFilterSyntax(BooksAPIError):
    """A filter string could not be parsed."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "Invalid filter syntax"


class StoreUnavailable(BooksAPIError):
    """The document store could not be reached or rejected the operation."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error = "Document store unavailable"


class AlreadyExists(BooksAPIError):
    """A document with the same identifier is already stored."""

    status_code = status.HTTP_409_CONFLICT
    error = "Already exists"


class InvalidDocument(BooksAPIError):
    """A document holds values the document store cannot encode."""

    status_code = status.HTTP_400_BAD_REQUEST
    error = "Invalid document"

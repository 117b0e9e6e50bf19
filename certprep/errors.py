"""HTTP error taxonomy shared by services and routes.

Services raise these directly; FastAPI renders them like any other
``HTTPException`` (``{"detail": ...}`` with the matching status code).
"""
from fastapi import HTTPException, status


class NotFound(HTTPException):
    """Unknown test, attempt or goal."""

    def __init__(self, detail: str = "Not found") -> None:
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class BadRequest(HTTPException):
    """Missing or malformed input."""

    def __init__(self, detail: str = "Bad request") -> None:
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class Unauthorized(HTTPException):
    """Authenticated caller does not own the requested resource."""

    def __init__(self, detail: str = "Not allowed") -> None:
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class Conflict(HTTPException):
    """Idempotency key already used for a different submission."""

    def __init__(self, detail: str = "Conflict") -> None:
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)

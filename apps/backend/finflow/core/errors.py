"""Domain exceptions raised by services and rendered by the API layer.

Services never build HTTP responses themselves; ``finflow.main`` maps each
exception class to a status code.
"""

from __future__ import annotations


class FinflowError(Exception):
    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class InvalidInputError(FinflowError):
    """Malformed period, date or missing field detected past request parsing."""

    status_code = 400


class CategoryReferenceError(FinflowError):
    """The referenced category does not exist or belongs to another user."""

    status_code = 400


class NotFoundError(FinflowError):
    status_code = 404


class ConflictError(FinflowError):
    status_code = 409

"""Domain errors raised by services for rejected primary operations.

Routers never catch these: the global error handler maps each subclass to its
HTTP status with a ``{"detail": ...}`` body.
"""

from __future__ import annotations


class WordFlowError(Exception):
    """Base class for a rejected operation."""

    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class InvalidOperationError(WordFlowError):
    status_code = 400


class PermissionDeniedError(WordFlowError):
    status_code = 403


class NotFoundError(WordFlowError):
    status_code = 404


class ConflictError(WordFlowError):
    status_code = 409

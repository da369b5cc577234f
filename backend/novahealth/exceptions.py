"""Typed service-layer errors.

Routes and services raise these; the handlers registered in ``main.py`` turn
them into ``{"success": false, "message": ...}`` envelopes with the matching
HTTP status. Anything not listed here ends up as a generic 500.
"""

from __future__ import annotations


class ServiceError(Exception):
    """Base exception for all service layer errors."""

    status_code = 500

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NotFoundError(ServiceError):
    """Raised when a requested resource cannot be located."""

    status_code = 404

    def __init__(self, message: str, resource: str | None = None):
        self.resource = resource
        super().__init__(message)


class ValidationFailure(ServiceError):
    """Raised when a request body passes schema parsing but breaks a domain rule."""

    status_code = 400

    def __init__(self, message: str, errors: list[dict] | None = None):
        self.errors = errors or []
        super().__init__(message)


class ConflictError(ServiceError):
    """Raised when a write would violate a uniqueness rule (duplicate name, email)."""

    status_code = 400


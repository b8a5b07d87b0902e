# roomy/domain/errors.py
from __future__ import annotations


class DomainError(Exception):
    """Business-rule failure raised below the router layer."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConflictError(DomainError):
    status_code = 409


class RuleViolation(DomainError):
    status_code = 422


class PayloadTooLarge(DomainError):
    status_code = 413

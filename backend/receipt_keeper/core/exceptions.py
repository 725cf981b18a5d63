"""Domain exceptions shared by repositories, services and the API layer.

Repositories raise ``NotFoundError``, ``DuplicateKeyError`` and
``StoreError``; services add the authorization and credential errors.
The API layer maps each class to an HTTP status in
``receipt_keeper.api.error_handlers``.
"""

from __future__ import annotations


class ReceiptKeeperError(Exception):
    """Base exception for all domain errors."""

    status_code: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message or self.__class__.__doc__ or ""


class NotFoundError(ReceiptKeeperError):
    """Raised when an entity is absent or a targeted mutation hit zero rows."""

    status_code = 404


class AlreadyExistsError(ReceiptKeeperError):
    """Raised when creating an entity would violate a uniqueness rule."""

    status_code = 409


class DuplicateKeyError(AlreadyExistsError):
    """Raised when the store rejects a write on a unique constraint."""


class UnauthorizedError(ReceiptKeeperError):
    """Raised when the requester does not own the resource."""

    status_code = 403


class InvalidCredentialsError(ReceiptKeeperError):
    """Raised on login failure without revealing which factor was wrong."""

    status_code = 401


class InvalidTokenError(ReceiptKeeperError):
    """Raised when a bearer token is malformed, expired or revoked."""

    status_code = 401


class ValidationFailedError(ReceiptKeeperError):
    """Raised when input is malformed in a way the request schema cannot catch."""

    status_code = 400


class StoreError(ReceiptKeeperError):
    """Raised for any other persistence failure."""

    status_code = 500


__all__ = [
    "ReceiptKeeperError",
    "NotFoundError",
    "AlreadyExistsError",
    "DuplicateKeyError",
    "UnauthorizedError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "ValidationFailedError",
    "StoreError",
]

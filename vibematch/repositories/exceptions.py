"""Custom exceptions for the repository layer."""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Base exception raised when a repository operation fails."""


class NotFoundRepositoryError(RepositoryError):
    """Raised when an expected document is missing."""


class StoreUnavailableError(RepositoryError):
    """Raised when the profile store cannot be reached or does not answer in time.

    Callers should treat this as transient; the repository does not retry.
    """


__all__ = [
    "NotFoundRepositoryError",
    "RepositoryError",
    "StoreUnavailableError",
]

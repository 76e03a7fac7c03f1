"""Repository layer to abstract profile store access patterns."""

from .base import ProfileStore
from .exceptions import NotFoundRepositoryError, RepositoryError, StoreUnavailableError
from .profile import ProfileRepository

__all__ = [
    "NotFoundRepositoryError",
    "ProfileRepository",
    "ProfileStore",
    "RepositoryError",
    "StoreUnavailableError",
]

"""In-memory repository implementations for testing."""

from .comment import InMemoryCommentRepository, InMemoryIntegrityError
from .user import InMemoryUserRepository

__all__ = [
    "InMemoryCommentRepository",
    "InMemoryIntegrityError",
    "InMemoryUserRepository",
]

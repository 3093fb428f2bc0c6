"""PostgreSQL repository implementations."""

from fines.persistence.repository.comment import PostgresCommentRepository
from fines.persistence.repository.user import PostgresUserRepository

__all__ = [
    "PostgresCommentRepository",
    "PostgresUserRepository",
]

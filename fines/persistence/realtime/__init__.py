"""Realtime change feed implementations."""

from fines.persistence.realtime.inmemory import InMemoryChangeFeed
from fines.persistence.realtime.postgres import PostgresChangeFeed

__all__ = [
    "InMemoryChangeFeed",
    "PostgresChangeFeed",
]

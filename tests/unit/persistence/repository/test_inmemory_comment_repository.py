"""Unit tests for the in-memory comment repository and change feed."""

import pytest

from fines.domain.model import CommentCreate
from fines.domain.value import ChangeType, CommentId, SubscriptionStatus
from fines.persistence.realtime import InMemoryChangeFeed
from fines.persistence.repository.inmemory import (
    InMemoryCommentRepository,
    InMemoryUserRepository,
)
from fines.persistence.repository.inmemory.comment import InMemoryIntegrityError
from tests.conftest import ALICE, FINE_ID, make_comment


def _create(content="hello", parent=None):
    return CommentCreate(
        content=content,
        fine_id=FINE_ID,
        author_id=ALICE.id,
        parent_comment_id=CommentId(parent) if parent else None,
    )


class TestInMemoryCommentRepository:
    """Tests for InMemoryCommentRepository."""

    @pytest.mark.asyncio
    async def test_create_timestamps_strictly_increase(self):
        """Back-to-back inserts never share a creation time."""
        # Arrange
        repo = InMemoryCommentRepository()

        # Act
        first = await repo.create(_create("one"))
        second = await repo.create(_create("two"))

        # Assert
        assert second.created_at > first.created_at

    @pytest.mark.asyncio
    async def test_create_with_missing_parent_violates_foreign_key(self):
        """Replies need an existing parent row."""
        repo = InMemoryCommentRepository()

        with pytest.raises(InMemoryIntegrityError) as exc_info:
            await repo.create(_create(parent="missing"))
        assert exc_info.value.sqlstate == "23503"

    @pytest.mark.asyncio
    async def test_authors_are_joined(self):
        """Reads carry author data from the user repository."""
        # Arrange
        users = InMemoryUserRepository()
        users.add(ALICE)
        repo = InMemoryCommentRepository(user_repository=users)
        repo.add(make_comment("a"))

        # Act
        comment = await repo.find_by_id(CommentId("a"))

        # Assert
        assert comment.author == ALICE

    @pytest.mark.asyncio
    async def test_writes_publish_row_changes(self):
        """Every write reaches subscribers of the fine as a row change."""
        # Arrange
        feed = InMemoryChangeFeed()
        repo = InMemoryCommentRepository(change_feed=feed)
        changes = []

        async def on_change(change):
            changes.append(change)

        await feed.subscribe(FINE_ID, on_change, lambda s, e: None)

        # Act
        created = await repo.create(_create("before"))
        await repo.update_content(created.id, "after")
        await repo.soft_delete(created.id)

        # Assert
        assert [c.type for c in changes] == [
            ChangeType.INSERT,
            ChangeType.UPDATE,
            ChangeType.UPDATE,
        ]
        assert changes[0].new["content"] == "before"
        assert "author" not in changes[0].new
        assert changes[1].old["content"] == "before"
        assert changes[2].new["is_deleted"] is True


class TestInMemoryChangeFeed:
    """Tests for InMemoryChangeFeed."""

    @pytest.mark.asyncio
    async def test_subscription_lifecycle_statuses(self):
        """Subscribe, unsubscribe and failures are reported."""
        # Arrange
        feed = InMemoryChangeFeed()
        statuses = []

        async def on_change(change):
            pass

        first = await feed.subscribe(
            FINE_ID, on_change, lambda status, error: statuses.append(status)
        )
        await feed.subscribe(
            FINE_ID, on_change, lambda status, error: statuses.append(status)
        )

        # Act
        await feed.unsubscribe(first)
        feed.fail()

        # Assert
        assert statuses == [
            SubscriptionStatus.SUBSCRIBED,
            SubscriptionStatus.SUBSCRIBED,
            SubscriptionStatus.CLOSED,
            SubscriptionStatus.CHANNEL_ERROR,
        ]
        assert feed.subscriptions == []

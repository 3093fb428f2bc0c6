"""Unit tests for CommentStoreClient."""

import pytest

from fines.domain.model import UNKNOWN_AUTHOR, CommentCreate, CommentPatch
from fines.domain.repository import CommentRepository
from fines.domain.service import CommentStoreClient
from fines.domain.value import CommentId, ErrorType, UserId
from fines.persistence.repository.inmemory import (
    InMemoryCommentRepository,
    InMemoryUserRepository,
)
from tests.conftest import ALICE, BOB, FINE_ID, ids, make_comment
from tests.harness import create_env_fixture

# Unit test fixture - everything mocked, no docker needed
unit_env = create_env_fixture()


class _FailingRepository(InMemoryCommentRepository):
    """Repository whose reads fail like a dropped connection."""

    async def find_thread(self, fine_id):
        raise ConnectionError("connection refused")


class TestFetchThread:
    """Tests for fetch_thread."""

    @pytest.mark.asyncio
    async def test_fetch_thread_builds_tree_with_authors(self, unit_env):
        """Stored rows should come back nested, with authors joined."""
        # Arrange
        store = await unit_env.get(CommentStoreClient)
        users = await unit_env.get(InMemoryUserRepository)
        repo = await unit_env.get(InMemoryCommentRepository)
        users.add(ALICE)
        users.add(BOB)
        repo.add(make_comment("a", minute=0, author=ALICE))
        repo.add(make_comment("b", parent="a", minute=1, author=BOB))
        repo.add(make_comment("c", minute=2, author=ALICE))

        # Act
        result = await store.fetch_thread(FINE_ID)

        # Assert
        assert result.ok
        assert result.data.total_count == 3
        assert ids(result.data.comments) == ["a", "c"]
        assert ids(result.data.comments[0].replies) == ["b"]
        assert result.data.comments[0].replies[0].author == BOB

    @pytest.mark.asyncio
    async def test_fetch_thread_hides_deleted_leaves(self, unit_env):
        """Deleted comments only appear while they hold replies."""
        # Arrange
        store = await unit_env.get(CommentStoreClient)
        repo = await unit_env.get(InMemoryCommentRepository)
        repo.add(make_comment("a", minute=0, is_deleted=True))
        repo.add(make_comment("b", parent="a", minute=1))
        repo.add(make_comment("gone", minute=2, is_deleted=True))

        # Act
        result = await store.fetch_thread(FINE_ID)

        # Assert
        assert result.data.total_count == 2
        assert ids(result.data.comments) == ["a"]
        assert result.data.comments[0].is_deleted is True
        assert result.data.comments[0].content == ""

    @pytest.mark.asyncio
    async def test_unknown_author_is_substituted(self, unit_env):
        """Comments by users without a profile get the unknown author."""
        # Arrange
        store = await unit_env.get(CommentStoreClient)
        repo = await unit_env.get(InMemoryCommentRepository)
        repo.add(make_comment("a", author=ALICE))

        # Act
        result = await store.fetch_thread(FINE_ID)

        # Assert
        assert result.data.comments[0].author == UNKNOWN_AUTHOR

    @pytest.mark.asyncio
    async def test_repository_failure_is_returned_not_raised(self, unit_env):
        """Exceptions never cross the store boundary."""
        # Arrange
        users = await unit_env.get(InMemoryUserRepository)
        store = CommentStoreClient(
            comment_repository=_FailingRepository(), user_repository=users
        )

        # Act
        result = await store.fetch_thread(FINE_ID)

        # Assert
        assert not result.ok
        assert result.data is None
        assert result.error.type == ErrorType.NETWORK
        assert result.error.retryable is True


class TestWrites:
    """Tests for create, update and soft_delete."""

    @pytest.mark.asyncio
    async def test_create_assigns_id_and_timestamps(self, unit_env):
        """The store assigns identity and creation time."""
        # Arrange
        store = await unit_env.get(CommentStoreClient)
        users = await unit_env.get(InMemoryUserRepository)
        users.add(ALICE)

        # Act
        result = await store.create(
            CommentCreate(content="First!", fine_id=FINE_ID, author_id=ALICE.id)
        )

        # Assert
        assert result.ok
        comment = result.data
        assert comment.id
        assert not comment.is_temporary
        assert comment.created_at == comment.updated_at
        assert comment.author == ALICE

    @pytest.mark.asyncio
    async def test_create_reply_to_missing_parent_is_validation_error(self, unit_env):
        """A dangling parent reference violates the foreign key."""
        # Arrange
        store = await unit_env.get(CommentStoreClient)

        # Act
        result = await store.create(
            CommentCreate(
                content="reply",
                fine_id=FINE_ID,
                author_id=ALICE.id,
                parent_comment_id=CommentId("missing"),
            )
        )

        # Assert
        assert result.error.type == ErrorType.VALIDATION
        assert result.error.code == "23503"
        assert result.error.user_message == "The referenced item no longer exists."

    @pytest.mark.asyncio
    async def test_update_changes_content_and_marks_edited(self, unit_env):
        """Updating bumps updated_at past created_at."""
        # Arrange
        store = await unit_env.get(CommentStoreClient)
        created = await store.create(
            CommentCreate(content="before", fine_id=FINE_ID, author_id=ALICE.id)
        )

        # Act
        result = await store.update(created.data.id, CommentPatch(content="after"))

        # Assert
        assert result.data.content == "after"
        assert result.data.is_edited is True

    @pytest.mark.asyncio
    async def test_update_missing_comment_is_not_found(self, unit_env):
        """Updating an unknown id reports not found."""
        # Arrange
        store = await unit_env.get(CommentStoreClient)

        # Act
        result = await store.update(CommentId("nope"), CommentPatch(content="x"))

        # Assert
        assert result.error.type == ErrorType.NOT_FOUND

    @pytest.mark.asyncio
    async def test_soft_delete_keeps_row(self, unit_env):
        """Soft delete flags the row instead of removing it."""
        # Arrange
        store = await unit_env.get(CommentStoreClient)
        repo = await unit_env.get(CommentRepository)
        created = await store.create(
            CommentCreate(content="oops", fine_id=FINE_ID, author_id=ALICE.id)
        )

        # Act
        result = await store.soft_delete(created.data.id)

        # Assert
        assert result.data.is_deleted is True
        stored = await repo.find_by_id(created.data.id)
        assert stored is not None
        assert stored.is_deleted is True


class TestLookups:
    """Tests for get_comment and get_author."""

    @pytest.mark.asyncio
    async def test_get_author_returns_profile(self, unit_env):
        """Known users resolve to their author data."""
        # Arrange
        store = await unit_env.get(CommentStoreClient)
        users = await unit_env.get(InMemoryUserRepository)
        users.add(BOB)

        # Act
        result = await store.get_author(BOB.id)

        # Assert
        assert result.data == BOB

    @pytest.mark.asyncio
    async def test_get_author_missing_is_not_found(self, unit_env):
        """Unknown users are a not-found error, not None."""
        # Arrange
        store = await unit_env.get(CommentStoreClient)

        # Act
        result = await store.get_author(UserId("ghost"))

        # Assert
        assert result.error.type == ErrorType.NOT_FOUND

    @pytest.mark.asyncio
    async def test_get_comment_missing_is_not_found(self, unit_env):
        """Unknown comments are a not-found error."""
        # Arrange
        store = await unit_env.get(CommentStoreClient)

        # Act
        result = await store.get_comment(CommentId("ghost"))

        # Assert
        assert result.error.type == ErrorType.NOT_FOUND

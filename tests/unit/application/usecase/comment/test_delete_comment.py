"""Unit tests for DeleteCommentUseCase."""

import pytest

from fines.application.usecase.comment import (
    DeleteCommentRequest,
    DeleteCommentUseCase,
)
from fines.domain.error import ContentDeletedException, NotAuthorizedError
from fines.persistence.repository.inmemory import InMemoryCommentRepository
from tests.conftest import ALICE, BOB, FINE_ID, make_comment
from tests.harness import create_env_fixture

# Unit test fixture
unit_env = create_env_fixture()


class TestDeleteCommentUseCase:
    """Tests for DeleteCommentUseCase."""

    @pytest.mark.asyncio
    async def test_delete_parent_keeps_tombstone_in_thread(self, unit_env):
        """A deleted comment with replies still holds its place."""
        # Arrange
        use_case = await unit_env.get(DeleteCommentUseCase)
        repo = await unit_env.get(InMemoryCommentRepository)
        repo.add(make_comment("a", minute=0, author=ALICE))
        repo.add(make_comment("b", parent="a", minute=1, author=BOB))

        # Act
        response = await use_case.execute(
            DeleteCommentRequest(comment_id="a", user_id=ALICE.id)
        )

        # Assert
        assert response.comment.is_deleted is True
        thread = await repo.find_thread(FINE_ID)
        assert [c.id for c in thread] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_delete_leaf_hides_it(self, unit_env):
        """A deleted comment without replies leaves the thread."""
        # Arrange
        use_case = await unit_env.get(DeleteCommentUseCase)
        repo = await unit_env.get(InMemoryCommentRepository)
        repo.add(make_comment("a", author=ALICE))

        # Act
        await use_case.execute(DeleteCommentRequest(comment_id="a", user_id=ALICE.id))

        # Assert
        assert await repo.find_thread(FINE_ID) == []

    @pytest.mark.asyncio
    async def test_non_author_cannot_delete(self, unit_env):
        """Only the author may delete."""
        use_case = await unit_env.get(DeleteCommentUseCase)
        repo = await unit_env.get(InMemoryCommentRepository)
        repo.add(make_comment("a", author=ALICE))

        with pytest.raises(NotAuthorizedError):
            await use_case.execute(DeleteCommentRequest(comment_id="a", user_id=BOB.id))

    @pytest.mark.asyncio
    async def test_cannot_delete_twice(self, unit_env):
        """Deleting a deleted comment is refused."""
        use_case = await unit_env.get(DeleteCommentUseCase)
        repo = await unit_env.get(InMemoryCommentRepository)
        repo.add(make_comment("a", author=ALICE, is_deleted=True))

        with pytest.raises(ContentDeletedException):
            await use_case.execute(
                DeleteCommentRequest(comment_id="a", user_id=ALICE.id)
            )

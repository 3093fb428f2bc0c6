"""Unit tests for comment hierarchy building."""

from fines.domain.model import CommentNode, PendingMutation
from fines.domain.service import (
    build_comment_tree,
    count_total_replies,
    find_comment,
    flatten_comment_tree,
    replace_comment,
    select_visible_comments,
)
from fines.domain.value import CommentId, MutationKind
from tests.conftest import BOB, ids, make_comment


def _shape(nodes: list[CommentNode]) -> list[tuple[str, list]]:
    return [(node.id, _shape(node.replies)) for node in nodes]


class TestBuildCommentTree:
    """Tests for build_comment_tree."""

    def test_empty_input_builds_empty_tree(self):
        """No comments means no roots."""
        assert build_comment_tree([]) == []

    def test_nests_replies_under_parents(self):
        """Replies should land under their parent, at any depth."""
        # Arrange
        comments = [
            make_comment("c", parent="b", minute=2),
            make_comment("a", minute=0),
            make_comment("b", parent="a", minute=1),
            make_comment("d", minute=3),
        ]

        # Act
        tree = build_comment_tree(comments)

        # Assert
        assert _shape(tree) == [("a", [("b", [("c", [])])]), ("d", [])]

    def test_orders_roots_and_replies_by_creation_time(self):
        """Roots and every replies list should be sorted ascending."""
        # Arrange
        comments = [
            make_comment("late-root", minute=10),
            make_comment("root", minute=0),
            make_comment("r2", parent="root", minute=5),
            make_comment("r1", parent="root", minute=2),
        ]

        # Act
        tree = build_comment_tree(comments)

        # Assert
        assert ids(tree) == ["root", "late-root"]
        assert ids(tree[0].replies) == ["r1", "r2"]

    def test_equal_timestamps_are_ordered_by_id(self):
        """Ties on created_at should not depend on input order."""
        # Arrange
        comments = [make_comment("b", minute=1), make_comment("a", minute=1)]

        # Act
        forward = build_comment_tree(comments)
        backward = build_comment_tree(list(reversed(comments)))

        # Assert
        assert ids(forward) == ["a", "b"]
        assert ids(backward) == ["a", "b"]

    def test_orphan_is_promoted_to_root(self):
        """A reply whose parent is missing should become a root."""
        # Arrange
        comments = [
            make_comment("root", minute=0),
            make_comment("orphan", parent="missing", minute=1),
        ]

        # Act
        tree = build_comment_tree(comments)

        # Assert
        assert ids(tree) == ["root", "orphan"]
        assert tree[1].parent_comment_id == "missing"

    def test_duplicate_ids_keep_last_occurrence(self):
        """A repeated id should appear once, with the last content."""
        # Arrange
        comments = [
            make_comment("a", content="first"),
            make_comment("a", content="second"),
        ]

        # Act
        tree = build_comment_tree(comments)

        # Assert
        assert len(tree) == 1
        assert tree[0].content == "second"

    def test_reply_count_matches_direct_replies(self):
        """reply_count should count direct children only."""
        # Arrange
        comments = [
            make_comment("a", minute=0),
            make_comment("b", parent="a", minute=1),
            make_comment("c", parent="a", minute=2),
            make_comment("d", parent="b", minute=3),
        ]

        # Act
        tree = build_comment_tree(comments)

        # Assert
        assert tree[0].reply_count == 2
        assert tree[0].replies[0].reply_count == 1
        assert tree[0].replies[1].reply_count == 0

    def test_deleted_leaf_does_not_break_build(self):
        """Deleted rows are normally filtered, but must still build."""
        # Arrange
        comments = [
            make_comment("a", minute=0),
            make_comment("b", parent="a", minute=1, is_deleted=True),
        ]

        # Act
        tree = build_comment_tree(comments)

        # Assert
        assert tree[0].replies[0].is_deleted is True


class TestFlattenCommentTree:
    """Tests for flatten_comment_tree."""

    def test_flatten_is_pre_order(self):
        """Each node should be followed by its reply subtrees."""
        # Arrange
        tree = build_comment_tree(
            [
                make_comment("a", minute=0),
                make_comment("b", parent="a", minute=1),
                make_comment("c", parent="b", minute=2),
                make_comment("d", parent="a", minute=3),
                make_comment("e", minute=4),
            ]
        )

        # Act
        flat = flatten_comment_tree(tree)

        # Assert
        assert [c.id for c in flat] == ["a", "b", "c", "d", "e"]
        assert all(not isinstance(c, CommentNode) for c in flat)

    def test_rebuild_after_flatten_keeps_shape(self):
        """build(flatten(tree)) should equal tree."""
        # Arrange
        tree = build_comment_tree(
            [
                make_comment("a", minute=0),
                make_comment("b", parent="a", minute=1),
                make_comment("c", parent="missing", minute=2),
            ]
        )

        # Act
        rebuilt = build_comment_tree(flatten_comment_tree(tree))

        # Assert
        assert _shape(rebuilt) == _shape(tree)

    def test_flatten_keeps_optimistic_state(self):
        """Local optimistic tags must survive a flatten/rebuild cycle."""
        # Arrange
        pending = PendingMutation(
            kind=MutationKind.INSERT,
            target_id=CommentId("temp-1"),
            optimistic_id="temp-1",
        )
        tentative = make_comment("temp-1", minute=1).model_copy(
            update={"optimistic": pending}
        )

        # Act
        rebuilt = build_comment_tree(
            flatten_comment_tree(build_comment_tree([tentative]))
        )

        # Assert
        assert rebuilt[0].optimistic == pending
        assert rebuilt[0].is_temporary is True


class TestTreeQueries:
    """Tests for count_total_replies and find_comment."""

    def test_count_total_replies_is_transitive(self):
        """All descendants should be counted."""
        # Arrange
        tree = build_comment_tree(
            [
                make_comment("a", minute=0),
                make_comment("b", parent="a", minute=1),
                make_comment("c", parent="b", minute=2),
                make_comment("d", parent="a", minute=3),
            ]
        )

        # Act / Assert
        assert count_total_replies(tree[0]) == 3
        assert count_total_replies(tree[0].replies[1]) == 0

    def test_find_comment_searches_nested_replies(self):
        """find_comment should reach any depth and return None when absent."""
        # Arrange
        tree = build_comment_tree(
            [
                make_comment("a", minute=0),
                make_comment("b", parent="a", minute=1),
                make_comment("c", parent="b", minute=2, author=BOB),
            ]
        )

        # Act
        found = find_comment(tree, CommentId("c"))
        missing = find_comment(tree, CommentId("zzz"))

        # Assert
        assert found is not None
        assert found.author == BOB
        assert missing is None


class TestSelectVisibleComments:
    """Tests for select_visible_comments."""

    def test_deleted_leaf_is_hidden(self):
        """A deleted comment without replies should not be shown."""
        # Arrange
        rows = [
            make_comment("a", minute=0),
            make_comment("b", parent="a", minute=1, is_deleted=True),
        ]

        # Act
        visible = select_visible_comments(rows)

        # Assert
        assert [c.id for c in visible] == ["a"]

    def test_deleted_comment_with_live_reply_is_kept(self):
        """Tombstones hold their reply chains together."""
        # Arrange
        rows = [
            make_comment("a", minute=0, is_deleted=True),
            make_comment("b", parent="a", minute=1),
        ]

        # Act
        visible = select_visible_comments(rows)

        # Assert
        assert [c.id for c in visible] == ["a", "b"]

    def test_chain_of_tombstones_is_kept_transitively(self):
        """Every deleted ancestor of a live comment should be kept."""
        # Arrange
        rows = [
            make_comment("a", minute=0, is_deleted=True),
            make_comment("b", parent="a", minute=1, is_deleted=True),
            make_comment("c", parent="b", minute=2),
            make_comment("x", minute=3, is_deleted=True),
        ]

        # Act
        visible = select_visible_comments(rows)

        # Assert
        assert [c.id for c in visible] == ["a", "b", "c"]


class TestReplaceComment:
    """Tests for replace_comment."""

    def test_replaces_nested_node_without_touching_input(self):
        """A matched node should be swapped in a copy of the tree."""
        # Arrange
        tree = build_comment_tree(
            [
                make_comment("a", minute=0),
                make_comment("b", parent="a", minute=1, content="old"),
            ]
        )

        # Act
        result = replace_comment(
            tree,
            lambda node: node.id == "b",
            lambda node: node.model_copy(update={"content": "new"}),
        )

        # Assert
        assert result[0].replies[0].content == "new"
        assert tree[0].replies[0].content == "old"

    def test_returning_none_drops_the_subtree(self):
        """replace returning None should remove the node and its replies."""
        # Arrange
        tree = build_comment_tree(
            [
                make_comment("a", minute=0),
                make_comment("b", parent="a", minute=1),
                make_comment("c", parent="b", minute=2),
            ]
        )

        # Act
        result = replace_comment(tree, lambda node: node.id == "b", lambda _: None)

        # Assert
        assert _shape(result) == [("a", [])]

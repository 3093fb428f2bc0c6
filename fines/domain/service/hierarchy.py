"""Comment hierarchy building.

Threads are stored flat; every view of a thread is rebuilt from the flat
form rather than patched in place. ``build_comment_tree`` and
``flatten_comment_tree`` are inverse traversals:
``build(flatten(build(xs)))`` has the same shape as ``build(xs)``.
"""

from collections.abc import Callable, Iterable, Sequence
from datetime import datetime

from fines.domain.model.comment import Comment, CommentNode
from fines.domain.value import CommentId


def _sort_key(comment: Comment) -> tuple[datetime, str]:
    # Ties on created_at fall back to id so ordering never depends on input order
    return (comment.created_at, comment.id)


def build_comment_tree(comments: Iterable[Comment]) -> list[CommentNode]:
    """Build a reply tree from a flat set of one fine's comments.

    Algorithm:
    1. Index every comment by id as a node with no replies
       (a repeated id keeps its last occurrence)
    2. Attach each node to its parent's replies; a node whose parent is
       not in the input is promoted to a root
    3. Sort roots and every replies list by (created_at, id)

    The input must be acyclic. Deleted comments without replies are
    normally filtered out by the store but do not break the build.

    Args:
        comments: Flat comments, in any order

    Returns:
        Root nodes with replies populated recursively
    """
    index: dict[CommentId, CommentNode] = {}
    for comment in comments:
        index[comment.id] = CommentNode.from_comment(comment)

    roots: list[CommentNode] = []
    for node in index.values():
        parent = (
            index.get(node.parent_comment_id)
            if node.parent_comment_id is not None
            else None
        )
        if parent is not None and parent is not node:
            parent.replies.append(node)
        else:
            roots.append(node)

    def sort_replies(node: CommentNode) -> None:
        node.replies.sort(key=_sort_key)
        for reply in node.replies:
            sort_replies(reply)

    roots.sort(key=_sort_key)
    for root in roots:
        sort_replies(root)
    return roots


def flatten_comment_tree(nodes: Sequence[CommentNode]) -> list[Comment]:
    """Flatten a reply tree in pre-order (node, then each reply's subtree).

    Tree data is dropped; optimistic state is kept.
    """
    flattened: list[Comment] = []

    def visit(node: CommentNode) -> None:
        flattened.append(node.to_comment())
        for reply in node.replies:
            visit(reply)

    for node in nodes:
        visit(node)
    return flattened


def count_total_replies(node: CommentNode) -> int:
    """Count all descendants of a node, not just its direct replies."""
    return sum(1 + count_total_replies(reply) for reply in node.replies)


def find_comment(
    nodes: Sequence[CommentNode], comment_id: CommentId
) -> CommentNode | None:
    """Find a node anywhere in the tree by id."""
    for node in nodes:
        if node.id == comment_id:
            return node
        found = find_comment(node.replies, comment_id)
        if found is not None:
            return found
    return None


def select_visible_comments(comments: Iterable[Comment]) -> list[Comment]:
    """Select the comments of a fine that belong in its thread.

    Keeps every non-deleted comment and every deleted comment with at least
    one non-deleted descendant, so tombstones hold their reply chains
    together while deleted leaves disappear. Input order is preserved.
    """
    rows = list(comments)
    by_id = {c.id: c for c in rows}
    keep: set[CommentId] = set()

    for comment in rows:
        if comment.is_deleted:
            continue
        keep.add(comment.id)
        # Walk up through tombstoned ancestors
        parent_id = comment.parent_comment_id
        while parent_id is not None and parent_id not in keep:
            parent = by_id.get(parent_id)
            if parent is None:
                break
            keep.add(parent.id)
            parent_id = parent.parent_comment_id

    return [c for c in rows if c.id in keep]


def replace_comment(
    nodes: Sequence[CommentNode],
    match: Callable[[CommentNode], bool],
    replace: Callable[[CommentNode], CommentNode | None],
) -> list[CommentNode]:
    """Return a new tree with every matching node replaced.

    ``replace`` may return None to drop the node (and its subtree). The
    replies of a matched node are not searched further. Unmatched nodes
    are copied along the way; the input tree is left untouched.
    """
    result: list[CommentNode] = []
    for node in nodes:
        if match(node):
            replacement = replace(node)
            if replacement is not None:
                result.append(replacement)
            continue
        if node.replies:
            node = node.model_copy(
                update={"replies": replace_comment(node.replies, match, replace)}
            )
        result.append(node)
    return result

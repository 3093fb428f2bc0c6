"""Optimistic mutation states attached to tree nodes.

A node is in exactly one of three states: confirmed (no state attached),
pending (a local mutation is awaiting the store) or rejected (the store
refused the mutation and the node is waiting to be rolled back).
"""

from typing import Annotated, Literal, Union

from pydantic import Field

from fines.domain.model.common import DomainModel
from fines.domain.value import CommentId, MutationKind


class PendingMutation(DomainModel):
    """Local mutation applied to the tree, not yet confirmed."""

    status: Literal["pending"] = "pending"
    kind: MutationKind
    target_id: CommentId
    optimistic_id: str


class RejectedMutation(DomainModel):
    """Local mutation the store refused."""

    status: Literal["rejected"] = "rejected"
    kind: MutationKind
    target_id: CommentId
    optimistic_id: str
    message: str


OptimisticState = Annotated[
    Union[PendingMutation, RejectedMutation],
    Field(discriminator="status"),
]

"""Author entity.

Authors are owned by the external user store. Comments carry a
denormalized copy which this package never mutates.
"""

from fines.domain.model.common import DomainModel
from fines.domain.value import UserId


class Author(DomainModel):
    """Author information embedded on a comment at read time."""

    id: UserId
    username: str
    display_name: str | None = None


UNKNOWN_AUTHOR = Author(
    id=UserId(""),
    username="unknown",
    display_name="Unknown User",
)

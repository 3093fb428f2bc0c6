"""Comment validation and permission rules.

All functions are pure: they never touch the store and never raise.
"""

from typing import Optional

from fines.domain.model.comment import Comment
from fines.domain.model.common import DomainModel
from fines.domain.value import UserId

MAX_CONTENT_LENGTH = 2000

CONTENT_REQUIRED = "content_required"
CONTENT_TOO_LONG = "content_too_long"
FINE_ID_REQUIRED = "fine_id_required"
PARENT_COMMENT_ID_EMPTY = "parent_comment_id_empty"
COMMENT_PENDING = "comment_pending"


class FieldError(DomainModel):
    """A single failed validation rule."""

    field: str
    code: str
    message: str


class ValidationResult(DomainModel):
    """Outcome of validating a comment or form."""

    is_valid: bool
    errors: list[FieldError] = []

    @property
    def codes(self) -> list[str]:
        return [e.code for e in self.errors]


class CommentFormData(DomainModel):
    """Raw comment form input.

    ``parent_comment_id`` left out (or None) means a root comment; passing
    it as a blank string is an error.
    """

    content: str
    fine_id: str
    parent_comment_id: Optional[str] = None


def _result(errors: list[FieldError]) -> ValidationResult:
    return ValidationResult(is_valid=not errors, errors=errors)


def validate_content(
    content: str, max_length: int = MAX_CONTENT_LENGTH
) -> ValidationResult:
    """Validate comment content.

    Both rules are checked independently against the trimmed text.

    Args:
        content: Raw comment text
        max_length: Maximum trimmed length

    Returns:
        Validation result with ``content_required`` / ``content_too_long``
    """
    errors: list[FieldError] = []
    trimmed = (content or "").strip()

    if not trimmed:
        errors.append(
            FieldError(
                field="content",
                code=CONTENT_REQUIRED,
                message="Comment content is required",
            )
        )
    if len(trimmed) > max_length:
        errors.append(
            FieldError(
                field="content",
                code=CONTENT_TOO_LONG,
                message=f"Comment content must be {max_length} characters or less",
            )
        )
    return _result(errors)


def validate_form_data(
    form: CommentFormData, max_length: int = MAX_CONTENT_LENGTH
) -> ValidationResult:
    """Validate a full comment form: content, fine and optional parent."""
    errors = list(validate_content(form.content, max_length).errors)

    if not form.fine_id.strip():
        errors.append(
            FieldError(
                field="fine_id",
                code=FINE_ID_REQUIRED,
                message="Fine ID is required",
            )
        )

    if form.parent_comment_id is not None and not form.parent_comment_id.strip():
        errors.append(
            FieldError(
                field="parent_comment_id",
                code=PARENT_COMMENT_ID_EMPTY,
                message="Parent comment ID cannot be empty if provided",
            )
        )
    return _result(errors)


def can_edit(comment: Comment, user_id: UserId | str) -> bool:
    """Only the author may edit, and only while the comment is live."""
    return comment.author_id == user_id and not comment.is_deleted


def can_delete(comment: Comment, user_id: UserId | str) -> bool:
    """Same rule as editing, kept separate so the two can diverge."""
    return comment.author_id == user_id and not comment.is_deleted


def can_reply(comment: Comment) -> bool:
    """Tombstones cannot be replied to."""
    return not comment.is_deleted


def pending_comment_error(field: str) -> FieldError:
    """Error for acting on a comment the store has not confirmed yet."""
    return FieldError(
        field=field,
        code=COMMENT_PENDING,
        message="Comment is still being saved",
    )

"""Page/per_page handling shared by list operations."""

from hisab.domain.errors import ValidationError

MAX_PER_PAGE = 500


def page_offset(page: int, per_page: int) -> int:
    """Validate 1-based paging arguments and return the row offset."""
    if page < 1:
        raise ValidationError(f"Page must be 1 or greater, got {page}")
    if per_page < 1 or per_page > MAX_PER_PAGE:
        raise ValidationError(f"per_page must be between 1 and {MAX_PER_PAGE}, got {per_page}")
    return (page - 1) * per_page

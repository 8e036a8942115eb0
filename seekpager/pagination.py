"""
Result envelope for paginated responses.

Bundles the rows of a page with the token clients send back for the next one.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from .cursor import Cursor

T = TypeVar("T")
C = TypeVar("C", bound=Cursor)


@dataclass
class PageResult(Generic[T, C]):
    """
    Represents a single page of results with the cursor for the next page.

    Attributes:
        items: Rows of this page (lookahead row already trimmed)
        total: Total number of rows in the dataset, if counted
        applied_limit: Page size effectively used for the query
        next_page_token: Cursor for the next page (None if this is the last page)
    """

    items: list[T]
    next_page_token: C | None = None
    applied_limit: int = 0
    total: int | None = None

    @property
    def has_more(self) -> bool:
        """Returns True if there are more pages available."""
        return self.next_page_token is not None and not self.next_page_token.is_empty()

    @property
    def next_token(self) -> str:
        """Serialized next page token; empty string on the last page."""
        if self.next_page_token is None:
            return ""
        return self.next_page_token.serialize()

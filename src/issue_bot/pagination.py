"""
Paginated access to remote GitHub collections.

A ``Page`` holds one page of results and knows how to fetch the page that
follows it. Pages are fetched lazily, one at a time, as the consumer
advances.
"""

from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Generic, TypeVar

T = TypeVar("T")


class Page(Generic[T]):
    """One page of a remote collection with a deferred fetch of the next page."""

    def __init__(
        self,
        content: list[T],
        next_page: Callable[[], Awaitable["Page[T] | None"]] | None = None,
    ) -> None:
        """
        Initialize the page.

        Args:
            content: Items on this page
            next_page: Coroutine function fetching the following page, or None
                if this is the last page
        """
        self._content = list(content)
        self._next_page = next_page

    @property
    def content(self) -> list[T]:
        """Items on this page only."""
        return list(self._content)

    @property
    def has_next(self) -> bool:
        return self._next_page is not None

    async def next(self) -> "Page[T] | None":
        """
        Fetch the next page.

        Returns:
            The next page, or None when there are no further pages
        """
        if self._next_page is None:
            return None
        return await self._next_page()

    def __repr__(self) -> str:
        return f"Page(items={len(self._content)}, has_next={self.has_next})"


async def iterate_pages(page: Page[T] | None) -> AsyncIterator[T]:
    """
    Iterate over every item of a paginated collection.

    Pages are fetched only once the previous page has been consumed. A
    ``None`` page is treated as an empty collection.
    """
    while page is not None:
        for item in page.content:
            yield item
        page = await page.next()

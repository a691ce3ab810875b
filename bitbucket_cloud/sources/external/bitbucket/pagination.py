"""
Pagination helpers for Bitbucket list endpoints.

Every list endpoint wraps its items in an envelope carrying ``values`` and an
optional ``next`` link. Pages are requested one at a time: page 1 without a
``page`` parameter, then ``page=N+1`` for as long as the server keeps
returning ``next``.
"""

import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Dict, List, Optional, Type, TypeVar

from bitbucket_cloud.models.bitbucket import PaginatedResponse

T = TypeVar("T")

PageFetcher = Callable[[Optional[int]], Awaitable[Dict[str, Any]]]

logger = logging.getLogger(__name__)


async def iterate_pages(fetch_page: PageFetcher, model: Type[T]) -> AsyncIterator[PaginatedResponse[T]]:
    """Yield decoded pages until the server stops sending a ``next`` link.

    Args:
        fetch_page: Coroutine taking the page number to request (None for the first page)
            and returning the decoded JSON envelope
        model: Type of the items in ``values``

    Yields:
        PaginatedResponse for each page, in server order
    """
    envelope_type = PaginatedResponse[model]  # type: ignore[valid-type]
    requested_page: Optional[int] = None

    while True:
        payload = await fetch_page(requested_page)
        page = envelope_type.model_validate(payload)
        yield page

        if not page.next:
            return

        # Fall back to local counting when the envelope has no page number
        current_page = page.page if page.page is not None else (requested_page or 1)
        requested_page = current_page + 1
        logger.debug(f"Following next link to page {requested_page}")


async def collect_values(fetch_page: PageFetcher, model: Type[T]) -> List[T]:
    """Fetch every page and concatenate their ``values``.

    Errors on any page propagate; pages fetched before the failure are discarded.
    """
    values: List[T] = []
    async for page in iterate_pages(fetch_page, model):
        values.extend(page.values)
    return values

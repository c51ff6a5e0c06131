"""Paged reads and chunked key lookups against a row-capped backend."""

from typing import Callable, Iterator, List, Sequence, TypeVar

from loguru import logger

T = TypeVar("T")


def fetch_all(fetch_page: Callable[[int, int], List[T]], page_size: int) -> List[T]:
    """Read every row via ``fetch_page(offset, limit)`` until an empty page is returned.

    The offset advances by the rows actually received, so a backend that caps
    rows per request below ``page_size`` is still read to the end.
    Errors from ``fetch_page`` propagate; a partial read is never returned.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    rows: List[T] = []
    offset = 0
    pages = 0
    while True:
        page = fetch_page(offset, page_size)
        if not page:
            break
        rows.extend(page)
        offset += len(page)
        pages += 1

    logger.debug("Fetched {} rows in {} pages (page size {})", len(rows), pages, page_size)
    return rows


def chunked(keys: Sequence[T], size: int) -> Iterator[List[T]]:
    """Split keys into consecutive batches of at most ``size``."""
    if size < 1:
        raise ValueError(f"batch size must be >= 1, got {size}")
    for i in range(0, len(keys), size):
        yield list(keys[i:i + size])

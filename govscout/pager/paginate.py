"""Offset pagination over the SAM.gov search endpoint.

Both loops request ``PAGE_SIZE`` records at a time and stop on whichever comes
first: cumulative fetched >= advertised ``totalRecords``, or a short page.
"""

import logging
from dataclasses import dataclass, replace
from typing import Callable, Optional

from ..adapters import RateLimitedError, SamGovClient
from ..models import ApiResponse, SearchParams

logger = logging.getLogger(__name__)

# SAM.gov rejects limit > 1000
PAGE_SIZE = 1000

PageCallback = Callable[[ApiResponse], None]


@dataclass
class PaginateResult:
    """Outcome of :func:`paginate_all`."""

    first_page: ApiResponse
    total_fetched: int
    api_calls: int


@dataclass
class WindowResult:
    """Outcome of :func:`paginate_window`.

    ``rate_limited`` means the loop stopped on HTTP 429; the counters hold
    whatever was fetched before it.
    """

    api_calls: int = 0
    records_fetched: int = 0
    rate_limited: bool = False


def _is_last_page(response: ApiResponse, total_fetched: int) -> bool:
    if response.page_count < PAGE_SIZE:
        return True
    return total_fetched >= (response.total_records or 0)


def paginate_all(
    client: SamGovClient,
    base_params: SearchParams,
    on_page: Optional[PageCallback] = None,
) -> PaginateResult:
    """Fetch every page for ``base_params``, calling ``on_page`` after each one.

    Any :class:`~govscout.adapters.SamGovError`, rate limiting included,
    propagates to the caller.
    """
    params = replace(base_params, limit=PAGE_SIZE, offset=0)
    first_page: Optional[ApiResponse] = None
    total_fetched = 0
    api_calls = 0

    while True:
        response = client.search(params)
        api_calls += 1
        total_fetched += response.page_count
        if first_page is None:
            first_page = response
        if on_page is not None:
            on_page(response)

        if _is_last_page(response, total_fetched):
            break
        params = replace(params, offset=params.offset + PAGE_SIZE)

    logger.info(
        "paginate_all complete pages=%d fetched=%d total=%s",
        api_calls, total_fetched, first_page.total_records,
    )
    return PaginateResult(first_page=first_page, total_fetched=total_fetched, api_calls=api_calls)


def paginate_window(
    client: SamGovClient,
    posted_from: str,
    posted_to: str,
    on_page: Optional[PageCallback] = None,
) -> WindowResult:
    """Fetch every page posted between ``posted_from`` and ``posted_to``.

    Unlike :func:`paginate_all`, a 429 does not raise: the partial counts come
    back with ``rate_limited=True``. Other failures still raise.
    """
    params = SearchParams(limit=PAGE_SIZE, offset=0, posted_from=posted_from, posted_to=posted_to)
    result = WindowResult()

    while True:
        result.api_calls += 1
        try:
            response = client.search(params)
        except RateLimitedError:
            logger.warning(
                "window %s-%s rate limited after %d records (%d calls)",
                posted_from, posted_to, result.records_fetched, result.api_calls,
            )
            result.rate_limited = True
            return result

        result.records_fetched += response.page_count
        if on_page is not None:
            on_page(response)

        if _is_last_page(response, result.records_fetched):
            return result
        params = replace(params, offset=params.offset + PAGE_SIZE)

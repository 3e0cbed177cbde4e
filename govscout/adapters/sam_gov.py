"""SAM.gov API client - one GET per page, typed failures, no retries."""

import logging
import time
from typing import List, Optional, Tuple

import httpx
from pydantic import ValidationError

from .base import (
    ADAPTER_TIMEOUT,
    DecodeError,
    NoticeNotFoundError,
    RateLimitedError,
    TransportError,
    UpstreamError,
    redact,
)
from ..models import ApiResponse, Opportunity, SearchParams

logger = logging.getLogger(__name__)

# httpx logs every request URL at INFO, and ours carry api_key
logging.getLogger("httpx").setLevel(logging.WARNING)


class SamGovClient:
    """Client for the SAM.gov Opportunities API v2 search endpoint.

    API Docs: https://open.gsa.gov/api/get-opportunities-public-api/

    Each call to :meth:`search` issues exactly one request. Failures surface as
    :class:`RateLimitedError`, :class:`TransportError`, :class:`UpstreamError`
    or :class:`DecodeError`, with the API key scrubbed from every message.
    Retry policy belongs to the caller.
    """

    API_URL = "https://api.sam.gov/opportunities/v2/search"

    def __init__(
        self,
        api_key: str,
        http_client: Optional[httpx.Client] = None,
        timeout: httpx.Timeout = ADAPTER_TIMEOUT,
    ) -> None:
        """Initialize client.

        Args:
            api_key: SAM.gov API key (from env: SAMGOV_API_KEY)
            http_client: Optional pre-built httpx.Client (tests, custom transports)
            timeout: Per-request timeout
        """
        self.api_key = api_key
        self._client = http_client or httpx.Client(timeout=timeout)

    @property
    def source_name(self) -> str:
        return "sam_gov"

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "SamGovClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _build_query(self, params: SearchParams) -> List[Tuple[str, str]]:
        query = [
            ("api_key", self.api_key),
            ("limit", str(params.limit)),
            ("offset", str(params.offset)),
        ]

        # Date range is only required when not searching by notice ID
        if params.notice_id is None:
            query.append(("postedFrom", params.posted_from))
            query.append(("postedTo", params.posted_to))

        optional = (
            ("title", params.title),
            ("ptype", params.ptype),
            ("ncode", params.naics),
            ("state", params.state),
            ("typeOfSetAside", params.set_aside),
            ("noticeid", params.notice_id),
        )
        query.extend((name, value) for name, value in optional if value is not None)
        return query

    def search(self, params: SearchParams) -> ApiResponse:
        """Fetch one page of search results.

        Raises:
            RateLimitedError: HTTP 429.
            TransportError: connection or timeout failure.
            UpstreamError: any other non-2xx status.
            DecodeError: body is not a valid search response.
        """
        url = self.API_URL
        start = time.monotonic()

        try:
            response = self._client.get(url, params=self._build_query(params))
        except httpx.RequestError as exc:
            duration = time.monotonic() - start
            message = redact(f"Failed to connect to SAM.gov API: {exc}", self.api_key)
            logger.error(
                "[%s] url=%s status=transport duration=%.2fs result=failure error='%s'",
                self.source_name, url, duration, message,
            )
            # the original exception carries the keyed request URL
            raise TransportError(message) from None

        status_code = response.status_code
        duration = time.monotonic() - start

        if status_code == 429:
            body = redact(response.text, self.api_key)
            logger.warning(
                "[%s] url=%s status=429 duration=%.2fs result=rate_limited offset=%d",
                self.source_name, url, duration, params.offset,
            )
            raise RateLimitedError(f"SAM.gov rate limit reached (429): {body}")

        if not response.is_success:
            body = redact(response.text, self.api_key)
            logger.error(
                "[%s] url=%s status=%d duration=%.2fs result=failure",
                self.source_name, url, status_code, duration,
            )
            raise UpstreamError(status_code, body)

        try:
            data = ApiResponse.model_validate_json(response.content)
        except ValidationError as exc:
            message = redact(f"Failed to parse SAM.gov API response: {exc}", self.api_key)
            logger.error(
                "[%s] url=%s status=%d duration=%.2fs result=failure error=decode",
                self.source_name, url, status_code, duration,
            )
            raise DecodeError(message) from None

        logger.info(
            "[%s] url=%s status=%d duration=%.2fs result=success offset=%d records=%d total=%s",
            self.source_name, url, status_code, duration,
            params.offset, data.page_count, data.total_records,
        )
        return data

    def get(self, notice_id: str) -> Opportunity:
        """Look up a single notice by ID.

        Raises:
            NoticeNotFoundError: the search returned no records.
        """
        response = self.search(SearchParams(limit=1, offset=0, notice_id=notice_id))
        if not response.opportunities_data:
            raise NoticeNotFoundError(notice_id)
        return response.opportunities_data[0]

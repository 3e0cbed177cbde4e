"""Failure taxonomy and shared HTTP settings for the SAM.gov fetch client."""

from typing import Optional

import httpx

# SAM.gov requests are bounded to 30s end to end
ADAPTER_TIMEOUT = httpx.Timeout(30.0)

REDACTED = "[REDACTED]"


def redact(text: str, secret: Optional[str]) -> str:
    """Replace every occurrence of ``secret`` in ``text``."""
    if not secret:
        return text
    return text.replace(secret, REDACTED)


class SamGovError(Exception):
    """Base class for every failure the fetch client surfaces.

    Messages are already credential-redacted when constructed by the client.
    """


class RateLimitedError(SamGovError):
    """HTTP 429: the daily quota is exhausted. Callers pause, they do not abort."""


class TransportError(SamGovError):
    """Connection, DNS or timeout failure before a response arrived."""


class UpstreamError(SamGovError):
    """Non-2xx, non-429 response. ``body`` holds the (redacted) response text."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"SAM.gov API returned {status_code}: {body}")


class DecodeError(SamGovError):
    """Response body is not JSON or does not match the expected schema."""


class NoticeNotFoundError(SamGovError):
    """A notice-id lookup returned no records."""

    def __init__(self, notice_id: str) -> None:
        self.notice_id = notice_id
        super().__init__(f"No opportunity found with notice ID: {notice_id}")

"""SAM.gov fetch client and its failure taxonomy."""

from .base import (
    DecodeError,
    NoticeNotFoundError,
    RateLimitedError,
    SamGovError,
    TransportError,
    UpstreamError,
)
from .sam_gov import SamGovClient

__all__ = [
    "SamGovClient",
    "SamGovError",
    "RateLimitedError",
    "TransportError",
    "UpstreamError",
    "DecodeError",
    "NoticeNotFoundError",
]

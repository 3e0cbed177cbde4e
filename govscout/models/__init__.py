"""Shared Pydantic models: SAM.gov wire types and sync results."""

from .opportunity import (
    ApiResponse,
    Award,
    Awardee,
    Opportunity,
    PlaceOfPerformance,
    PlaceValue,
    PointOfContact,
    SearchParams,
)
from .sync_result import ApiCallLogEntry, SyncSummary

__all__ = [
    "ApiResponse",
    "Award",
    "Awardee",
    "Opportunity",
    "PlaceOfPerformance",
    "PlaceValue",
    "PointOfContact",
    "SearchParams",
    "ApiCallLogEntry",
    "SyncSummary",
]

"""Opportunity - wire models for the SAM.gov Opportunities v2 search API.

Field names follow the JSON payload (camelCase aliases). Dates stay as the
MM/DD/YYYY strings SAM.gov emits; nothing here parses them.
"""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    """Base for every SAM.gov payload object: camelCase in, snake_case in Python."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )


class PlaceValue(WireModel):
    """A code/name pair (state, city, country)."""

    code: Optional[str] = None
    name: Optional[str] = None


class PlaceOfPerformance(WireModel):
    state: Optional[PlaceValue] = None
    city: Optional[PlaceValue] = None
    country: Optional[PlaceValue] = None
    zip: Optional[str] = None


class Awardee(WireModel):
    name: Optional[str] = None
    duns: Optional[str] = None
    uei_sam: Optional[str] = Field(None, validation_alias=AliasChoices("ueiSAM", "ueiSam", "uei_sam"))


class Award(WireModel):
    amount: Optional[str] = None
    date: Optional[str] = None
    number: Optional[str] = None
    awardee: Optional[Awardee] = None


class PointOfContact(WireModel):
    contact_type: Optional[str] = Field(None, validation_alias=AliasChoices("type", "contact_type"))
    full_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    title: Optional[str] = None


class Opportunity(WireModel):
    """One SAM.gov notice. ``notice_id`` is the natural key."""

    notice_id: Optional[str] = Field(None, description="SAM.gov noticeId (natural key)")
    title: Optional[str] = None
    solicitation_number: Optional[str] = None
    department: Optional[str] = None
    sub_tier: Optional[str] = None
    office: Optional[str] = None
    full_parent_path_name: Optional[str] = None
    organization_type: Optional[str] = None
    opp_type: Optional[str] = Field(None, validation_alias=AliasChoices("type", "opp_type"))
    base_type: Optional[str] = None

    # MM/DD/YYYY as sent by SAM.gov
    posted_date: Optional[str] = None
    response_deadline: Optional[str] = Field(
        None,
        validation_alias=AliasChoices("responseDeadLine", "responseDeadline", "response_deadline"),
    )
    archive_date: Optional[str] = None

    naics_code: Optional[str] = None
    classification_code: Optional[str] = None
    set_aside: Optional[str] = Field(
        None, validation_alias=AliasChoices("typeOfSetAside", "setAside", "set_aside")
    )
    set_aside_description: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "typeOfSetAsideDescription", "setAsideDescription", "set_aside_description"
        ),
    )
    description: Optional[str] = None
    ui_link: Optional[str] = None
    resource_links: Optional[list[str]] = None
    active: Optional[str] = None

    award: Optional[Award] = None
    point_of_contact: Optional[list[PointOfContact]] = None
    place_of_performance: Optional[PlaceOfPerformance] = None

    @field_validator("naics_code", mode="before")
    @classmethod
    def _join_naics_list(cls, value: Any) -> Any:
        # Some payloads carry naicsCode as a list
        if isinstance(value, list):
            return ",".join(str(code) for code in value if code) or None
        return value


class ApiResponse(WireModel):
    """Search response envelope. Both fields may be null."""

    total_records: Optional[int] = None
    opportunities_data: Optional[list[Opportunity]] = None

    @property
    def page_count(self) -> int:
        """Number of records on this page (0 when the array is null)."""
        return len(self.opportunities_data or [])


@dataclass
class SearchParams:
    """Filters for one search request.

    ``posted_from``/``posted_to`` (MM/DD/YYYY) are required by SAM.gov unless
    ``notice_id`` is set, in which case they are not sent.
    """

    limit: int = 10
    offset: int = 0
    posted_from: str = ""
    posted_to: str = ""
    title: Optional[str] = None
    ptype: Optional[str] = None
    naics: Optional[str] = None
    state: Optional[str] = None
    set_aside: Optional[str] = None
    notice_id: Optional[str] = None

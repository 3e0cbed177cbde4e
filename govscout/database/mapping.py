"""Wire path -> column mapping for the ``opportunities`` and ``contacts`` tables.

Nested optionals (award.awardee, placeOfPerformance.state, ...) flatten into
scalar columns; a missing link anywhere on the path yields NULL.
"""

import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from ..models import Opportunity, PointOfContact

Transform = Callable[[Any], Any]


@dataclass(frozen=True)
class ColumnMapping:
    """One scalar column and the attribute path that feeds it."""

    column: str
    path: Tuple[str, ...]
    transform: Optional[Transform] = None

    def extract(self, source: Any) -> Any:
        value = source
        for attr in self.path:
            if value is None:
                return None
            value = getattr(value, attr)
        if self.transform is not None and value is not None:
            value = self.transform(value)
        return value


def _json_list(links: List[str]) -> str:
    return json.dumps(links)


OPPORTUNITY_COLUMNS: Tuple[ColumnMapping, ...] = (
    ColumnMapping("title", ("title",)),
    ColumnMapping("solicitation_number", ("solicitation_number",)),
    ColumnMapping("department", ("department",)),
    ColumnMapping("sub_tier", ("sub_tier",)),
    ColumnMapping("office", ("office",)),
    ColumnMapping("full_parent_path_name", ("full_parent_path_name",)),
    ColumnMapping("organization_type", ("organization_type",)),
    ColumnMapping("opp_type", ("opp_type",)),
    ColumnMapping("base_type", ("base_type",)),
    ColumnMapping("posted_date", ("posted_date",)),
    ColumnMapping("response_deadline", ("response_deadline",)),
    ColumnMapping("archive_date", ("archive_date",)),
    ColumnMapping("naics_code", ("naics_code",)),
    ColumnMapping("classification_code", ("classification_code",)),
    ColumnMapping("set_aside", ("set_aside",)),
    ColumnMapping("set_aside_description", ("set_aside_description",)),
    ColumnMapping("description", ("description",)),
    ColumnMapping("ui_link", ("ui_link",)),
    ColumnMapping("active", ("active",)),
    ColumnMapping("resource_links", ("resource_links",), transform=_json_list),
    ColumnMapping("award_amount", ("award", "amount")),
    ColumnMapping("award_date", ("award", "date")),
    ColumnMapping("award_number", ("award", "number")),
    ColumnMapping("awardee_name", ("award", "awardee", "name")),
    ColumnMapping("awardee_duns", ("award", "awardee", "duns")),
    ColumnMapping("awardee_uei_sam", ("award", "awardee", "uei_sam")),
    ColumnMapping("pop_state_code", ("place_of_performance", "state", "code")),
    ColumnMapping("pop_state_name", ("place_of_performance", "state", "name")),
    ColumnMapping("pop_city_code", ("place_of_performance", "city", "code")),
    ColumnMapping("pop_city_name", ("place_of_performance", "city", "name")),
    ColumnMapping("pop_country_code", ("place_of_performance", "country", "code")),
    ColumnMapping("pop_country_name", ("place_of_performance", "country", "name")),
    ColumnMapping("pop_zip", ("place_of_performance", "zip")),
)

CONTACT_COLUMNS: Tuple[ColumnMapping, ...] = (
    ColumnMapping("contact_type", ("contact_type",)),
    ColumnMapping("full_name", ("full_name",)),
    ColumnMapping("email", ("email",)),
    ColumnMapping("phone", ("phone",)),
    ColumnMapping("title", ("title",)),
)


def opportunity_row(opp: Opportunity) -> Dict[str, Any]:
    """Flatten an Opportunity into an ``opportunities`` row (caller checks notice_id)."""
    row = {"notice_id": opp.notice_id}
    row.update({m.column: m.extract(opp) for m in OPPORTUNITY_COLUMNS})
    return row


def contact_rows(notice_id: str, contacts: Optional[Sequence[PointOfContact]]) -> List[Dict[str, Any]]:
    rows = []
    for contact in contacts or ():
        row = {"notice_id": notice_id}
        row.update({m.column: m.extract(contact) for m in CONTACT_COLUMNS})
        rows.append(row)
    return rows

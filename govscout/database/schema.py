"""SQLite schema for the local opportunity mirror.

The read-only query server reads these tables directly, so column names are
part of the external contract.
"""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    func,
)

metadata = MetaData()

opportunities = Table(
    "opportunities",
    metadata,
    Column("notice_id", Text, primary_key=True),
    Column("title", Text),
    Column("solicitation_number", Text),
    Column("department", Text),
    Column("sub_tier", Text),
    Column("office", Text),
    Column("full_parent_path_name", Text),
    Column("organization_type", Text),
    Column("opp_type", Text),
    Column("base_type", Text),
    Column("posted_date", Text),
    Column("response_deadline", Text),
    Column("archive_date", Text),
    Column("naics_code", Text),
    Column("classification_code", Text),
    Column("set_aside", Text),
    Column("set_aside_description", Text),
    Column("description", Text),
    Column("ui_link", Text),
    Column("active", Text),
    Column("resource_links", Text),
    Column("award_amount", Text),
    Column("award_date", Text),
    Column("award_number", Text),
    Column("awardee_name", Text),
    Column("awardee_duns", Text),
    Column("awardee_uei_sam", Text),
    Column("pop_state_code", Text),
    Column("pop_state_name", Text),
    Column("pop_city_code", Text),
    Column("pop_city_name", Text),
    Column("pop_country_code", Text),
    Column("pop_country_name", Text),
    Column("pop_zip", Text),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("modified_at", DateTime, nullable=False, server_default=func.current_timestamp()),
)

contacts = Table(
    "contacts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "notice_id",
        Text,
        ForeignKey("opportunities.notice_id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("contact_type", Text),
    Column("full_name", Text),
    Column("email", Text),
    Column("phone", Text),
    Column("title", Text),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    Column("modified_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    sqlite_autoincrement=True,
)

sync_state = Table(
    "sync_state",
    metadata,
    Column("key", Text, primary_key=True),
    Column("value", Text, nullable=False),
)

api_call_log = Table(
    "api_call_log",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("context", Text, nullable=False),
    Column("posted_from", Text),
    Column("posted_to", Text),
    Column("api_calls", Integer, nullable=False, default=0),
    Column("records_fetched", Integer, nullable=False, default=0),
    Column("rate_limited", Boolean, nullable=False, default=False),
    Column("error", Text),
    Column("created_at", DateTime, nullable=False, server_default=func.current_timestamp()),
    sqlite_autoincrement=True,
)

Index("idx_opp_posted_date", opportunities.c.posted_date)
Index("idx_opp_naics_code", opportunities.c.naics_code)
Index("idx_opp_opp_type", opportunities.c.opp_type)
Index("idx_opp_base_type", opportunities.c.base_type)
Index("idx_opp_set_aside", opportunities.c.set_aside)
Index("idx_opp_active", opportunities.c.active)
Index("idx_opp_pop_state", opportunities.c.pop_state_code)
Index("idx_opp_naics_type", opportunities.c.naics_code, opportunities.c.opp_type)
Index("idx_contacts_notice", contacts.c.notice_id)

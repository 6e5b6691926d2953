"""
Lead repository (persistence).

This module provides *only* persistence operations for the Lead domain entity.
Identity rules (dedup by email/phone, race recovery) live in
`services.lead_identity_service`; here we only query, insert and rename.

The `leads` table carries unique constraints on `email` and on `phone`.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
from uuid import UUID

from domain.lead import ContactInfo, Lead, LeadOrigin
from domain.time import parse_utc_datetime
from repositories import client as db
from repositories.errors import execute, rows_of

# Supabase table name for Lead records.
# Keep this aligned with schema.sql.
_LEADS_TABLE: str = "leads"


def _row_to_lead(row: Mapping[str, Any]) -> Lead:
    """Convert a Supabase row into a domain Lead."""

    return Lead(
        lead_id=UUID(str(row["id"])),
        name=str(row["name"]),
        email=str(row["email"]),
        phone=str(row["phone"]),
        origin=LeadOrigin(str(row["origin"])),
        lgpd_consent=bool(row.get("lgpd_consent", False)),
        franchise_interest=bool(row.get("franchise_interest", False)),
        created_at=parse_utc_datetime(row["created_at"]),
    )


def _contact_filter(email: str, phone: str) -> str:
    # PostgREST logical filter; values are double-quoted so reserved
    # characters in an address cannot break the expression.
    return f'email.eq."{email}",phone.eq."{phone}"'


def find_lead_by_contact(email: str, phone: str) -> Optional[Lead]:
    """
    Fetch the lead matching email OR phone.

    If the two keys belong to different leads the oldest one wins, so every
    caller resolving the same contact gets the same answer.
    """

    query = (
        db.get_supabase()
        .table(_LEADS_TABLE)
        .select("*")
        .or_(_contact_filter(email, phone))
        .order("created_at")
        .limit(1)
    )
    rows = rows_of(execute(query, table=_LEADS_TABLE, action="fetch lead by contact"))
    if not rows:
        return None
    return _row_to_lead(rows[0])


def get_lead_by_id(lead_id: UUID) -> Optional[Lead]:
    """
    Fetch a Lead by ID.

    Returns:
    - Lead if found
    - None if no record exists for the given ID
    """

    query = db.get_supabase().table(_LEADS_TABLE).select("*").eq("id", str(lead_id)).limit(1)
    rows = rows_of(execute(query, table=_LEADS_TABLE, action="fetch lead"))
    if not rows:
        return None
    return _row_to_lead(rows[0])


def lead_exists(lead_id: UUID) -> bool:
    query = db.get_supabase().table(_LEADS_TABLE).select("id").eq("id", str(lead_id)).limit(1)
    return bool(rows_of(execute(query, table=_LEADS_TABLE, action="check lead")))


def insert_lead(
    contact: ContactInfo,
    origin: LeadOrigin,
    *,
    lgpd_consent: bool,
    franchise_interest: bool = False,
) -> Lead:
    """
    Insert a new Lead and return the stored row (id and created_at are
    generated by the store).

    Raises:
    - DuplicateKeyError if the email or phone already belongs to a lead.
    - RepositoryError for any other store error.
    """

    payload: dict[str, Any] = {
        "name": contact.name,
        "email": contact.email,
        "phone": contact.phone,
        "origin": origin.value,
        "lgpd_consent": lgpd_consent,
        "franchise_interest": franchise_interest,
    }
    query = db.get_supabase().table(_LEADS_TABLE).insert(payload)
    rows = rows_of(execute(query, table=_LEADS_TABLE, action="insert lead"))
    if not rows:
        raise RuntimeError("Failed to insert lead: store returned no row")
    return _row_to_lead(rows[0])


def update_lead_name(lead_id: UUID, name: str) -> None:
    """Update the display name only; contact fields are identity keys and never change."""

    query = db.get_supabase().table(_LEADS_TABLE).update({"name": name}).eq("id", str(lead_id))
    execute(query, table=_LEADS_TABLE, action="update lead name")


__all__ = [
    "find_lead_by_contact",
    "get_lead_by_id",
    "lead_exists",
    "insert_lead",
    "update_lead_name",
]

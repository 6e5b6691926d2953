"""
Reward issuance repository (persistence).

One table per reward domain (`prize_wheel_spins`, `survey_responses`), each
with a unique constraint on `lead_id`. This module does not draw prizes or
decide whether a lead may receive one; it only reads and inserts rows.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional
from uuid import UUID

from domain.reward import Reward, RewardDomain, RewardIssuance
from domain.time import parse_utc_datetime
from repositories import client as db
from repositories.errors import execute, rows_of

_ISSUANCE_COLUMNS = "lead_id, prize_slug, prize_name, created_at"


def _row_to_issuance(domain: RewardDomain, row: Mapping[str, Any]) -> RewardIssuance:
    slug = row.get("prize_slug")
    reward = Reward(slug=str(slug), name=str(row.get("prize_name") or slug)) if slug else None
    return RewardIssuance(
        lead_id=UUID(str(row["lead_id"])),
        domain=domain,
        reward=reward,
        issued_at=parse_utc_datetime(row["created_at"]),
    )


def find_issuance(domain: RewardDomain, lead_id: UUID) -> Optional[RewardIssuance]:
    """Return the lead's issuance in this domain, or None."""

    query = (
        db.get_supabase()
        .table(domain.table_name)
        .select(_ISSUANCE_COLUMNS)
        .eq("lead_id", str(lead_id))
        .limit(1)
    )
    rows = rows_of(execute(query, table=domain.table_name, action=f"fetch {domain.name} issuance"))
    if not rows:
        return None
    return _row_to_issuance(domain, rows[0])


def insert_issuance(
    domain: RewardDomain,
    lead_id: UUID,
    reward: Reward,
    extra: Optional[Mapping[str, Any]] = None,
) -> RewardIssuance:
    """
    Insert the issuance row for (lead_id, domain).

    `extra` carries domain-specific columns (e.g. survey `answers`).

    Raises:
    - DuplicateKeyError if the lead already has a row in this domain.
    - RepositoryError for any other store error.
    """

    payload: dict[str, Any] = dict(extra or {})
    payload.update(
        {
            "lead_id": str(lead_id),
            "prize_slug": reward.slug,
            "prize_name": reward.name,
        }
    )
    query = db.get_supabase().table(domain.table_name).insert(payload)
    rows = rows_of(execute(query, table=domain.table_name, action=f"insert {domain.name} issuance"))
    if not rows:
        raise RuntimeError(f"Failed to insert {domain.name} issuance: store returned no row")
    return _row_to_issuance(domain, rows[0])


__all__ = ["find_issuance", "insert_issuance"]

"""
Domain: reward issuance.

Rules:
- A reward domain (prize wheel, survey gift) is a table plus a catalog.
- At most one issuance exists per (lead_id, domain). The store's unique
  constraint on the domain table's lead_id column enforces it.
- Issuances are immutable once written.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from .prizes import PRIZE_WHEEL_CATALOG, PrizeCatalog, PrizeCatalogEntry
from .survey import SURVEY_GIFT_CATALOG
from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class RewardDomain:
    """Which reward track an issuance belongs to."""

    name: str
    table_name: str
    catalog: PrizeCatalog


PRIZE_WHEEL = RewardDomain(name="roleta", table_name="prize_wheel_spins", catalog=PRIZE_WHEEL_CATALOG)
SURVEY = RewardDomain(name="pesquisa", table_name="survey_responses", catalog=SURVEY_GIFT_CATALOG)


@dataclass(frozen=True, slots=True)
class Reward:
    """The persisted outcome of a draw: slug plus display name."""

    slug: str
    name: str

    @classmethod
    def from_entry(cls, entry: PrizeCatalogEntry) -> "Reward":
        return cls(slug=entry.slug, name=entry.name)

    def to_dict(self, catalog: Optional[PrizeCatalog] = None) -> dict[str, Any]:
        """Client-facing view, enriched with color/emoji when the slug is still in the catalog."""

        data: dict[str, Any] = {"slug": self.slug, "name": self.name}
        entry = catalog.get(self.slug) if catalog is not None else None
        if entry is not None:
            data["color"] = entry.color
            data["emoji"] = entry.emoji
        return data


@dataclass(frozen=True, slots=True)
class RewardIssuance:
    """
    Immutable record of the single reward issued to a lead in a domain.

    `reward` is None only for legacy survey rows written before gifts were
    attached to responses.
    """

    lead_id: UUID
    domain: RewardDomain
    reward: Optional[Reward]
    issued_at: datetime

    def __post_init__(self) -> None:
        require_utc_timestamp("issued_at", self.issued_at)


@dataclass(frozen=True, slots=True)
class IssuedReward:
    """Result of an issue() call; already_issued is True for replays and lost races."""

    issuance: RewardIssuance
    already_issued: bool

"""
Lead identity resolution.

Every entry point (QR registration, roulette, survey) converges on one lead per
person:
- A lead is found by email OR phone.
- Re-registering with a different name updates the name in place; contact
  fields never change.
- Concurrent first registrations for the same contact produce one lead; the
  losers of the insert race read back the winner.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from domain.lead import ContactInfo, InvalidContactError, Lead, LeadOrigin
from repositories import lead_repository
from services.errors import ConsentRequiredError, InvalidInputError
from services.idempotent_insert import find_or_create

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ResolvedLead:
    """
    lead: the single lead for this contact
    created: True only when this call inserted it
    """
    lead: Lead
    created: bool


def _apply_name(lead: Lead, name: str) -> Lead:
    if lead.name == name:
        return lead
    lead_repository.update_lead_name(lead.lead_id, name)
    logger.info("Lead name updated", extra={"lead_id": str(lead.lead_id)})
    return lead.renamed(name)


def resolve(
    name: Optional[str],
    email: Optional[str],
    phone: Optional[str],
    origin: LeadOrigin,
    consent: bool,
    franchise_interest: bool = False,
) -> ResolvedLead:
    """
    Find or create the lead for this contact.

    Raises:
    - InvalidInputError if name, email or phone is missing or malformed.
    - ConsentRequiredError if LGPD consent was not given.
    - RepositoryError / DuplicateKeyError on store failures that cannot be
      recovered by reading back the winning row.
    """

    try:
        contact = ContactInfo.normalize(name, email, phone)
    except InvalidContactError as e:
        raise InvalidInputError(str(e), field=e.field) from e

    if consent is not True:
        raise ConsentRequiredError()

    lead, created = find_or_create(
        lambda: lead_repository.find_lead_by_contact(contact.email, contact.phone),
        lambda: lead_repository.insert_lead(
            contact,
            origin,
            lgpd_consent=True,
            franchise_interest=franchise_interest,
        ),
        label="lead",
    )

    if created:
        logger.info("Lead created", extra={"lead_id": str(lead.lead_id), "origin": origin.value})
        return ResolvedLead(lead=lead, created=True)

    return ResolvedLead(lead=_apply_name(lead, contact.name), created=False)


__all__ = ["ResolvedLead", "resolve"]

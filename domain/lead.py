"""
Domain: Lead entity.

A Lead is a registered event attendee, identified by deduplicated contact
information.

Rules implemented here:
- Email is stored trimmed and lower-cased; phone is stored as digits only
  (10 or 11 digits, area code included).
- Email and phone are identity keys: each is unique across all leads and is
  never changed after the lead is created. Only the display name may change.
- created_at is a UTC timestamp.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from .time import require_utc_timestamp

_EMAIL_RE = re.compile(r'^[^\s@",()]+@[^\s@",()]+\.[^\s@",()]+$')
_NON_DIGITS_RE = re.compile(r"\D")

MIN_NAME_LENGTH = 3
MIN_PHONE_DIGITS = 10
MAX_PHONE_DIGITS = 11


class InvalidContactError(ValueError):
    """Raised when a contact field fails validation."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(message)


class LeadOrigin(str, Enum):
    QR_CODE = "qr_code"
    SPONTANEOUS = "spontaneous"
    TRAFFIC = "traffic"
    ROLETA = "roleta"
    PESQUISA = "pesquisa"


def normalize_name(name: str | None) -> str:
    text = (name or "").strip()
    if len(text) < MIN_NAME_LENGTH:
        raise InvalidContactError("name", f"Name must have at least {MIN_NAME_LENGTH} characters")
    return text


def normalize_email(email: str | None) -> str:
    text = (email or "").strip().lower()
    if not text or not _EMAIL_RE.match(text):
        raise InvalidContactError("email", "Invalid email")
    return text


def normalize_phone(phone: str | None) -> str:
    """Strip formatting such as '(11) 98765-4321' down to '11987654321'."""

    digits = _NON_DIGITS_RE.sub("", phone or "")
    if not MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS:
        raise InvalidContactError("phone", "Invalid phone number, use area code + number")
    return digits


@dataclass(frozen=True, slots=True)
class ContactInfo:
    """Normalized contact fields used to resolve a lead's identity."""

    name: str
    email: str
    phone: str

    @classmethod
    def normalize(cls, name: str | None, email: str | None, phone: str | None) -> "ContactInfo":
        return cls(
            name=normalize_name(name),
            email=normalize_email(email),
            phone=normalize_phone(phone),
        )


@dataclass(frozen=True, slots=True)
class Lead:
    """
    Persisted lead.

    Frozen: a name change produces a new instance via `renamed()`.
    """

    lead_id: UUID
    name: str
    email: str
    phone: str
    origin: LeadOrigin
    lgpd_consent: bool
    created_at: datetime
    franchise_interest: bool = False

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)

    def renamed(self, name: str) -> "Lead":
        return Lead(
            lead_id=self.lead_id,
            name=name,
            email=self.email,
            phone=self.phone,
            origin=self.origin,
            lgpd_consent=self.lgpd_consent,
            created_at=self.created_at,
            franchise_interest=self.franchise_interest,
        )

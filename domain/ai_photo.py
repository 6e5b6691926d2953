"""
Domain: AI photo generation requests.

State machine:
- A request is created `processing` with every variant slot `pending`.
- Each attempted variant ends `completed` (with a URL) or `failed`.
- Overall status is `completed` iff at least one variant completed, `failed`
  iff every attempted variant failed. `processing` only exists while the
  synchronous generate call runs.
- `completed` and `failed` are terminal: the record is never updated again.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Iterable, Optional, Tuple
from uuid import UUID

from .time import require_utc_timestamp

VARIANT_SLOTS = 3

# Single source photo, no template: costume swap on the photo itself.
DEFAULT_PROMPT = (
    "Keep the exact face, skin tone, hair and body of the person in the photo. "
    "Dress the person in a colorful carnival costume with glitter and confetti, "
    "keep the original pose and framing, festive street carnival background, "
    "natural lighting, photorealistic."
)

# Source photo is image 1, template is image 2. Used when the template row has no prompt.
TEMPLATE_PROMPT = (
    "Replace the entire person in image 2 with the person from image 1. "
    "The person from image 1 should appear wearing the same outfit and in the same pose as image 2. "
    "All skin (face, neck, chest, arms, hands) must match the person from image 1. "
    "Keep background and lighting from image 2."
)


class GenerationStatus(str, Enum):
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self is not GenerationStatus.PROCESSING


class VariantStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


def is_valid_photo_url(value: object) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://"))


@dataclass(frozen=True, slots=True)
class Variant:
    index: int  # 1-based slot number
    status: VariantStatus = VariantStatus.PENDING
    url: Optional[str] = None

    def completed(self, url: str) -> "Variant":
        return replace(self, status=VariantStatus.COMPLETED, url=url)

    def failed(self) -> "Variant":
        return replace(self, status=VariantStatus.FAILED, url=None)


def empty_variants() -> Tuple[Variant, ...]:
    return tuple(Variant(index=i) for i in range(1, VARIANT_SLOTS + 1))


def overall_status(variants: Iterable[Variant]) -> GenerationStatus:
    attempted = [v for v in variants if v.status is not VariantStatus.PENDING]
    if any(v.status is VariantStatus.COMPLETED for v in attempted):
        return GenerationStatus.COMPLETED
    if attempted:
        return GenerationStatus.FAILED
    return GenerationStatus.PROCESSING


@dataclass(frozen=True, slots=True)
class PhotoTemplate:
    template_id: UUID
    slug: str
    name: str
    description: Optional[str]
    preview_url: str
    template_image_url: str
    prompt: Optional[str]
    aspect_ratio: str
    is_active: bool
    sort_order: int

    def public_view(self) -> dict[str, object]:
        return {
            "id": str(self.template_id),
            "slug": self.slug,
            "name": self.name,
            "description": self.description,
            "preview_url": self.preview_url,
            "aspect_ratio": self.aspect_ratio,
        }


@dataclass(frozen=True, slots=True)
class PhotoGeneration:
    """Persisted generation request (ai_photo_generations row)."""

    generation_id: UUID
    lead_id: UUID
    status: GenerationStatus
    variants: Tuple[Variant, ...]
    created_at: datetime
    reference_photos: Tuple[str, ...] = ()
    template_id: Optional[UUID] = None
    error_message: Optional[str] = None
    processing_time_ms: Optional[int] = None
    completed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if self.completed_at is not None:
            require_utc_timestamp("completed_at", self.completed_at)
        if len(self.variants) != VARIANT_SLOTS:
            raise ValueError(f"A generation has exactly {VARIANT_SLOTS} variant slots")

    def is_stale(self, now: datetime, stale_after: timedelta) -> bool:
        """A row still processing long after creation was interrupted mid-call."""

        return self.status is GenerationStatus.PROCESSING and now - self.created_at > stale_after

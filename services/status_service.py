"""
Read-only projection of a generation request for pollers.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Optional, Tuple, Union
from uuid import UUID

from domain.ai_photo import GenerationStatus, PhotoGeneration, Variant
from domain.ids import parse_uuid
from domain.time import to_iso_utc, utc_now
from repositories import generation_repository
from services.errors import GenerationNotFoundError
from settings import Settings, get_settings

STALE_ERROR_MESSAGE = "Generation did not finish; please try again"


@dataclass(frozen=True, slots=True)
class GenerationStatusView:
    """
    What a poller sees. A row stuck in `processing` past the stale threshold
    is reported as `failed` with `stale=True`; the row itself is untouched.
    """
    generation_id: UUID
    status: GenerationStatus
    variants: Tuple[Variant, ...]
    error_message: Optional[str]
    created_at: datetime
    completed_at: Optional[datetime]
    stale: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": str(self.generation_id),
            "status": self.status.value,
            "variants": [{"status": v.status.value, "url": v.url} for v in self.variants],
            "error_message": self.error_message,
            "created_at": to_iso_utc(self.created_at, name="created_at"),
            "completed_at": to_iso_utc(self.completed_at, name="completed_at") if self.completed_at else None,
            "stale": self.stale,
        }


def project(generation: PhotoGeneration, *, now: datetime, stale_after: timedelta) -> GenerationStatusView:
    if generation.is_stale(now, stale_after):
        return GenerationStatusView(
            generation_id=generation.generation_id,
            status=GenerationStatus.FAILED,
            variants=generation.variants,
            error_message=generation.error_message or STALE_ERROR_MESSAGE,
            created_at=generation.created_at,
            completed_at=None,
            stale=True,
        )
    return GenerationStatusView(
        generation_id=generation.generation_id,
        status=generation.status,
        variants=generation.variants,
        error_message=generation.error_message,
        created_at=generation.created_at,
        completed_at=generation.completed_at,
    )


def get_generation_status(
    generation_id: Union[str, UUID],
    *,
    settings: Optional[Settings] = None,
    now: Optional[datetime] = None,
) -> GenerationStatusView:
    """
    Raises:
    - GenerationNotFoundError (400) if the id is not a UUID.
    - GenerationNotFoundError (404) if no row exists.
    """

    parsed = parse_uuid(generation_id)
    if parsed is None:
        raise GenerationNotFoundError("Invalid generation id", malformed=True)

    generation = generation_repository.get_generation(parsed)
    if generation is None:
        raise GenerationNotFoundError()

    settings = settings or get_settings()
    return project(
        generation,
        now=now or utc_now(),
        stale_after=timedelta(seconds=settings.stale_after_seconds),
    )


__all__ = ["GenerationStatusView", "get_generation_status", "project"]

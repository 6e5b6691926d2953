"""
AI photo generation repository (persistence).

Rows live in `ai_photo_generations` with three flat variant slots
(`variant_1_status`, `variant_1_url`, ...). This module maps them to and from
`domain.ai_photo.PhotoGeneration`.

Terminal writes are conditional on the row still being `processing`, so a row
that has reached `completed` or `failed` is never updated again.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, List, Mapping, Optional
from uuid import UUID

from domain.ai_photo import (
    VARIANT_SLOTS,
    GenerationStatus,
    PhotoGeneration,
    Variant,
    VariantStatus,
    empty_variants,
)
from domain.time import parse_optional_utc_datetime, parse_utc_datetime, to_iso_utc
from repositories import client as db
from repositories.errors import execute, rows_of

_GENERATIONS_TABLE: str = "ai_photo_generations"


def _variant_columns(variants: tuple[Variant, ...]) -> dict[str, Any]:
    columns: dict[str, Any] = {}
    for variant in variants:
        columns[f"variant_{variant.index}_status"] = variant.status.value
        columns[f"variant_{variant.index}_url"] = variant.url
    return columns


def _row_to_generation(row: Mapping[str, Any]) -> PhotoGeneration:
    variants = tuple(
        Variant(
            index=i,
            status=VariantStatus(row.get(f"variant_{i}_status") or VariantStatus.PENDING.value),
            url=row.get(f"variant_{i}_url"),
        )
        for i in range(1, VARIANT_SLOTS + 1)
    )
    template_id = row.get("template_id")
    processing_time_ms = row.get("processing_time_ms")
    return PhotoGeneration(
        generation_id=UUID(str(row["id"])),
        lead_id=UUID(str(row["lead_id"])),
        status=GenerationStatus(str(row["status"])),
        variants=variants,
        created_at=parse_utc_datetime(row["created_at"]),
        reference_photos=tuple(row.get("reference_photos") or ()),
        template_id=UUID(str(template_id)) if template_id else None,
        error_message=row.get("error_message"),
        processing_time_ms=int(processing_time_ms) if processing_time_ms is not None else None,
        completed_at=parse_optional_utc_datetime(row.get("completed_at")),
    )


def count_generations_for_lead(lead_id: UUID, *, include_failed: bool = True) -> int:
    """Count the lead's generation requests (optionally excluding failed ones)."""

    query = (
        db.get_supabase()
        .table(_GENERATIONS_TABLE)
        .select("id", count="exact")
        .eq("lead_id", str(lead_id))
    )
    if not include_failed:
        query = query.neq("status", GenerationStatus.FAILED.value)
    response = execute(query, table=_GENERATIONS_TABLE, action="count generations")
    return getattr(response, "count", 0) or 0


def create_generation(
    lead_id: UUID,
    reference_photos: List[str],
    template_id: Optional[UUID] = None,
) -> PhotoGeneration:
    """Insert a new `processing` request with every variant slot pending."""

    payload: dict[str, Any] = {
        "lead_id": str(lead_id),
        "template_id": str(template_id) if template_id else None,
        "status": GenerationStatus.PROCESSING.value,
        "reference_photos": list(reference_photos),
    }
    payload.update(_variant_columns(empty_variants()))

    query = db.get_supabase().table(_GENERATIONS_TABLE).insert(payload)
    rows = rows_of(execute(query, table=_GENERATIONS_TABLE, action="create generation"))
    if not rows:
        raise RuntimeError("Failed to create generation: store returned no row")
    return _row_to_generation(rows[0])


def get_generation(generation_id: UUID) -> Optional[PhotoGeneration]:
    query = (
        db.get_supabase()
        .table(_GENERATIONS_TABLE)
        .select("*")
        .eq("id", str(generation_id))
        .limit(1)
    )
    rows = rows_of(execute(query, table=_GENERATIONS_TABLE, action="fetch generation"))
    if not rows:
        return None
    return _row_to_generation(rows[0])


def save_terminal_state(
    generation_id: UUID,
    *,
    status: GenerationStatus,
    variants: tuple[Variant, ...],
    error_message: Optional[str],
    processing_time_ms: Optional[int],
    completed_at: datetime,
) -> bool:
    """
    Persist the terminal record of a generation.

    Returns True if the row was updated, False if it was no longer
    `processing` (already terminal).
    """

    if not status.is_terminal:
        raise ValueError("save_terminal_state requires a terminal status")

    payload: dict[str, Any] = {
        "status": status.value,
        "error_message": error_message,
        "processing_time_ms": processing_time_ms,
        "completed_at": to_iso_utc(completed_at, name="completed_at"),
    }
    payload.update(_variant_columns(variants))

    query = (
        db.get_supabase()
        .table(_GENERATIONS_TABLE)
        .update(payload)
        .eq("id", str(generation_id))
        .eq("status", GenerationStatus.PROCESSING.value)
    )
    rows = rows_of(execute(query, table=_GENERATIONS_TABLE, action="save generation result"))
    return bool(rows)


def list_stuck_generations(older_than: datetime) -> List[PhotoGeneration]:
    """Rows still `processing` that were created before `older_than`."""

    query = (
        db.get_supabase()
        .table(_GENERATIONS_TABLE)
        .select("*")
        .eq("status", GenerationStatus.PROCESSING.value)
        .lt("created_at", to_iso_utc(older_than, name="older_than"))
        .order("created_at")
    )
    rows = rows_of(execute(query, table=_GENERATIONS_TABLE, action="list stuck generations"))
    return [_row_to_generation(row) for row in rows]


__all__ = [
    "count_generations_for_lead",
    "create_generation",
    "get_generation",
    "save_terminal_state",
    "list_stuck_generations",
]

"""
Photo template repository (persistence).

Templates are managed by staff (see `scripts/seed_templates.py`); the API only
reads active ones.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional
from uuid import UUID

from domain.ai_photo import PhotoTemplate
from repositories import client as db
from repositories.errors import execute, rows_of

_TEMPLATES_TABLE: str = "ai_photo_templates"


def _row_to_template(row: Mapping[str, Any]) -> PhotoTemplate:
    return PhotoTemplate(
        template_id=UUID(str(row["id"])),
        slug=str(row["slug"]),
        name=str(row["name"]),
        description=row.get("description"),
        preview_url=str(row.get("preview_url") or ""),
        template_image_url=str(row.get("template_image_url") or ""),
        prompt=row.get("prompt") or None,
        aspect_ratio=str(row.get("aspect_ratio") or "3:4"),
        is_active=bool(row.get("is_active", True)),
        sort_order=int(row.get("sort_order") or 0),
    )


def list_active_templates() -> List[PhotoTemplate]:
    query = (
        db.get_supabase()
        .table(_TEMPLATES_TABLE)
        .select("*")
        .eq("is_active", True)
        .order("sort_order")
    )
    rows = rows_of(execute(query, table=_TEMPLATES_TABLE, action="list templates"))
    return [_row_to_template(row) for row in rows]


def get_active_template(template_id: UUID) -> Optional[PhotoTemplate]:
    """Fetch a template by ID; inactive templates are treated as missing."""

    query = (
        db.get_supabase()
        .table(_TEMPLATES_TABLE)
        .select("*")
        .eq("id", str(template_id))
        .eq("is_active", True)
        .limit(1)
    )
    rows = rows_of(execute(query, table=_TEMPLATES_TABLE, action="fetch template"))
    if not rows:
        return None
    return _row_to_template(rows[0])


def upsert_template(data: Mapping[str, Any]) -> PhotoTemplate:
    """Insert or update a template keyed by its slug."""

    payload = dict(data)
    if not payload.get("slug"):
        raise ValueError("Template slug is required")

    query = db.get_supabase().table(_TEMPLATES_TABLE).upsert(payload, on_conflict="slug")
    rows = rows_of(execute(query, table=_TEMPLATES_TABLE, action="upsert template"))
    if not rows:
        raise RuntimeError(f"Failed to upsert template {payload['slug']!r}: store returned no row")
    return _row_to_template(rows[0])


__all__ = ["list_active_templates", "get_active_template", "upsert_template"]

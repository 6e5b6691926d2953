"""
Identifier parsing shared by the services.
"""

from __future__ import annotations

from typing import Any, Optional
from uuid import UUID


def parse_uuid(value: Any) -> Optional[UUID]:
    """Return `value` as a UUID, or None if it is missing or malformed."""

    if isinstance(value, UUID):
        return value
    if value is None:
        return None
    try:
        return UUID(str(value))
    except ValueError:
        return None


__all__ = ["parse_uuid"]

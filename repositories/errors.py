"""
Repository error types and the shared query executor.

supabase-py raises `postgrest.exceptions.APIError` for PostgREST error
responses. A unique constraint violation carries PostgreSQL code 23505; it is
translated to `DuplicateKeyError` so callers can resolve insert races without
knowing about PostgREST.
"""

from __future__ import annotations

from typing import Any

from postgrest.exceptions import APIError

UNIQUE_VIOLATION = "23505"


class RepositoryError(RuntimeError):
    """Raised when the store returns an error response."""


class DuplicateKeyError(RepositoryError):
    """Raised when an insert violates a unique constraint."""

    def __init__(self, table: str, detail: str | None = None) -> None:
        self.table = table
        self.detail = detail
        super().__init__(f"Duplicate key in {table}: {detail or 'unique constraint violated'}")


def execute(query: Any, *, table: str, action: str) -> Any:
    """
    Execute a PostgREST query builder and return the response.

    Raises:
    - DuplicateKeyError on a unique violation.
    - RepositoryError for any other store error.
    """

    try:
        response = query.execute()
    except APIError as e:
        if e.code == UNIQUE_VIOLATION:
            raise DuplicateKeyError(table, e.details or e.message) from e
        raise RepositoryError(f"Failed to {action}: {e.message} (code={e.code})") from e

    # Older clients report errors on the response instead of raising.
    error = getattr(response, "error", None)
    if error:
        raise RepositoryError(f"Failed to {action}: {error}")
    return response


def rows_of(response: Any) -> list[dict[str, Any]]:
    return getattr(response, "data", None) or []


__all__ = ["UNIQUE_VIOLATION", "RepositoryError", "DuplicateKeyError", "execute", "rows_of"]

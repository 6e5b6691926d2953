"""
Check-then-insert-then-recover.

Used wherever "create exactly one row per key" must hold without locks:
1. `find()`; if a row exists, return it.
2. `create()`; if the insert wins, return the new row.
3. If the insert loses a race (`DuplicateKeyError`), `find()` again and return
   the winner. If the winner cannot be read back the store is inconsistent
   and the original error is re-raised.

The store's unique constraint is the only arbiter; no in-process lock is held.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Tuple, TypeVar

from repositories.errors import DuplicateKeyError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def find_or_create(
    find: Callable[[], Optional[T]],
    create: Callable[[], T],
    *,
    label: str,
) -> Tuple[T, bool]:
    """
    Return `(row, created)`; `created` is True only for the caller whose
    insert was persisted.
    """

    existing = find()
    if existing is not None:
        return existing, False

    try:
        return create(), True
    except DuplicateKeyError as e:
        winner = find()
        if winner is None:
            logger.error(
                "Unique violation but no existing row found",
                extra={"label": label, "table": e.table},
            )
            raise
        logger.info("Recovered from concurrent insert", extra={"label": label, "table": e.table})
        return winner, False


__all__ = ["find_or_create"]

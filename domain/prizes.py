"""
Domain: prize catalogs and the weighted draw.

A catalog is an ordered, immutable tuple of entries whose probabilities sum to
1. Catalogs are built once at import time and never mutated; callers pass them
around explicitly (see `domain.reward.RewardDomain`).

The draw must only run server-side. `PrizeCatalogEntry.public_view()` is the
only shape that leaves the process; it never includes the weight.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional, Sequence, Tuple

WEIGHT_SUM_TOLERANCE = 1e-6

RandomSource = Callable[[], float]


@dataclass(frozen=True, slots=True)
class PrizeCatalogEntry:
    slug: str
    name: str
    probability: float  # 0 < p <= 1
    color: str
    emoji: str

    def __post_init__(self) -> None:
        if not self.slug:
            raise ValueError("slug is required")
        if not (0 < self.probability <= 1):
            raise ValueError(
                f"probability for {self.slug!r} must be in (0, 1], got {self.probability}"
            )

    def public_view(self) -> dict[str, Any]:
        return {"slug": self.slug, "name": self.name, "color": self.color, "emoji": self.emoji}


class PrizeCatalog:
    """
    Immutable weighted catalog.

    Validation happens once at construction: at least one entry, unique slugs,
    and weights summing to 1 within `WEIGHT_SUM_TOLERANCE`.
    """

    __slots__ = ("_entries", "_by_slug")

    def __init__(self, entries: Sequence[PrizeCatalogEntry]) -> None:
        entries = tuple(entries)
        if not entries:
            raise ValueError("A prize catalog needs at least one entry")

        by_slug = {entry.slug: entry for entry in entries}
        if len(by_slug) != len(entries):
            raise ValueError("Prize slugs must be unique within a catalog")

        total = math.fsum(entry.probability for entry in entries)
        if abs(total - 1.0) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"Prize probabilities must sum to 1, got {total}")

        self._entries: Tuple[PrizeCatalogEntry, ...] = entries
        self._by_slug = by_slug

    @property
    def entries(self) -> Tuple[PrizeCatalogEntry, ...]:
        return self._entries

    def __iter__(self) -> Iterator[PrizeCatalogEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, slug: str) -> Optional[PrizeCatalogEntry]:
        return self._by_slug.get(slug)

    def draw(self, random_source: RandomSource = random.random) -> PrizeCatalogEntry:
        """
        Pick one entry according to its weight.

        Walks the catalog accumulating weights and returns the first entry whose
        cumulative weight is >= u, where u is drawn from `random_source` in
        [0, 1). If rounding leaves u unmatched the last entry is returned, so
        the draw never fails.
        """

        u = random_source()
        cumulative = 0.0
        for entry in self._entries:
            cumulative += entry.probability
            if cumulative >= u:
                return entry
        return self._entries[-1]


PRIZE_WHEEL_CATALOG = PrizeCatalog(
    (
        PrizeCatalogEntry("carregador", "Carregador Portátil", 0.3475, "#34BF58", "🔋"),
        PrizeCatalogEntry("capa-chuva", "Capa de Chuva", 0.3475, "#4ECDC4", "🌧️"),
        PrizeCatalogEntry("energy-now", "Energy Now", 0.083, "#FFD700", "⚡"),
        PrizeCatalogEntry("kit-glitter", "Kit Glitter", 0.069, "#FF69B4", "✨"),
        PrizeCatalogEntry("alcool-gel", "Álcool Gel", 0.041, "#66FB95", "🧴"),
        PrizeCatalogEntry("rexona", "Rexona Clinical", 0.028, "#5B9BD5", "🧊"),
        PrizeCatalogEntry("kit-camisinha", "Kit c/ Óculos", 0.021, "#FF6B6B", "🕶️"),
        PrizeCatalogEntry("hype-glow", "Hype Glow Rosto", 0.021, "#E040FB", "💎"),
        PrizeCatalogEntry("hidratante-labial", "Hidratante Labial Nívea", 0.014, "#1E88E5", "💋"),
        PrizeCatalogEntry("glitter-corporal", "Glitter Corporal", 0.007, "#AB47BC", "🌟"),
        PrizeCatalogEntry("arquinho", "Arquinho Colorido", 0.007, "#FF7043", "🎀"),
        PrizeCatalogEntry("prendedor", "Prendedor de Cabelo", 0.007, "#8D6E63", "💇"),
        PrizeCatalogEntry("orelha-brilhosa", "Orelha Brilhosa", 0.007, "#FFC107", "👂"),
    )
)

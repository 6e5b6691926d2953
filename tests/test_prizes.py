"""
Tests for `domain/prizes.py`.

Covers:
- Catalog validation (weights sum to 1, unique slugs, probabilities in (0, 1]).
- The weighted draw always returns a catalog member, including at the
  boundaries of [0, 1).
- Draw frequencies follow the weights.
"""

from __future__ import annotations

import math
import random
from collections import Counter

import pytest

from domain.prizes import PRIZE_WHEEL_CATALOG, PrizeCatalog, PrizeCatalogEntry


def _entry(slug: str, probability: float) -> PrizeCatalogEntry:
    return PrizeCatalogEntry(slug, slug.title(), probability, "#000000", "*")


def test_prize_wheel_catalog_weights_sum_to_one() -> None:
    total = math.fsum(entry.probability for entry in PRIZE_WHEEL_CATALOG)

    assert abs(total - 1.0) <= 1e-6
    assert len(PRIZE_WHEEL_CATALOG) == 13


def test_catalog_rejects_weights_not_summing_to_one() -> None:
    with pytest.raises(ValueError):
        PrizeCatalog((_entry("a", 0.5), _entry("b", 0.4)))


def test_catalog_rejects_duplicate_slugs() -> None:
    with pytest.raises(ValueError):
        PrizeCatalog((_entry("a", 0.5), _entry("a", 0.5)))


def test_catalog_rejects_empty() -> None:
    with pytest.raises(ValueError):
        PrizeCatalog(())


@pytest.mark.parametrize("probability", [0.0, -0.1, 1.5])
def test_entry_rejects_probability_out_of_range(probability: float) -> None:
    with pytest.raises(ValueError):
        _entry("a", probability)


def test_draw_boundaries_return_catalog_members() -> None:
    """u=0 picks the first entry; u just below 1 picks the last."""

    catalog = PrizeCatalog((_entry("a", 0.25), _entry("b", 0.25), _entry("c", 0.5)))

    assert catalog.draw(lambda: 0.0).slug == "a"
    assert catalog.draw(lambda: 0.25).slug == "a"
    assert catalog.draw(lambda: 0.2500001).slug == "b"
    assert catalog.draw(lambda: math.nextafter(1.0, 0.0)).slug == "c"


def test_draw_falls_back_to_last_entry_when_rounding_leaves_u_unmatched() -> None:
    # Weights sum to 1 - 5e-7 (within tolerance), so u above that is unmatched.
    catalog = PrizeCatalog((_entry("a", 0.5), _entry("b", 0.4999995)))

    assert catalog.draw(lambda: 0.9999999).slug == "b"


def test_draw_frequencies_follow_weights() -> None:
    rng = random.Random(1234)
    draws = Counter(PRIZE_WHEEL_CATALOG.draw(rng.random).slug for _ in range(40_000))

    for entry in PRIZE_WHEEL_CATALOG:
        observed = draws[entry.slug] / 40_000
        assert abs(observed - entry.probability) < 0.015, entry.slug


def test_public_view_hides_weight() -> None:
    view = PRIZE_WHEEL_CATALOG.entries[0].public_view()

    assert set(view) == {"slug", "name", "color", "emoji"}

"""
Interaction record contract consumed by the matrix engine.

The engine only needs four things from a record: who, what, how much, and
whether the upstream ingestion layer considers it usable. Any object exposing
those attributes can be fed to an accumulator.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass
from typing import Hashable, Protocol, runtime_checkable

MIN_RATING = 1.0
MAX_RATING = 5.0


@runtime_checkable
class SupportsInteraction(Protocol):
    """Structural type for anything the accumulator can ingest."""

    @property
    def user_id(self) -> Hashable: ...

    @property
    def item_id(self) -> Hashable: ...

    @property
    def normalized_rating(self) -> float: ...

    def is_valid(self) -> bool: ...


def normalize_rating(value: float, min_rating: float = MIN_RATING, max_rating: float = MAX_RATING) -> float:
    """
    Map a raw star rating onto [0, 1].

    A value of exactly 0.0 means "not rated" and stays 0.0. Out-of-range
    values are not rejected here; range checks belong to ingestion.
    """
    if value == 0.0:
        return 0.0
    return (value - min_rating) / (max_rating - min_rating)


@dataclass(frozen=True)
class InteractionRecord:
    """
    A single observed (user, item, rating) fact.

    Attributes:
        user_id: Positive user identifier.
        item_id: Positive item identifier.
        normalized_rating: Finite rating, typically in [0, 1].
    """
    user_id: int
    item_id: int
    normalized_rating: float

    def is_valid(self) -> bool:
        return (
            _is_positive(self.user_id)
            and _is_positive(self.item_id)
            and isinstance(self.normalized_rating, numbers.Real)
            and math.isfinite(self.normalized_rating)
        )

    @classmethod
    def from_raw_rating(
        cls,
        user_id: int,
        item_id: int,
        rating: float,
        min_rating: float = MIN_RATING,
        max_rating: float = MAX_RATING,
    ) -> "InteractionRecord":
        """Build a record from a raw star rating."""
        return cls(
            user_id=user_id,
            item_id=item_id,
            normalized_rating=normalize_rating(rating, min_rating, max_rating),
        )


def _is_positive(identifier: object) -> bool:
    # numpy integers count; bool is Integral but never a meaningful id
    if isinstance(identifier, bool) or not isinstance(identifier, numbers.Integral):
        return False
    return identifier > 0

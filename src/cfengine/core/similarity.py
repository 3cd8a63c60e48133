"""
Pairwise similarity over a frozen interaction matrix.

User-user similarity is Pearson correlation on mean-centred ratings; item-item
similarity is cosine on raw ratings. Both only look at the co-rated support
and return 0.0 whenever the result would be undefined.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING, Hashable, Tuple

import numpy as np

from .ranking import sort_ids

if TYPE_CHECKING:
    from .matrix import InteractionMatrix

MIN_COMMON_SUPPORT = 2


def _co_rated_vectors(
    matrix: "InteractionMatrix",
    user_id_1: Hashable,
    user_id_2: Hashable,
) -> Tuple[np.ndarray, np.ndarray]:
    common = sort_ids(matrix.get_user_items(user_id_1) & matrix.get_user_items(user_id_2))
    ratings_1 = matrix.get_user_ratings(user_id_1)
    ratings_2 = matrix.get_user_ratings(user_id_2)
    return (
        np.fromiter((ratings_1[i] for i in common), dtype=float, count=len(common)),
        np.fromiter((ratings_2[i] for i in common), dtype=float, count=len(common)),
    )


def _co_rating_vectors(
    matrix: "InteractionMatrix",
    item_id_1: Hashable,
    item_id_2: Hashable,
) -> Tuple[np.ndarray, np.ndarray]:
    common = sort_ids(matrix.get_item_users(item_id_1) & matrix.get_item_users(item_id_2))
    return (
        np.fromiter((matrix.get_rating(u, item_id_1) for u in common), dtype=float, count=len(common)),
        np.fromiter((matrix.get_rating(u, item_id_2) for u in common), dtype=float, count=len(common)),
    )


def user_similarity(matrix: "InteractionMatrix", user_id_1: Hashable, user_id_2: Hashable) -> float:
    """
    Pearson correlation between two users over the items both rated.

    Ratings are centred on each user's average over *all* their items, as
    precomputed at build time. The result is not clamped to [-1, 1].

    Returns 0.0 when fewer than two items are shared or when either centred
    vector has no variance. Comparing a user with itself is allowed.
    """
    r1, r2 = _co_rated_vectors(matrix, user_id_1, user_id_2)
    if r1.size < MIN_COMMON_SUPPORT:
        return 0.0

    c1 = r1 - matrix.get_user_average_rating(user_id_1)
    c2 = r2 - matrix.get_user_average_rating(user_id_2)

    numerator = float(np.dot(c1, c2))
    denominator_1 = float(np.dot(c1, c1))
    denominator_2 = float(np.dot(c2, c2))

    if denominator_1 == 0.0 or denominator_2 == 0.0:
        return 0.0

    return numerator / math.sqrt(denominator_1 * denominator_2)


def item_similarity(matrix: "InteractionMatrix", item_id_1: Hashable, item_id_2: Hashable) -> float:
    """
    Cosine similarity between two items over the users who rated both.

    Uses raw ratings with no mean-centring. Returns 0.0 when fewer than two
    users are shared or when either vector has zero norm.
    """
    r1, r2 = _co_rating_vectors(matrix, item_id_1, item_id_2)
    if r1.size < MIN_COMMON_SUPPORT:
        return 0.0

    dot = float(np.dot(r1, r2))
    norm_1 = float(np.dot(r1, r1))
    norm_2 = float(np.dot(r2, r2))

    if norm_1 == 0.0 or norm_2 == 0.0:
        return 0.0

    return dot / math.sqrt(norm_1 * norm_2)

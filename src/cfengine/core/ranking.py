from __future__ import annotations

import numbers
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Generic, Hashable, Iterable, List, Optional, TypeVar

IdT = TypeVar("IdT", bound=Hashable)


@dataclass(frozen=True)
class SimilarityPair(Generic[IdT]):
    """A candidate id with its similarity to the query anchor."""
    id: IdT
    similarity: float


@dataclass(frozen=True)
class RankParams:
    top_n: int = 10
    # scores must be strictly above this to be kept
    min_similarity: float = 0.1
    exclude_self: bool = True
    max_workers: Optional[int] = None
    parallel_min_candidates: int = 1000


def _id_sort_key(identifier: Hashable):
    # numbers (numpy scalars included) sort numerically, anything else by str
    if isinstance(identifier, numbers.Real) and not isinstance(identifier, bool):
        return (0, identifier, "")
    return (1, 0, str(identifier))


def sort_ids(ids: Iterable[Hashable]) -> List[Hashable]:
    """Sort ids numerically first, then anything else by its string form."""
    return sorted(ids, key=_id_sort_key)


def _stable_rank(pairs: List[SimilarityPair[IdT]]) -> List[SimilarityPair[IdT]]:
    """
    Order pairs by similarity desc, then id asc.

    The id tie-breaker only makes the output reproducible; callers should not
    depend on the order among equal scores.
    """
    return sorted(pairs, key=lambda p: (-p.similarity, _id_sort_key(p.id)))


def score_candidates(
    anchor: IdT,
    candidates: Iterable[IdT],
    score: Callable[[IdT, IdT], float],
    *,
    max_workers: Optional[int] = None,
    parallel_min_candidates: int = 1000,
) -> List[SimilarityPair[IdT]]:
    """
    Compute the raw score of every candidate against the anchor.

    No threshold, no self-exclusion, no ordering guarantees. Each candidate is
    scored independently, so large candidate sets are spread over a thread
    pool when max_workers is set.
    """
    candidate_list = list(candidates)

    def _score_one(candidate: IdT) -> SimilarityPair[IdT]:
        return SimilarityPair(id=candidate, similarity=score(anchor, candidate))

    if max_workers and len(candidate_list) >= parallel_min_candidates:
        with ThreadPoolExecutor(max_workers=max_workers) as pool:
            return list(pool.map(_score_one, candidate_list))

    return [_score_one(candidate) for candidate in candidate_list]


def select_top_n(
    anchor: IdT,
    candidates: Iterable[IdT],
    score: Callable[[IdT, IdT], float],
    params: RankParams,
) -> List[SimilarityPair[IdT]]:
    """
    Rank candidates by score against the anchor and keep the best top_n.

    Steps:
        1. Drop the anchor itself when params.exclude_self is set.
        2. Score every remaining candidate.
        3. Keep scores > params.min_similarity.
        4. Sort by score descending and truncate to params.top_n.
    """
    if params.top_n <= 0:
        return []

    pool = (c for c in candidates if not (params.exclude_self and c == anchor))
    scored = score_candidates(
        anchor,
        pool,
        score,
        max_workers=params.max_workers,
        parallel_min_candidates=params.parallel_min_candidates,
    )
    kept = [pair for pair in scored if pair.similarity > params.min_similarity]
    return _stable_rank(kept)[: params.top_n]

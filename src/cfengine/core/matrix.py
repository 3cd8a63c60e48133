from __future__ import annotations

import logging
from datetime import datetime, timezone
from types import MappingProxyType
from typing import TYPE_CHECKING, AbstractSet, FrozenSet, Hashable, Iterable, List, Mapping, Optional

from ..config import EngineConfig
from ..logging_utils import configure_logger
from . import similarity
from .ranking import SimilarityPair, select_top_n

if TYPE_CHECKING:
    from ..records import SupportsInteraction

_EMPTY_IDS: FrozenSet[Hashable] = frozenset()
_EMPTY_RATINGS: Mapping[Hashable, float] = MappingProxyType({})


def _freeze_ratings(table: Mapping[Hashable, Mapping[Hashable, float]]) -> Mapping[Hashable, Mapping[Hashable, float]]:
    return MappingProxyType({key: MappingProxyType(dict(row)) for key, row in table.items()})


def _freeze_index(index: Mapping[Hashable, AbstractSet[Hashable]]) -> Mapping[Hashable, FrozenSet[Hashable]]:
    return MappingProxyType({key: frozenset(ids) for key, ids in index.items()})


class InteractionMatrix:
    """
    Immutable user-item rating matrix with neighbourhood queries.

    Instances are produced by ``InteractionAccumulator.build()``. All state is
    copied into frozensets and read-only mappings at construction, so a matrix
    can be shared between threads without locking.

    Unknown ids never raise: ratings, averages and similarities fall back to
    0.0 and index lookups to an empty frozenset.
    """

    __slots__ = (
        "_rating_by_user_item",
        "_items_by_user",
        "_users_by_item",
        "_user_average_rating",
        "_item_average_rating",
        "_all_users",
        "_all_items",
        "_total_interactions",
        "_last_updated",
        "_config",
        "_logger",
    )

    def __init__(
        self,
        *,
        rating_by_user_item: Mapping[Hashable, Mapping[Hashable, float]],
        items_by_user: Mapping[Hashable, AbstractSet[Hashable]],
        users_by_item: Mapping[Hashable, AbstractSet[Hashable]],
        user_average_rating: Mapping[Hashable, float],
        item_average_rating: Mapping[Hashable, float],
        all_users: Iterable[Hashable],
        all_items: Iterable[Hashable],
        total_interactions: int,
        last_updated: datetime,
        config: Optional[EngineConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._rating_by_user_item = _freeze_ratings(rating_by_user_item)
        self._items_by_user = _freeze_index(items_by_user)
        self._users_by_item = _freeze_index(users_by_item)
        self._user_average_rating = MappingProxyType(dict(user_average_rating))
        self._item_average_rating = MappingProxyType(dict(item_average_rating))
        self._all_users = frozenset(all_users)
        self._all_items = frozenset(all_items)
        self._total_interactions = total_interactions
        self._last_updated = last_updated
        self._config = config or EngineConfig()
        self._logger = logger or configure_logger()

    # ------------------------------------------------------------
    # Factory Constructors
    # ------------------------------------------------------------
    @classmethod
    def empty(cls, config: Optional[EngineConfig] = None) -> "InteractionMatrix":
        """Return a matrix with no users, items or interactions."""
        return cls(
            rating_by_user_item={},
            items_by_user={},
            users_by_item={},
            user_average_rating={},
            item_average_rating={},
            all_users=(),
            all_items=(),
            total_interactions=0,
            last_updated=datetime.now(timezone.utc),
            config=config,
        )

    @classmethod
    def from_interactions(
        cls,
        records: Iterable["SupportsInteraction"],
        config: Optional[EngineConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "InteractionMatrix":
        """
        Build a matrix from records, skipping those whose is_valid() is false.

        This is the only entry point that consults the validity predicate;
        the accumulator itself ingests whatever it is given.
        """
        from .accumulator import InteractionAccumulator

        _logger = logger or configure_logger()
        accumulator = InteractionAccumulator(config=config, logger=_logger)
        skipped = 0
        for record in records:
            if record.is_valid():
                accumulator.add(record)
            else:
                skipped += 1

        if skipped:
            _logger.info(
                "Invalid records skipped",
                extra={"event": "records_skipped", "skipped": skipped},
            )

        return accumulator.build()

    # ------------------------------------------------------------
    # Snapshot properties
    # ------------------------------------------------------------
    @property
    def all_users(self) -> FrozenSet[Hashable]:
        return self._all_users

    @property
    def all_items(self) -> FrozenSet[Hashable]:
        return self._all_items

    @property
    def user_count(self) -> int:
        return len(self._all_users)

    @property
    def item_count(self) -> int:
        return len(self._all_items)

    @property
    def total_interactions(self) -> int:
        """Number of ingested records, overwrites of the same cell included."""
        return self._total_interactions

    @property
    def last_updated(self) -> datetime:
        return self._last_updated

    @property
    def config(self) -> EngineConfig:
        return self._config

    # ------------------------------------------------------------
    # Basic queries
    # ------------------------------------------------------------
    def get_rating(self, user_id: Hashable, item_id: Hashable) -> float:
        return self._rating_by_user_item.get(user_id, _EMPTY_RATINGS).get(item_id, 0.0)

    def has_interaction(self, user_id: Hashable, item_id: Hashable) -> bool:
        return item_id in self._items_by_user.get(user_id, _EMPTY_IDS)

    def get_user_items(self, user_id: Hashable) -> FrozenSet[Hashable]:
        return self._items_by_user.get(user_id, _EMPTY_IDS)

    def get_item_users(self, item_id: Hashable) -> FrozenSet[Hashable]:
        return self._users_by_item.get(item_id, _EMPTY_IDS)

    def get_user_ratings(self, user_id: Hashable) -> Mapping[Hashable, float]:
        """Read-only item -> rating row for one user."""
        return self._rating_by_user_item.get(user_id, _EMPTY_RATINGS)

    def get_user_average_rating(self, user_id: Hashable) -> float:
        return self._user_average_rating.get(user_id, 0.0)

    def get_item_average_rating(self, item_id: Hashable) -> float:
        return self._item_average_rating.get(item_id, 0.0)

    def get_sparsity(self) -> float:
        """
        Fraction of the user x item grid with no recorded interaction.

        Computed from total_interactions, so duplicate ingestions of the same
        (user, item) cell make the matrix look denser than it is.
        """
        total_possible = len(self._all_users) * len(self._all_items)
        if total_possible == 0:
            return 0.0
        return 1.0 - self._total_interactions / total_possible

    def get_density(self) -> float:
        if not self._all_users or not self._all_items:
            return 0.0
        return 1.0 - self.get_sparsity()

    # ------------------------------------------------------------
    # Similarity
    # ------------------------------------------------------------
    def user_similarity(self, user_id_1: Hashable, user_id_2: Hashable) -> float:
        return similarity.user_similarity(self, user_id_1, user_id_2)

    def item_similarity(self, item_id_1: Hashable, item_id_2: Hashable) -> float:
        return similarity.item_similarity(self, item_id_1, item_id_2)

    # ------------------------------------------------------------
    # Neighbourhoods
    # ------------------------------------------------------------
    def most_similar_users(self, user_id: Hashable, n: Optional[int] = None) -> List[SimilarityPair[Hashable]]:
        """
        Return up to n users most similar to user_id, best first.

        The user itself is excluded and only scores above the configured
        threshold are kept. n defaults to the configured neighbourhood size.
        """
        params = self._config.rank_params(n)
        neighbours = select_top_n(user_id, self._all_users, self.user_similarity, params)
        self._logger.debug(
            "Similar users ranked",
            extra={
                "event": "most_similar_users",
                "user_id": user_id,
                "candidates": len(self._all_users),
                "returned": len(neighbours),
            },
        )
        return neighbours

    def most_similar_items(self, item_id: Hashable, n: Optional[int] = None) -> List[SimilarityPair[Hashable]]:
        """Item-side counterpart of most_similar_users."""
        params = self._config.rank_params(n)
        neighbours = select_top_n(item_id, self._all_items, self.item_similarity, params)
        self._logger.debug(
            "Similar items ranked",
            extra={
                "event": "most_similar_items",
                "item_id": item_id,
                "candidates": len(self._all_items),
                "returned": len(neighbours),
            },
        )
        return neighbours

    def __repr__(self) -> str:
        return (
            f"InteractionMatrix(users={self.user_count}, items={self.item_count}, "
            f"interactions={self._total_interactions})"
        )

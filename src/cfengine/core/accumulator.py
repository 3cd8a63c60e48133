from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Hashable, Iterable, Optional, Set

from ..config import EngineConfig
from ..logging_utils import configure_logger
from ..records import SupportsInteraction
from .matrix import InteractionMatrix


class InteractionAccumulator:
    """
    Mutable, single-writer builder for an InteractionMatrix.

    High-level workflow:
        1. Feed records with add() / add_batch().
        2. Call build() once to get a frozen, independent matrix.

    Records are ingested as-is; filtering invalid data is the caller's job.
    Not safe for concurrent mutation.
    """

    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.config = config or EngineConfig()
        self.logger = logger or configure_logger()

        self.rating_by_user_item: Dict[Hashable, Dict[Hashable, float]] = {}
        self.items_by_user: Dict[Hashable, Set[Hashable]] = {}
        self.users_by_item: Dict[Hashable, Set[Hashable]] = {}
        self.known_users: Set[Hashable] = set()
        self.known_items: Set[Hashable] = set()
        self.total_interactions = 0
        self.last_updated = datetime.now(timezone.utc)

    def add(self, record: SupportsInteraction) -> "InteractionAccumulator":
        """
        Ingest one record. A repeated (user, item) pair overwrites the rating
        but still counts as an interaction.
        """
        user_id = record.user_id
        item_id = record.item_id

        self.rating_by_user_item.setdefault(user_id, {})[item_id] = record.normalized_rating
        self.items_by_user.setdefault(user_id, set()).add(item_id)
        self.users_by_item.setdefault(item_id, set()).add(user_id)

        self.known_users.add(user_id)
        self.known_items.add(item_id)

        self.total_interactions += 1
        self.last_updated = datetime.now(timezone.utc)
        return self

    def add_batch(self, records: Iterable[SupportsInteraction]) -> "InteractionAccumulator":
        """Ingest records in order; later duplicates win."""
        before = self.total_interactions
        for record in records:
            self.add(record)

        self.logger.debug(
            "Interaction batch ingested",
            extra={
                "event": "add_batch",
                "total_interactions": self.total_interactions,
                "step": self.total_interactions - before,
            },
        )
        return self

    def _user_averages(self) -> Dict[Hashable, float]:
        averages: Dict[Hashable, float] = {}
        for user_id, ratings in self.rating_by_user_item.items():
            averages[user_id] = sum(ratings.values()) / len(ratings) if ratings else 0.0
        return averages

    def _item_averages(self) -> Dict[Hashable, float]:
        sums: Dict[Hashable, float] = {item_id: 0.0 for item_id in self.known_items}
        counts: Dict[Hashable, int] = {item_id: 0 for item_id in self.known_items}
        for ratings in self.rating_by_user_item.values():
            for item_id, rating in ratings.items():
                sums[item_id] += rating
                counts[item_id] += 1
        return {
            item_id: (sums[item_id] / counts[item_id] if counts[item_id] else 0.0)
            for item_id in self.known_items
        }

    def build(self) -> InteractionMatrix:
        """
        Compute user/item averages and freeze a deep copy of the current state.

        Later calls to add() do not affect the returned matrix.
        """
        matrix = InteractionMatrix(
            rating_by_user_item=self.rating_by_user_item,
            items_by_user=self.items_by_user,
            users_by_item=self.users_by_item,
            user_average_rating=self._user_averages(),
            item_average_rating=self._item_averages(),
            all_users=self.known_users,
            all_items=self.known_items,
            total_interactions=self.total_interactions,
            last_updated=self.last_updated,
            config=self.config,
            logger=self.logger,
        )

        self.logger.info(
            "Interaction matrix built",
            extra={
                "event": "matrix_built",
                "shape": (matrix.user_count, matrix.item_count),
                "total_interactions": matrix.total_interactions,
                "sparsity": round(matrix.get_sparsity(), 6),
            },
        )
        return matrix

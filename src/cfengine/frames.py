"""
pandas adapters around the matrix engine.

These helpers sit at the edge of the engine: they turn a ratings DataFrame
into interaction records and render matrix contents back into DataFrames for
notebooks and batch jobs. The engine itself never touches pandas.
"""

from __future__ import annotations

import logging
from typing import Hashable, Iterator, List, Optional, Sequence

import pandas as pd

from .config import EngineConfig
from .core.accumulator import InteractionAccumulator
from .core.matrix import InteractionMatrix
from .core.ranking import SimilarityPair, sort_ids
from .logging_utils import configure_logger
from .records import InteractionRecord
from .validators import validate_ratings_schema


def _as_id(value) -> Hashable:
    # numpy scalars -> plain python ints where possible
    if hasattr(value, "item"):
        value = value.item()
    return value


def records_from_frame(
    ratings_df: pd.DataFrame,
    user_col: str = "userId",
    item_col: str = "itemId",
    rating_col: str = "rating",
    logger: Optional[logging.Logger] = None,
) -> Iterator[InteractionRecord]:
    """
    Return an iterator with one InteractionRecord per row, in row order.

    The schema is checked before anything is returned; rows are converted
    lazily. The rating column is taken as already normalized.

    Raises:
        ValidationError: If a column is missing or the rating column is not numeric.
    """
    validate_ratings_schema(
        ratings_df,
        user_col=user_col,
        item_col=item_col,
        rating_col=rating_col,
        logger=logger,
        step_name="records_from_frame",
    )
    return _iter_records(ratings_df[[user_col, item_col, rating_col]])


def _iter_records(columns: pd.DataFrame) -> Iterator[InteractionRecord]:
    for user_id, item_id, rating in columns.itertuples(index=False, name=None):
        yield InteractionRecord(
            user_id=_as_id(user_id),
            item_id=_as_id(item_id),
            normalized_rating=float(rating),
        )


def matrix_from_frame(
    ratings_df: pd.DataFrame,
    user_col: str = "userId",
    item_col: str = "itemId",
    rating_col: str = "rating",
    config: Optional[EngineConfig] = None,
    logger: Optional[logging.Logger] = None,
) -> InteractionMatrix:
    """
    Full pipeline: validate -> records -> accumulate -> build.
    """
    _logger = logger or configure_logger()
    accumulator = InteractionAccumulator(config=config, logger=_logger)
    accumulator.add_batch(
        records_from_frame(ratings_df, user_col, item_col, rating_col, logger=_logger)
    )
    return accumulator.build()


def user_item_frame(matrix: InteractionMatrix) -> pd.DataFrame:
    """
    Dense user x item pivot of the matrix.

    Rows: user ids (numbers first, then by str)
    Columns: item ids (same order rule)
    Values: stored rating, 0.0 where the user has no interaction
    """
    users = sort_ids(matrix.all_users)
    items = sort_ids(matrix.all_items)
    data: List[List[float]] = [
        [matrix.get_rating(user_id, item_id) for item_id in items] for user_id in users
    ]
    frame = pd.DataFrame(data, index=users, columns=items, dtype=float)
    frame.index.name = "userId"
    frame.columns.name = "itemId"
    return frame


def similarity_pairs_frame(pairs: Sequence[SimilarityPair], id_col: str = "id") -> pd.DataFrame:
    """
    Two-column frame [id_col, similarity] preserving the ranked order.
    """
    return pd.DataFrame(
        [(pair.id, pair.similarity) for pair in pairs],
        columns=[id_col, "similarity"],
    )

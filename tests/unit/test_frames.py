import pandas as pd
import pytest

from cfengine.core.accumulator import InteractionAccumulator
from cfengine.core.ranking import SimilarityPair
from cfengine.frames import matrix_from_frame, records_from_frame, similarity_pairs_frame, user_item_frame
from cfengine.records import InteractionRecord
from cfengine.validators import ValidationError


@pytest.fixture
def ratings_df():
    return pd.DataFrame(
        {
            "userId": [1, 1, 2, 2, 3],
            "itemId": [10, 20, 10, 20, 10],
            "rating": [1.0, 0.6, 0.8, 0.4, 0.2],
        }
    )


# ---------------------------------------------------------------------------
# records_from_frame
# ---------------------------------------------------------------------------

def test_records_from_frame_yields_plain_records(ratings_df):
    records = list(records_from_frame(ratings_df))

    assert records[0] == InteractionRecord(1, 10, 1.0)
    assert len(records) == 5
    assert all(type(r.user_id) is int and type(r.item_id) is int for r in records)
    assert all(r.is_valid() for r in records)


def test_records_from_frame_custom_columns():
    df = pd.DataFrame({"user_id": [4], "movie_id": [9], "score": [0.3]})
    records = list(records_from_frame(df, user_col="user_id", item_col="movie_id", rating_col="score"))

    assert records == [InteractionRecord(4, 9, 0.3)]


def test_missing_column_raises_validation_error(ratings_df):
    with pytest.raises(ValidationError, match="itemId"):
        list(records_from_frame(ratings_df.drop(columns=["itemId"])))


def test_non_numeric_rating_raises_validation_error(ratings_df):
    ratings_df["rating"] = ratings_df["rating"].astype(str)

    with pytest.raises(ValidationError, match="numeric"):
        list(records_from_frame(ratings_df))


# ---------------------------------------------------------------------------
# matrix_from_frame / user_item_frame
# ---------------------------------------------------------------------------

def test_matrix_from_frame_worked_scenario(ratings_df, quiet_logger):
    matrix = matrix_from_frame(ratings_df, logger=quiet_logger)

    assert matrix.total_interactions == 5
    assert matrix.user_similarity(1, 2) == pytest.approx(1.0)
    assert matrix.get_sparsity() == pytest.approx(1 - 5 / 6)


def test_user_item_frame_pivots_with_zero_fill(worked_matrix):
    frame = user_item_frame(worked_matrix)

    assert list(frame.index) == [1, 2, 3]
    assert list(frame.columns) == [10, 20]
    assert frame.loc[3, 20] == 0.0
    assert frame.loc[1, 20] == pytest.approx(0.6)
    assert frame.shape == (3, 2)


def test_similarity_pairs_frame_keeps_order():
    pairs = [SimilarityPair(5, 0.9), SimilarityPair(2, 0.4)]
    frame = similarity_pairs_frame(pairs, id_col="userId")

    assert list(frame.columns) == ["userId", "similarity"]
    assert frame["userId"].tolist() == [5, 2]
    assert frame["similarity"].tolist() == [0.9, 0.4]


def test_similarity_pairs_frame_empty():
    frame = similarity_pairs_frame([])
    assert frame.empty
    assert list(frame.columns) == ["id", "similarity"]


def test_bad_schema_raises_when_called_not_when_iterated():
    bad = pd.DataFrame({"userId": [1], "rating": [0.5]})

    with pytest.raises(ValidationError, match="itemId"):
        records_from_frame(bad)


def test_validation_error_lists_available_columns():
    bad = pd.DataFrame({"userId": [1], "rating": [0.5]})

    with pytest.raises(ValidationError, match=r"available=\['userId', 'rating'\]"):
        records_from_frame(bad)


def test_records_from_frame_converts_rows_lazily(ratings_df):
    records = records_from_frame(ratings_df)

    assert next(records) == InteractionRecord(1, 10, 1.0)
    assert len(list(records)) == 4


def test_user_item_frame_handles_mixed_id_types(quiet_logger):
    records = [
        InteractionRecord("guest", 10, 0.4),
        InteractionRecord(2, "sku-1", 0.9),
        InteractionRecord(1, 10, 0.2),
    ]
    matrix = InteractionAccumulator(logger=quiet_logger).add_batch(records).build()

    frame = user_item_frame(matrix)

    assert list(frame.index) == [1, 2, "guest"]
    assert list(frame.columns) == [10, "sku-1"]
    assert frame.loc["guest", 10] == pytest.approx(0.4)
    assert frame.loc[2, "sku-1"] == pytest.approx(0.9)
    assert frame.loc[1, "sku-1"] == 0.0

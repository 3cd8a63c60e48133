import numpy as np
import pytest

from cfengine.core.ranking import RankParams, SimilarityPair, score_candidates, select_top_n, sort_ids

SCORES = {1: 0.9, 2: 0.5, 3: 0.5, 4: 0.1, 5: -0.4, 6: 0.3}


def _score(anchor, candidate):
    if anchor == candidate:
        return 1.0
    return SCORES[candidate]


# ---------------------------------------------------------------------------
# SimilarityPair
# ---------------------------------------------------------------------------

def test_similarity_pair_is_frozen_value():
    pair = SimilarityPair(id=7, similarity=0.4)

    assert pair == SimilarityPair(7, 0.4)
    with pytest.raises(AttributeError):
        pair.similarity = 0.9


# ---------------------------------------------------------------------------
# select_top_n
# ---------------------------------------------------------------------------

def test_select_top_n_applies_threshold_and_order():
    result = select_top_n(1, SCORES, _score, RankParams(top_n=10))

    assert [pair.id for pair in result] == [2, 3, 6]
    assert all(pair.similarity > 0.1 for pair in result)


def test_threshold_is_strict():
    result = select_top_n(1, [4], _score, RankParams(min_similarity=0.1))
    assert result == []


def test_ties_are_broken_by_id():
    result = select_top_n(99, [3, 2], lambda a, c: 0.5, RankParams())
    assert [pair.id for pair in result] == [2, 3]


def test_truncates_to_top_n():
    result = select_top_n(1, SCORES, _score, RankParams(top_n=2))
    assert [pair.id for pair in result] == [2, 3]


@pytest.mark.parametrize("top_n", [0, -3])
def test_non_positive_top_n_returns_empty(top_n):
    assert select_top_n(1, SCORES, _score, RankParams(top_n=top_n)) == []


def test_self_exclusion_can_be_disabled():
    kept = select_top_n(1, SCORES, _score, RankParams(top_n=1, exclude_self=False))
    dropped = select_top_n(1, SCORES, _score, RankParams(top_n=1))

    assert kept == [SimilarityPair(1, 1.0)]
    assert dropped[0].id != 1


def test_parallel_selection_matches_serial():
    candidates = list(range(1, 400))

    def score(anchor, candidate):
        return ((candidate * 37) % 101) / 100.0

    serial = select_top_n(0, candidates, score, RankParams(top_n=25))
    parallel = select_top_n(
        0,
        candidates,
        score,
        RankParams(top_n=25, max_workers=4, parallel_min_candidates=10),
    )

    assert parallel == serial
    assert len(serial) == 25


# ---------------------------------------------------------------------------
# score_candidates
# ---------------------------------------------------------------------------

def test_score_candidates_returns_raw_scores():
    result = score_candidates(1, [1, 5, 4], _score)

    assert result == [SimilarityPair(1, 1.0), SimilarityPair(5, -0.4), SimilarityPair(4, 0.1)]


def test_score_candidates_on_pool_keeps_input_order():
    result = score_candidates(1, [6, 5, 4], _score, max_workers=2, parallel_min_candidates=1)
    assert [pair.id for pair in result] == [6, 5, 4]


# ---------------------------------------------------------------------------
# sort_ids
# ---------------------------------------------------------------------------

def test_sort_ids_orders_numbers_before_other_ids():
    assert sort_ids({"b", 3, "a", 1, np.int64(2)}) == [1, 2, 3, "a", "b"]

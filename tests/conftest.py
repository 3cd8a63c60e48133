import logging

import pytest

from cfengine.core.accumulator import InteractionAccumulator
from cfengine.records import InteractionRecord


@pytest.fixture
def quiet_logger():
    """Logger that swallows output so tests stay readable."""
    logger = logging.getLogger("cfengine.tests")
    logger.handlers = [logging.NullHandler()]
    logger.propagate = False
    return logger


@pytest.fixture
def worked_records():
    return [
        InteractionRecord(user_id=1, item_id=10, normalized_rating=1.0),
        InteractionRecord(user_id=1, item_id=20, normalized_rating=0.6),
        InteractionRecord(user_id=2, item_id=10, normalized_rating=0.8),
        InteractionRecord(user_id=2, item_id=20, normalized_rating=0.4),
        InteractionRecord(user_id=3, item_id=10, normalized_rating=0.2),
    ]


@pytest.fixture
def worked_matrix(worked_records, quiet_logger):
    return InteractionAccumulator(logger=quiet_logger).add_batch(worked_records).build()


@pytest.fixture
def neighbourhood_matrix(quiet_logger):
    """
    Five users over four items.

    Users 1 and 2 agree, user 3 is their mirror image, user 4 has flat
    ratings and user 5 rated a single item.
    """
    rows = [
        (1, 100, 0.9), (1, 200, 0.1), (1, 300, 0.5), (1, 400, 0.7),
        (2, 100, 0.8), (2, 200, 0.2), (2, 300, 0.5), (2, 400, 0.6),
        (3, 100, 0.1), (3, 200, 0.9), (3, 300, 0.5), (3, 400, 0.3),
        (4, 100, 0.5), (4, 200, 0.5), (4, 300, 0.5),
        (5, 100, 0.7),
    ]
    accumulator = InteractionAccumulator(logger=quiet_logger)
    accumulator.add_batch(InteractionRecord(u, i, r) for u, i, r in rows)
    return accumulator.build()

from __future__ import annotations

import logging
from typing import Optional, Sequence

import pandas as pd


class ValidationError(Exception):
    """Raised when input data fails validation."""


def validate_required_columns(df: pd.DataFrame, required: Sequence[str]) -> None:
    """
    Raise ValidationError naming every absent column, in the order requested,
    together with the columns the frame actually has.
    """
    present = set(df.columns)
    missing = [column for column in dict.fromkeys(required) if column not in present]
    if missing:
        raise ValidationError(
            f"Missing required columns {missing}; available={list(df.columns)}"
        )


def validate_ratings_schema(
    df: pd.DataFrame,
    user_col: str = "userId",
    item_col: str = "itemId",
    rating_col: str = "rating",
    logger: Optional[logging.Logger] = None,
    step_name: str = "ratings_schema_validation",
) -> None:
    """
    Validate the schema of an interactions DataFrame.

    Checks:
        - user, item and rating columns exist
        - rating column is numeric
    """
    if logger:
        logger.info(
            "Validating ratings schema",
            extra={"event": f"validate_schema_{step_name}"}
        )

    validate_required_columns(df, [user_col, item_col, rating_col])

    if not pd.api.types.is_numeric_dtype(df[rating_col]):
        raise ValidationError(f"Column {rating_col!r} must be numeric.")

    if logger:
        logger.info(
            "Ratings schema validated successfully",
            extra={"event": f"validate_schema_{step_name}_success"}
        )

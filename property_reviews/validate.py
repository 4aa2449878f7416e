import logging

import pandas as pd

from .constants import (
    F_BUSINESS_SOURCE_ID,
    F_DATE,
    F_NAME,
    F_SOURCE_ID,
    F_STARS,
    F_TYPE,
    F_USER_SOURCE_ID,
    MAX_RATING,
    MIN_RATING,
    REVIEW_TYPES,
    TYPE_GUEST_TO_HOST,
)

logger = logging.getLogger(__name__)


def _require(df: pd.DataFrame, required: list[str], what: str) -> None:
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"Missing required {what} columns: {missing}")


def validate_dimension(df: pd.DataFrame, what: str) -> pd.DataFrame:
    """Drop rows without a source id and fall back to the id when the name is missing.

    Args:
        df: businesses or users DataFrame with normalized column names.
        what: label used in messages.

    Returns:
        The cleaned DataFrame (a new object).

    Raises:
        ValueError: if the source id or name column is absent.
    """
    _require(df, [F_SOURCE_ID, F_NAME], what)
    df = df[df[F_SOURCE_ID].notna()].copy()
    df[F_SOURCE_ID] = df[F_SOURCE_ID].astype(str)
    df[F_NAME] = df[F_NAME].where(df[F_NAME].notna(), df[F_SOURCE_ID])
    return df.drop_duplicates(subset=[F_SOURCE_ID], keep="last")


def validate_reviews(df: pd.DataFrame) -> pd.DataFrame:
    """Non-fatal validations and normalisations for the reviews DataFrame.

    - rows missing a source id, owner ids or a parseable date are dropped
    - ratings outside 0..5 are nulled
    - unknown review types fall back to guest-to-host

    Raises:
        ValueError: if required key columns are missing.
    """
    _require(df, [F_SOURCE_ID, F_USER_SOURCE_ID, F_BUSINESS_SOURCE_ID, F_DATE], "review")

    keys = [F_SOURCE_ID, F_USER_SOURCE_ID, F_BUSINESS_SOURCE_ID, F_DATE]
    valid = df[keys].notna().all(axis=1)
    if (~valid).any():
        logger.warning(f"Dropping {int((~valid).sum())} reviews with missing ids or dates")
    df = df[valid].copy()
    for col in (F_SOURCE_ID, F_USER_SOURCE_ID, F_BUSINESS_SOURCE_ID):
        df[col] = df[col].astype(str)

    if F_STARS in df.columns:
        out_of_range = df[F_STARS].notna() & ~df[F_STARS].between(MIN_RATING, MAX_RATING)
        if out_of_range.any():
            logger.warning(f"Clearing {int(out_of_range.sum())} out-of-range ratings")
            df.loc[out_of_range, F_STARS] = None

    if F_TYPE in df.columns:
        df[F_TYPE] = df[F_TYPE].where(df[F_TYPE].isin(REVIEW_TYPES), TYPE_GUEST_TO_HOST)

    return df.drop_duplicates(subset=[F_SOURCE_ID], keep="last")

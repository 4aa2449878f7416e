import argparse
import hashlib
import json
import logging

import pandas as pd
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from .database import SessionLocal, engine
from .logging_utils import configure_logging
from .models import Base, Business, Review, ReviewCategory, User
from .metadata import SeedRun
from .validate import validate_dimension, validate_reviews
from .constants import (
    BUSINESS_RENAME_MAP,
    REVIEW_RENAME_MAP,
    USER_RENAME_MAP,
    F_BUSINESS_SOURCE_ID,
    F_CHANNEL,
    F_DATE,
    F_FILE_HASH,
    F_IS_OPEN,
    F_LOADED_ROWS,
    F_REVIEW_COUNT,
    F_SOURCE_ID,
    F_SOURCE_PATH,
    F_STARS,
    F_TEXT,
    F_TOTAL_ROWS,
    F_TYPE,
    F_USER_SOURCE_ID,
    K_CATEGORIES,
    K_SOURCE_ID,
    TYPE_GUEST_TO_HOST,
)

logger = logging.getLogger(__name__)


def compute_file_hash(file_path: str) -> str:
    h = hashlib.sha256()
    with open(file_path, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            h.update(chunk)
    return h.hexdigest()


def _frame(records: list[dict], rename_map: dict) -> pd.DataFrame:
    df = pd.DataFrame(records).rename(columns=rename_map)
    return df.reindex(columns=list(rename_map.values()))


def load_seed_frames(path: str):
    """Read a seed JSON file into normalized DataFrames.

    Returns:
        tuple: (businesses, users, reviews, categories_by_review) where the last item maps
        review source id -> list of {"name", "stars"} dicts.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    raw_reviews = data.get("reviews", [])
    categories_by_review = {
        str(r.get(K_SOURCE_ID)): r.get(K_CATEGORIES) or [] for r in raw_reviews
    }
    businesses = _frame(data.get("businesses", []), BUSINESS_RENAME_MAP)
    users = _frame(data.get("users", []), USER_RENAME_MAP)
    reviews = _frame(
        [{k: v for k, v in r.items() if k != K_CATEGORIES} for r in raw_reviews],
        REVIEW_RENAME_MAP,
    )

    businesses[F_REVIEW_COUNT] = pd.to_numeric(businesses[F_REVIEW_COUNT], errors="coerce").fillna(0).astype(int)
    businesses[F_IS_OPEN] = businesses[F_IS_OPEN].map(lambda v: True if pd.isna(v) else bool(v))
    users[F_REVIEW_COUNT] = pd.to_numeric(users[F_REVIEW_COUNT], errors="coerce").fillna(0).astype(int)
    reviews[F_STARS] = pd.to_numeric(reviews[F_STARS], errors="coerce")
    reviews[F_DATE] = pd.to_datetime(reviews[F_DATE], errors="coerce", utc=True, format="ISO8601").dt.tz_convert(None)
    reviews[F_TYPE] = reviews[F_TYPE].fillna(TYPE_GUEST_TO_HOST)
    return businesses, users, reviews, categories_by_review


def _clean(value):
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    return None if pd.isna(value) else value


def upsert_dimension(session: Session, model, df: pd.DataFrame) -> dict[str, int]:
    """Insert rows whose source_id is new and return source_id -> internal id for all rows."""
    existing = dict(session.execute(select(model.source_id, model.id)).all())
    new_rows = df[~df[F_SOURCE_ID].isin(list(existing))]
    objects = [
        model(**{k: _clean(v) for k, v in rec.items()})
        for rec in new_rows.to_dict("records")
    ]
    if objects:
        session.add_all(objects)
        session.flush()
        existing.update({obj.source_id: obj.id for obj in objects})
    return existing


def reset_tables(session: Session) -> None:
    """Delete all review data, children before parents."""
    for model in (ReviewCategory, Review, Business, User):
        session.execute(delete(model))
    session.flush()


def build_categories(items: list) -> list[ReviewCategory]:
    categories = []
    for item in items:
        name, stars = item.get("name"), item.get("stars")
        if name and stars is not None:
            categories.append(ReviewCategory(category=name, rating=stars))
    return categories


def seed_json(db: Session, json_path: str, reset: bool = False) -> SeedRun:
    """Load businesses, users, reviews and category ratings from a seed file.

    Reviews are append-only: those whose source id already exists are skipped,
    as are reviews pointing at an unknown business or user. New reviews are
    always created unapproved.

    Args:
        db: SQLAlchemy Session.
        json_path: path of the seed JSON ({businesses, users, reviews}).
        reset: delete existing review data first.

    Returns:
        SeedRun: the ledger row recorded for this run.
    """
    file_hash = compute_file_hash(json_path)
    businesses, users, reviews, categories_by_review = load_seed_frames(json_path)
    total_rows = len(reviews)

    if reset:
        logger.info("Clearing existing data...")
        reset_tables(db)

    business_ids = upsert_dimension(db, Business, validate_dimension(businesses, "business"))
    user_ids = upsert_dimension(db, User, validate_dimension(users, "user"))
    logger.info(f"Businesses: {len(business_ids)}, users: {len(user_ids)}")

    reviews = validate_reviews(reviews)
    existing_review_ids = set(db.execute(select(Review.source_id)).scalars().all())
    reviews = reviews[~reviews[F_SOURCE_ID].isin(list(existing_review_ids))]

    review_objs = []
    category_count = 0
    for rec in reviews.to_dict("records"):
        business_id = business_ids.get(rec[F_BUSINESS_SOURCE_ID])
        user_id = user_ids.get(rec[F_USER_SOURCE_ID])
        if business_id is None or user_id is None:
            logger.warning(f"Skipping review {rec[F_SOURCE_ID]}: business or user not found")
            continue
        categories = build_categories(categories_by_review.get(rec[F_SOURCE_ID], []))
        category_count += len(categories)
        review_objs.append(Review(
            source_id=rec[F_SOURCE_ID],
            business_id=business_id,
            user_id=user_id,
            stars=_clean(rec[F_STARS]),
            text=_clean(rec[F_TEXT]),
            date=_clean(rec[F_DATE]),
            channel=_clean(rec[F_CHANNEL]),
            type=rec[F_TYPE],
            approved=False,
            categories=categories,
        ))

    if review_objs:
        db.add_all(review_objs)

    seed_run = SeedRun(**{
        F_SOURCE_PATH: json_path,
        F_TOTAL_ROWS: total_rows,
        F_LOADED_ROWS: len(review_objs),
        F_FILE_HASH: file_hash,
    }, loaded_categories=category_count)
    db.add(seed_run)
    db.commit()
    logger.info(f"Seed complete. Reviews in: {total_rows}, loaded: {len(review_objs)}, categories: {category_count}")
    return seed_run


def run(json_path: str, reset: bool = False) -> int:
    """Seed from `json_path` with a fresh session; returns the number of reviews loaded."""
    configure_logging()
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as session:
        return seed_json(session, json_path, reset=reset).loaded_rows


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the reviews database from a JSON export")
    parser.add_argument("--json", required=True, help="Path to seed-data.json")
    parser.add_argument("--reset", action="store_true", help="Delete existing reviews, businesses and users first")
    args = parser.parse_args()
    run(args.json, reset=args.reset)

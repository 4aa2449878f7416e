import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .exceptions import NotFoundError
from .filters import ReviewFilters, build_filtered_query, validate_filters
from .models import Business, Review, User
from .normalize import review_to_normalized
from .pagination import DEFAULT_SORT, PageRequest, SortSpec, apply_sort, paginate, with_review_relations
from .schemas import PROPERTY_FIELDS, USER_FIELDS
from .utils import project, sa_to_dict, to_float

logger = logging.getLogger(__name__)


def get_reviews(
    db: Session,
    filters: Optional[ReviewFilters] = None,
    sort: Optional[SortSpec] = None,
    page_request: Optional[PageRequest] = None,
    log=None,
) -> dict:
    """Fetch a page of normalized reviews matching the filters.

    Args:
        db: SQLAlchemy Session.
        filters: optional criteria, ANDed together.
        sort: ordering (default submittedAt desc).
        page_request: page/limit (defaults 1/50, limit capped at 100).
        log: request logger; defaults to the module logger.

    Returns:
        dict: {"data": [normalized review, ...], "pagination": {...}}.

    Raises:
        ValidationError: inconsistent filter bounds or page below 1.
    """
    log = log or logger
    filters = filters or ReviewFilters()
    validate_filters(filters)
    log.debug(f"Fetching reviews (filtered={not filters.is_empty()})")

    stmt = build_filtered_query(filters)
    rows, meta = paginate(db, stmt, sort, page_request)
    return {
        "data": [review_to_normalized(r) for r in rows],
        "pagination": meta,
    }


def get_approved_reviews(
    db: Session,
    property_id: Optional[str] = None,
    page_request: Optional[PageRequest] = None,
    log=None,
) -> dict:
    """Approved reviews for public pages, newest first, optionally for one property."""
    filters = ReviewFilters(approved=True, listing_id=property_id or None)
    return get_reviews(db, filters, DEFAULT_SORT, page_request, log=log)


def get_reviews_by_user(
    db: Session,
    user_id: str,
    page_request: Optional[PageRequest] = None,
    log=None,
) -> dict:
    """Reviews written by the user with external id `user_id`, newest first."""
    return get_reviews(db, ReviewFilters(user_id=user_id), DEFAULT_SORT, page_request, log=log)


def get_reviews_by_property(db: Session, log=None) -> dict[str, list[dict]]:
    """Every review, normalized and grouped by propertyId (newest first within a group)."""
    log = log or logger
    stmt = with_review_relations(apply_sort(build_filtered_query(), DEFAULT_SORT))
    rows = db.execute(stmt).scalars().unique().all()

    grouped: dict[str, list[dict]] = {}
    for review in rows:
        normalized = review_to_normalized(review)
        grouped.setdefault(normalized["propertyId"], []).append(normalized)
    log.debug(f"Grouped {len(rows)} reviews into {len(grouped)} properties")
    return grouped


def get_available_channels(db: Session) -> list[str]:
    """Sorted distinct channel labels present in review data."""
    stmt = (
        select(Review.channel)
        .where(Review.channel.is_not(None))
        .distinct()
        .order_by(Review.channel.asc())
    )
    return [ch for ch in db.execute(stmt).scalars().all() if ch]


def get_property_by_source_id(db: Session, source_id: str) -> Optional[dict]:
    """Look up a property by external id.

    Returns:
        dict keyed as schemas.PROPERTY_FIELDS, or None if unknown.
    """
    business = db.execute(
        select(Business).where(Business.source_id == source_id)
    ).scalar_one_or_none()
    if business is None:
        return None
    return project(sa_to_dict(business), PROPERTY_FIELDS)


def get_user_by_source_id(db: Session, source_id: str) -> Optional[dict]:
    """Look up a user by external id.

    Returns:
        dict keyed as schemas.USER_FIELDS, or None if unknown.
    """
    user = db.execute(select(User).where(User.source_id == source_id)).scalar_one_or_none()
    if user is None:
        return None
    row = project(sa_to_dict(user), USER_FIELDS)
    row["averageStars"] = to_float(row["averageStars"])
    return row


def toggle_approval(db: Session, review_id: int, log=None) -> bool:
    """Flip a review's approval flag and persist it.

    Read-modify-write without row locking: two concurrent toggles on the same
    review can lose an update.

    Args:
        db: SQLAlchemy Session.
        review_id: internal review id.
        log: request logger; defaults to the module logger.

    Returns:
        bool: the new approval state.

    Raises:
        NotFoundError: if no review has this id.
    """
    log = log or logger
    review = db.get(Review, review_id)
    if review is None:
        raise NotFoundError("Review", review_id)

    review.approved = not review.approved
    db.commit()

    log.info(f"Review {review_id} {'approved' if review.approved else 'unapproved'}")
    return review.approved

"""
Per-property review statistics.

Enumeration starts from businesses so properties without reviews are still
reported. Review totals and category averages come from two separate grouped
queries; joining reviews to categories before counting would inflate the
review totals.
"""

import logging
from typing import Optional

from sqlalchemy import Float, and_, case, func, select, true
from sqlalchemy.orm import Session

from .models import Business, Review, ReviewCategory
from .utils import round_half_up

logger = logging.getLogger(__name__)


def _review_stats(db: Session, channel: Optional[str]) -> dict:
    on_clause = Review.business_id == Business.id
    if channel:
        on_clause = and_(on_clause, Review.channel == channel)

    stmt = (
        select(
            Business.id,
            func.count(Review.id),
            func.sum(case((Review.approved == true(), 1), else_=0)),
            func.avg(Review.stars, type_=Float),
        )
        .select_from(Business)
        .outerjoin(Review, on_clause)
        .group_by(Business.id)
    )
    return {
        business_id: {
            "totalReviews": int(total or 0),
            "approvedReviews": int(approved or 0),
            "averageRating": round_half_up(avg),
        }
        for business_id, total, approved, avg in db.execute(stmt).all()
    }


def _category_stats(db: Session, channel: Optional[str]) -> dict:
    stmt = (
        select(
            Review.business_id,
            ReviewCategory.category,
            func.avg(ReviewCategory.rating, type_=Float),
        )
        .join(ReviewCategory, ReviewCategory.review_id == Review.id)
        .where(ReviewCategory.rating.is_not(None))
    )
    if channel:
        stmt = stmt.where(Review.channel == channel)
    stmt = stmt.group_by(Review.business_id, ReviewCategory.category)

    averages: dict[int, dict[str, float]] = {}
    for business_id, category, avg in db.execute(stmt).all():
        averages.setdefault(business_id, {})[category] = round_half_up(avg)
    return averages


def get_property_stats(db: Session, channel: Optional[str] = None, log=None) -> list[dict]:
    """Compute review statistics for every business, sorted by name.

    Args:
        db: SQLAlchemy Session.
        channel: restrict counted reviews and categories to one channel.
        log: request logger; defaults to the module logger.

    Returns:
        list of dicts with propertyId, propertyName, averageRating (1 decimal
        or None), totalReviews, approvedReviews and categoryAverages.
    """
    log = log or logger
    businesses = db.execute(
        select(Business.id, Business.source_id, Business.name).order_by(Business.name.asc(), Business.id.asc())
    ).all()
    review_stats = _review_stats(db, channel)
    category_stats = _category_stats(db, channel)

    empty = {"totalReviews": 0, "approvedReviews": 0, "averageRating": None}
    stats = []
    for business_id, source_id, name in businesses:
        review_stat = review_stats.get(business_id, empty)
        stats.append({
            "propertyId": source_id,
            "propertyName": name,
            "averageRating": review_stat["averageRating"],
            "totalReviews": review_stat["totalReviews"],
            "approvedReviews": review_stat["approvedReviews"],
            "categoryAverages": category_stats.get(business_id, {}),
        })

    log.debug(f"Computed stats for {len(stats)} properties (channel={channel or 'all'})")
    return stats

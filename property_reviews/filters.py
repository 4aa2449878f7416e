"""
Review filter criteria and the query builder that turns them into SQL.

build_filtered_query returns an unexecuted Select so callers can count the full
match set and then order/paginate it without restating the criteria.
"""

from dataclasses import dataclass, fields
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

from sqlalchemy import Select, exists, select

from .exceptions import ValidationError
from .models import Business, Review, ReviewCategory, User


@dataclass
class ReviewFilters:
    listing_id: Optional[str] = None
    listing_ids: Optional[list[str]] = None
    property_name: Optional[str] = None
    property_city: Optional[str] = None
    property_state: Optional[str] = None
    property_postal_code: Optional[str] = None
    min_rating: Optional[float] = None
    max_rating: Optional[float] = None
    category: Optional[str] = None
    channel: Optional[str] = None
    type: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    approved: Optional[bool] = None
    user_id: Optional[str] = None

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))


def parse_listing_ids(raw: Union[None, str, Iterable[str]]) -> Optional[list[str]]:
    """Normalise listingIds given as "a,b,c", ["a", "b", "c"] or a mix of both.

    Returns:
        list of trimmed, non-empty ids, or None when nothing is left.
    """
    if raw is None:
        return None
    values = [raw] if isinstance(raw, str) else list(raw)
    ids = [part.strip() for value in values for part in value.split(",")]
    ids = [i for i in ids if i]
    return ids or None


def parse_datetime(value: Optional[str], field: str = "date") -> Optional[datetime]:
    """Parse an ISO-8601 date or date-time into a naive UTC datetime.

    A bare date means midnight UTC of that day.

    Raises:
        ValidationError: if the value cannot be parsed.
    """
    if value is None or not value.strip():
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationError(
            f"Invalid {field} value '{value}', expected ISO-8601 date",
            {"field": field, "value": value},
        ) from None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def validate_filters(filters: ReviewFilters) -> None:
    if (
        filters.min_rating is not None
        and filters.max_rating is not None
        and filters.min_rating > filters.max_rating
    ):
        raise ValidationError(
            "minRating cannot exceed maxRating",
            {"minRating": filters.min_rating, "maxRating": filters.max_rating},
        )
    if filters.date_from and filters.date_to and filters.date_from > filters.date_to:
        raise ValidationError("from cannot be after to")


def build_filtered_query(filters: Optional[ReviewFilters] = None) -> Select:
    """Build the review query with every given criterion ANDed together.

    Args:
        filters: criteria; None or an empty ReviewFilters matches every review.

    Returns:
        sqlalchemy Select over Review, outer-joined to Business and User.
    """
    stmt = (
        select(Review)
        .outerjoin(Business, Review.business_id == Business.id)
        .outerjoin(User, Review.user_id == User.id)
    )
    if filters is None:
        return stmt

    if filters.listing_id:
        stmt = stmt.where(Business.source_id == filters.listing_id)
    if filters.listing_ids:
        stmt = stmt.where(Business.source_id.in_(filters.listing_ids))
    if filters.property_name:
        stmt = stmt.where(Business.name.icontains(filters.property_name, autoescape=True))
    if filters.property_city:
        stmt = stmt.where(Business.city.icontains(filters.property_city, autoescape=True))
    if filters.property_state:
        stmt = stmt.where(Business.state.icontains(filters.property_state, autoescape=True))
    if filters.property_postal_code:
        stmt = stmt.where(Business.postal_code == filters.property_postal_code)
    if filters.min_rating is not None:
        stmt = stmt.where(Review.stars >= filters.min_rating)
    if filters.max_rating is not None:
        stmt = stmt.where(Review.stars <= filters.max_rating)
    if filters.channel:
        stmt = stmt.where(Review.channel == filters.channel)
    if filters.type:
        stmt = stmt.where(Review.type == filters.type)
    if filters.date_from:
        stmt = stmt.where(Review.date >= filters.date_from)
    if filters.date_to:
        stmt = stmt.where(Review.date <= filters.date_to)
    if filters.approved is not None:
        stmt = stmt.where(Review.approved == filters.approved)
    if filters.user_id:
        stmt = stmt.where(User.source_id == filters.user_id)
    if filters.category:
        # EXISTS keeps one row per review however many category rows match
        stmt = stmt.where(
            exists().where(
                ReviewCategory.review_id == Review.id,
                ReviewCategory.category == filters.category,
            )
        )
    return stmt

"""
Ordering and page slicing for review queries.
"""

import math
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session, contains_eager, selectinload

from .config import DEFAULT_PAGE_LIMIT, MAX_PAGE, MAX_PAGE_LIMIT
from .constants import SORT_DIRECTIONS, SORT_OVERALL_RATING, SORT_PROPERTY_NAME, SORT_SUBMITTED_AT
from .exceptions import ValidationError
from .models import Business, Review

SORT_COLUMNS = {
    SORT_SUBMITTED_AT: Review.date,
    SORT_OVERALL_RATING: Review.stars,
    SORT_PROPERTY_NAME: Business.name,
}


@dataclass
class SortSpec:
    field: str = SORT_SUBMITTED_AT
    direction: str = "desc"

    def __post_init__(self):
        if self.field not in SORT_COLUMNS:
            raise ValidationError(
                f"Unsupported sort field '{self.field}'",
                {"allowed": list(SORT_COLUMNS)},
            )
        self.direction = (self.direction or "desc").lower()
        if self.direction not in SORT_DIRECTIONS:
            raise ValidationError(
                f"Unsupported sort direction '{self.direction}'",
                {"allowed": list(SORT_DIRECTIONS)},
            )


DEFAULT_SORT = SortSpec(SORT_SUBMITTED_AT, "desc")


@dataclass
class PageRequest:
    page: Optional[int] = None
    limit: Optional[int] = None


def normalize_page_request(page_request: Optional[PageRequest]) -> tuple[int, int]:
    """Resolve defaults and bounds for a page request.

    Returns:
        (page, limit) with page in [1, MAX_PAGE] and limit clamped to [1, MAX_PAGE_LIMIT].

    Raises:
        ValidationError: if page is below 1 or above MAX_PAGE.
    """
    page_request = page_request or PageRequest()
    page = 1 if page_request.page is None else page_request.page
    if page < 1:
        raise ValidationError("page must be greater than or equal to 1", {"page": page})
    if page > MAX_PAGE:
        raise ValidationError(f"page must be less than or equal to {MAX_PAGE}", {"page": page})
    limit = DEFAULT_PAGE_LIMIT if page_request.limit is None else page_request.limit
    limit = max(1, min(limit, MAX_PAGE_LIMIT))
    return page, limit


def apply_sort(stmt: Select, sort: Optional[SortSpec] = None) -> Select:
    sort = sort or DEFAULT_SORT
    column = SORT_COLUMNS[sort.field]
    if sort.direction == "asc":
        return stmt.order_by(column.asc(), Review.id.asc())
    return stmt.order_by(column.desc(), Review.id.desc())


def with_review_relations(stmt: Select) -> Select:
    """Populate business/user from the existing joins and batch-load categories."""
    return stmt.options(
        contains_eager(Review.business),
        contains_eager(Review.user),
        selectinload(Review.categories),
    )


def count_rows(db: Session, stmt: Select) -> int:
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    return db.execute(count_stmt).scalar_one()


def paginate(
    db: Session,
    stmt: Select,
    sort: Optional[SortSpec] = None,
    page_request: Optional[PageRequest] = None,
):
    """Count, order and slice a filtered review query.

    Args:
        db: SQLAlchemy Session.
        stmt: unpaginated Select from filters.build_filtered_query.
        sort: sort specification (default submittedAt desc).
        page_request: requested page/limit.

    Returns:
        tuple: (list of Review rows with business, user and categories loaded,
                pagination dict with page, limit, total, totalPages).
    """
    page, limit = normalize_page_request(page_request)
    total = count_rows(db, stmt)

    page_stmt = (
        with_review_relations(apply_sort(stmt, sort))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    rows = db.execute(page_stmt).scalars().unique().all()

    meta = {
        "page": page,
        "limit": limit,
        "total": total,
        "totalPages": math.ceil(total / limit),
    }
    return rows, meta

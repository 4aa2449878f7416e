from typing import Annotated, Literal, Optional

from fastapi import APIRouter, Depends, Path, Query, Request
from sqlalchemy.orm import Session

from .config import MAX_PAGE
from .constants import MAX_DB_INTEGER
from .crud import (
    get_approved_reviews,
    get_available_channels,
    get_property_by_source_id,
    get_reviews,
    get_reviews_by_property,
    get_reviews_by_user,
    get_user_by_source_id,
    toggle_approval,
)
from .database import get_db
from .filters import ReviewFilters, parse_datetime, parse_listing_ids, validate_filters
from .logging_utils import RequestContext
from .pagination import PageRequest, SortSpec
from .stats import get_property_stats

router = APIRouter()
reviews_router = APIRouter(prefix="/api/reviews", tags=["reviews"])


def get_request_context(request: Request) -> RequestContext:
    """Build the per-request context from the trace id set by the tracing middleware."""
    return RequestContext.create(getattr(request.state, "trace_id", None))


def validate_review_filters(
    listing_id: Annotated[Optional[str], Query(alias="listingId")] = None,
    listing_ids: Annotated[Optional[list[str]], Query(alias="listingIds")] = None,
    property_name: Annotated[Optional[str], Query(alias="propertyName")] = None,
    property_city: Annotated[Optional[str], Query(alias="propertyCity")] = None,
    property_state: Annotated[Optional[str], Query(alias="propertyState")] = None,
    property_postal_code: Annotated[Optional[str], Query(alias="propertyPostalCode")] = None,
    min_rating: Annotated[Optional[float], Query(alias="minRating")] = None,
    max_rating: Annotated[Optional[float], Query(alias="maxRating")] = None,
    category: Optional[str] = None,
    channel: Optional[str] = None,
    type: Optional[Literal["guest-to-host", "host-to-guest"]] = None,
    date_from: Annotated[Optional[str], Query(alias="from")] = None,
    date_to: Annotated[Optional[str], Query(alias="to")] = None,
    approved: Optional[bool] = None,
) -> ReviewFilters:
    """Collect and normalise the review filter query parameters.

    Empty strings are treated as absent. listingIds may be repeated and/or
    comma-separated.

    Returns:
        ReviewFilters: validated criteria.
    """
    filters = ReviewFilters(
        listing_id=listing_id or None,
        listing_ids=parse_listing_ids(listing_ids),
        property_name=property_name or None,
        property_city=property_city or None,
        property_state=property_state or None,
        property_postal_code=property_postal_code or None,
        min_rating=min_rating,
        max_rating=max_rating,
        category=category or None,
        channel=channel or None,
        type=type,
        date_from=parse_datetime(date_from, "from"),
        date_to=parse_datetime(date_to, "to"),
        approved=approved,
    )
    validate_filters(filters)
    return filters


def page_params(
    page: Annotated[Optional[int], Query(ge=1, le=MAX_PAGE)] = None,
    limit: Optional[int] = None,
) -> PageRequest:
    return PageRequest(page=page, limit=limit)


def sort_params(
    sort_by: Annotated[
        Optional[Literal["submittedAt", "overallRating", "propertyName"]], Query(alias="sortBy")
    ] = None,
    sort_dir: Annotated[Optional[Literal["asc", "desc"]], Query(alias="sortDir")] = None,
) -> Optional[SortSpec]:
    # sortDir alone keeps the default newest-first order
    if sort_by is None:
        return None
    return SortSpec(field=sort_by, direction=sort_dir or "desc")


def reviews_envelope(result: dict, ctx: RequestContext) -> dict:
    return {
        "status": "success",
        "count": len(result["data"]),
        "reviews": result["data"],
        "pagination": result["pagination"],
        "traceId": ctx.trace_id,
    }


@router.get("/health")
def health():
    """Healthcheck endpoint.

    Returns:
        dict: simple status payload.
    """
    return {"status": "ok"}


@reviews_router.get("/hostaway")
def list_reviews(
    filters: ReviewFilters = Depends(validate_review_filters),
    sort: Optional[SortSpec] = Depends(sort_params),
    page_request: PageRequest = Depends(page_params),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Paginated normalized reviews for the manager dashboard.

    Args:
        filters: dependency-provided filter criteria.
        sort: sortBy/sortDir (default submittedAt desc).
        page_request: page/limit (limit capped at 100).
        ctx: request context carrying the trace logger.
        db: DB session dependency.

    Returns:
        dict: {status, count, reviews, pagination, traceId}.
    """
    result = get_reviews(db, filters, sort, page_request, log=ctx.log)
    return reviews_envelope(result, ctx)


@reviews_router.get("/properties")
def property_stats(
    channel: Optional[str] = None,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Statistics for every property, including those without reviews."""
    stats = get_property_stats(db, channel or None, log=ctx.log)
    return {"status": "success", "properties": stats, "traceId": ctx.trace_id}


@reviews_router.get("/by-property")
def reviews_grouped_by_property(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    grouped = get_reviews_by_property(db, log=ctx.log)
    return {"status": "success", "properties": grouped, "traceId": ctx.trace_id}


@reviews_router.get("/channels")
def channels(
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    return {"status": "success", "channels": get_available_channels(db), "traceId": ctx.trace_id}


@reviews_router.get("/property/{property_id}")
def property_info(
    property_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Property identity and metadata; unknown ids give property=None, not an error."""
    prop = get_property_by_source_id(db, property_id)
    body = {"status": "success", "property": prop, "traceId": ctx.trace_id}
    if prop is None:
        ctx.log.info(f"Property {property_id} not found")
        body["message"] = "Property not found"
    return body


@reviews_router.get("/user/{user_id}")
def user_info(
    user_id: str,
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """User identity and denormalized review counters; unknown ids give user=None."""
    user = get_user_by_source_id(db, user_id)
    body = {"status": "success", "user": user, "traceId": ctx.trace_id}
    if user is None:
        ctx.log.info(f"User {user_id} not found")
        body["message"] = "User not found"
    return body


@reviews_router.get("/user/{user_id}/reviews")
def reviews_by_user(
    user_id: str,
    page_request: PageRequest = Depends(page_params),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    result = get_reviews_by_user(db, user_id, page_request, log=ctx.log)
    return reviews_envelope(result, ctx)


@reviews_router.get("/approved")
def approved_reviews(
    page_request: PageRequest = Depends(page_params),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Approved reviews across all properties, for public display."""
    result = get_approved_reviews(db, None, page_request, log=ctx.log)
    return reviews_envelope(result, ctx)


@reviews_router.get("/approved/{property_id}")
def approved_reviews_for_property(
    property_id: str,
    page_request: PageRequest = Depends(page_params),
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    result = get_approved_reviews(db, property_id, page_request, log=ctx.log)
    return reviews_envelope(result, ctx)


@reviews_router.patch("/{review_id}/approve")
def approve_review(
    review_id: Annotated[int, Path(ge=-MAX_DB_INTEGER, le=MAX_DB_INTEGER)],
    ctx: RequestContext = Depends(get_request_context),
    db: Session = Depends(get_db),
):
    """Toggle a review's approval flag.

    Returns:
        dict: {status, reviewId, approved, traceId}.

    Raises:
        NotFoundError: unknown review id (404).
    """
    approved = toggle_approval(db, review_id, log=ctx.log)
    return {"status": "success", "reviewId": review_id, "approved": approved, "traceId": ctx.trace_id}


router.include_router(reviews_router)

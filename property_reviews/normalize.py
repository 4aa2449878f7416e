from .constants import ANONYMOUS_GUEST_NAME, UNKNOWN_BUSINESS_NAME
from .models import Review
from .utils import to_float, to_iso


def review_to_normalized(review: Review) -> dict:
    """Flatten a Review and its loaded business, user and categories for clients.

    Args:
        review: Review ORM instance with relations loaded.

    Returns:
        dict: normalized review keyed as schemas.NORMALIZED_REVIEW_KEYS.
    """
    business = review.business
    user = review.user

    # Later rows win when a label repeats
    categories = {}
    for cat in review.categories or []:
        categories[cat.category] = to_float(cat.rating)

    return {
        "id": review.id,
        "propertyId": business.source_id if business and business.source_id else f"business-{review.business_id}",
        "propertyName": business.name if business and business.name else UNKNOWN_BUSINESS_NAME,
        "channel": review.channel,
        "type": review.type,
        "overallRating": to_float(review.stars),
        "categories": categories,
        "comment": review.text,
        "guestName": user.name if user and user.name else ANONYMOUS_GUEST_NAME,
        "userId": user.source_id if user else None,
        "submittedAt": to_iso(review.date),
        "approved": bool(review.approved),
    }

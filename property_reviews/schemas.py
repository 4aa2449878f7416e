# Client-facing key -> ORM column attribute, in response order
PROPERTY_FIELDS = {
    "propertyId": "source_id",
    "propertyName": "name",
    "address": "address",
    "city": "city",
    "state": "state",
    "postalCode": "postal_code",
    "categories": "categories",
}

USER_FIELDS = {
    "userId": "source_id",
    "userName": "name",
    "reviewCount": "review_count",
    "averageStars": "average_stars",
}

NORMALIZED_REVIEW_KEYS = [
    "id", "propertyId", "propertyName", "channel", "type", "overallRating",
    "categories", "comment", "guestName", "userId", "submittedAt", "approved",
]

PROPERTY_STATS_KEYS = [
    "propertyId", "propertyName", "averageRating",
    "totalReviews", "approvedReviews", "categoryAverages",
]

PAGINATION_KEYS = ["page", "limit", "total", "totalPages"]

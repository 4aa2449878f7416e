# --- Seed file keys (camelCase, as exported upstream) ---
K_SOURCE_ID = "sourceId"
K_NAME = "name"
K_ADDRESS = "address"
K_CITY = "city"
K_STATE = "state"
K_POSTAL_CODE = "postalCode"
K_LATITUDE = "latitude"
K_LONGITUDE = "longitude"
K_STARS = "stars"
K_REVIEW_COUNT = "reviewCount"
K_IS_OPEN = "isOpen"
K_CATEGORIES = "categories"
K_AVERAGE_STARS = "averageStars"
K_SOURCE_USER_ID = "sourceUserId"
K_SOURCE_BUSINESS_ID = "sourceBusinessId"
K_CHANNEL = "channel"
K_TEXT = "text"
K_DATE = "date"
K_TYPE = "type"

# --- Normalized field names (internal schema) ---
F_SOURCE_ID = "source_id"
F_NAME = "name"
F_ADDRESS = "address"
F_CITY = "city"
F_STATE = "state"
F_POSTAL_CODE = "postal_code"
F_LATITUDE = "latitude"
F_LONGITUDE = "longitude"
F_STARS = "stars"
F_REVIEW_COUNT = "review_count"
F_IS_OPEN = "is_open"
F_CATEGORIES = "categories"
F_AVERAGE_STARS = "average_stars"
F_USER_SOURCE_ID = "user_source_id"
F_BUSINESS_SOURCE_ID = "business_source_id"
F_CHANNEL = "channel"
F_TEXT = "text"
F_DATE = "date"
F_TYPE = "type"
F_SOURCE_PATH = "source_path"
F_TOTAL_ROWS = "total_rows"
F_LOADED_ROWS = "loaded_rows"
F_FILE_HASH = "file_hash"

BUSINESS_RENAME_MAP = {
    K_SOURCE_ID: F_SOURCE_ID,
    K_NAME: F_NAME,
    K_ADDRESS: F_ADDRESS,
    K_CITY: F_CITY,
    K_STATE: F_STATE,
    K_POSTAL_CODE: F_POSTAL_CODE,
    K_LATITUDE: F_LATITUDE,
    K_LONGITUDE: F_LONGITUDE,
    K_STARS: F_STARS,
    K_REVIEW_COUNT: F_REVIEW_COUNT,
    K_IS_OPEN: F_IS_OPEN,
    K_CATEGORIES: F_CATEGORIES,
}

USER_RENAME_MAP = {
    K_SOURCE_ID: F_SOURCE_ID,
    K_NAME: F_NAME,
    K_REVIEW_COUNT: F_REVIEW_COUNT,
    K_AVERAGE_STARS: F_AVERAGE_STARS,
}

REVIEW_RENAME_MAP = {
    K_SOURCE_ID: F_SOURCE_ID,
    K_SOURCE_USER_ID: F_USER_SOURCE_ID,
    K_SOURCE_BUSINESS_ID: F_BUSINESS_SOURCE_ID,
    K_STARS: F_STARS,
    K_CHANNEL: F_CHANNEL,
    K_TEXT: F_TEXT,
    K_DATE: F_DATE,
    K_TYPE: F_TYPE,
}

# --- Review vocabulary ---
TYPE_GUEST_TO_HOST = "guest-to-host"
TYPE_HOST_TO_GUEST = "host-to-guest"
REVIEW_TYPES = (TYPE_GUEST_TO_HOST, TYPE_HOST_TO_GUEST)

MIN_RATING = 0
MAX_RATING = 5

# --- Sorting ---
SORT_SUBMITTED_AT = "submittedAt"
SORT_OVERALL_RATING = "overallRating"
SORT_PROPERTY_NAME = "propertyName"
SORT_DIRECTIONS = ("asc", "desc")

# --- Fallbacks used when a relation is missing ---
UNKNOWN_BUSINESS_NAME = "Unknown Business"
ANONYMOUS_GUEST_NAME = "Anonymous"

# --- Table names ---
TBL_USERS = "users"
TBL_BUSINESSES = "businesses"
TBL_REVIEWS = "reviews"
TBL_REVIEW_CATEGORIES = "review_categories"
TBL_SEED_RUNS = "seed_runs"

# Largest value a 64-bit INTEGER column can hold
MAX_DB_INTEGER = 2**63 - 1

TRACE_HEADER = "X-Trace-Id"

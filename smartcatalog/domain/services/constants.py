# Constants for the search pipeline.
MAX_QUERY_LENGTH = 500   # longer queries are rejected
HISTORY_QUERY_MAX_LENGTH = 500  # stored query text is truncated to this
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

# Recommendation output constraints
MAX_RECOMMENDATIONS = 5
MIN_RELEVANCE_SCORE = 1
MAX_RELEVANCE_SCORE = 10
PROMPT_MIN_SCORE = 5  # the model is told to skip anything scoring lower
MIN_EXPLANATION_LENGTH = 10

# Prompt compaction
PROMPT_DESC_CHARS = 200
KEY_FEATURE_ATTRIBUTES = (
    "brand", "color", "material", "storage", "processor",
    "memory", "type", "style", "capacity",
)

# Liveness probe
HEALTH_CHECK_REPLY = "CONNECTION_OK"

# Seconds a rate-limited caller is asked to wait
RATE_LIMIT_RETRY_AFTER_S = 60

# Sort keys
SORT_RELEVANCE = "relevance"
SORT_PRICE_ASC = "price_asc"
SORT_PRICE_DESC = "price_desc"
SORT_NAME_ASC = "name_asc"
SORT_NAME_DESC = "name_desc"
SORT_NEWEST = "newest"
SORT_OLDEST = "oldest"

ALL_SORT_KEYS = {
    SORT_RELEVANCE, SORT_PRICE_ASC, SORT_PRICE_DESC,
    SORT_NAME_ASC, SORT_NAME_DESC, SORT_NEWEST, SORT_OLDEST,
}

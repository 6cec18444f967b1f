"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_LIST_LIMIT = 200
DEFAULT_REVIEW_LIMIT = 500
DEFAULT_MAX_POINTS = 100
DEFAULT_STORE_TIMEOUT_SECONDS = 10

PAYMENT_SLIP_BUCKET = "payment-slips"
USER_ID_HEADER = "X-User-Id"

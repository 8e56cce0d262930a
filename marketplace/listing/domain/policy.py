"""
Ranking policy constants for the product listing engine.

Weight derivation and interleaving both read MIN_WEIGHT_EPS from here; every
other tunable of the pipeline lives next to it. Values can be overridden per
deployment through ``settings.LISTING`` (see ``listing_setting``).
"""

from django.conf import settings

# ----- Plan metadata -----
PLAN_CACHE_TTL_SECONDS = 5 * 60
MIN_WEIGHT_EPS = 0.01
MAX_IDS_PER_CHUNK = 1000
MAX_BUSINESS_IDS = 20000
UNKNOWN_PLAN = "UNKNOWN"

# ----- Scoring -----
PRIORITY_COEFFICIENT = 1.0
RATING_COEFFICIENT = 0.2
RECENCY_COEFFICIENT = 0.1
DEFAULT_AGE_DAYS = 30.0
MIN_AGE_DAYS = 1.0
SECONDS_PER_DAY = 86400.0

# ----- Request clamps: (low, high, default) -----
PAGE_BOUNDS = (1, 100000, 1)
PAGE_SIZE_BOUNDS = (1, 60, 24)
MAX_PER_VENDOR_BOUNDS = (0, 50, 3)
SIMILAR_PAGE_SIZE_DEFAULT = 8

# ----- Scan bounds -----
MIN_FETCH_LIMIT = 50
FETCH_LIMIT_PER_PAGE_ITEM = 10
MAX_SCAN_LIMIT = 1000
EXPLAIN_SCAN_BOUNDS = (100, 5000, 2000)
EXPLAIN_RESULT_BOUNDS = (100, 5000, 1000)
QUERY_TIMEOUT_MS = 4000

# ----- Removal reasons -----
REASON_PRODUCT_UNPUBLISHED = "product_unpublished"
REASON_PRODUCT_DELETED = "product_deleted"
REASON_NO_ELIGIBLE_VARIANTS = "no_eligible_variants"
REASON_VARIANT_UNPUBLISHED = "variant_unpublished"
REASON_VARIANT_DELETED = "variant_deleted"
REASON_VARIANT_NO_INVENTORY = "variant_no_inventory_and_no_backorder"
REASON_BUSINESS_INACTIVE = "business_inactive_or_missing"
REASON_NO_ACTIVE_SUBSCRIPTION = "no_active_subscription"
REASON_PER_VENDOR_CAP = "per_vendor_cap"
REASON_PAGE_EXCLUDED = "page_excluded"


def listing_setting(name: str, default):
    """Read an override from ``settings.LISTING``, falling back to the module default."""
    return getattr(settings, "LISTING", {}).get(name, default)


def clip(value, low, high, default):
    """Clamp ``value`` into [low, high]; non-numeric input yields ``default``."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if number != number or number in (float("inf"), float("-inf")):
        return default
    return int(min(high, max(low, number)))


def fetch_limit_for(page_size: int) -> int:
    """Upstream headroom: enough candidates for interleave, cap and backfill."""
    return max(MIN_FETCH_LIMIT, page_size * FETCH_LIMIT_PER_PAGE_ITEM)


def scan_limit_for(fetch_limit) -> int:
    hard_limit = max(MIN_FETCH_LIMIT, int(fetch_limit or 0) or 240)
    return min(max(MIN_FETCH_LIMIT, hard_limit), MAX_SCAN_LIMIT)

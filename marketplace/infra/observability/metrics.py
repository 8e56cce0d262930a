from prometheus_client import Counter, Histogram


# Listing Metrics
listing_requests_total = Counter(
    "marketplace_listing_requests_total", "Ranked listing requests", ["endpoint", "status"]
)
listing_duration = Histogram(
    "marketplace_listing_duration_seconds",
    "Ranked listing pipeline time",
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, float("inf")],
)
listing_cap_relaxed_total = Counter(
    "marketplace_listing_cap_relaxed_total", "Items pulled back from per-vendor overflow to fill a page"
)
listing_explain_failures_total = Counter(
    "marketplace_listing_explain_failures_total", "Debug explain computations that failed and were omitted"
)

# Plan metadata
plan_meta_refresh_total = Counter(
    "marketplace_plan_meta_refresh_total", "Plan metadata lookups through the TTL cache", ["outcome"]
)

"""Prometheus metrics for the bin collection lookup.

All custom metrics use the 'binday_' prefix to avoid conflicts
with other applications in a shared observability stack.
"""

from prometheus_client import Counter, Info

APP_INFO = Info(
    "binday_app",
    "Bin collection day application info"
)
APP_INFO.info({"version": "1.0.0", "name": "binday"})

CACHE_LOOKUPS_TOTAL = Counter(
    "binday_cache_lookups_total",
    "Property cache lookups by outcome",
    ["result"],  # hit, miss, stale, error
)

UPSTREAM_FETCH_TOTAL = Counter(
    "binday_upstream_fetch_total",
    "Calls to the council web service",
    ["endpoint", "status"],  # endpoint: search, job_list; status: ok, error
)

PARSE_ERRORS_TOTAL = Counter(
    "binday_parse_errors_total",
    "Council responses that could not be parsed",
    ["endpoint"],
)

BACKGROUND_REFRESH_TOTAL = Counter(
    "binday_background_refresh_total",
    "Background schedule refreshes by outcome",
    ["status"],  # completed, failed
)

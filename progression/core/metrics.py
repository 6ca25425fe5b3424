"""Prometheus metric inventory.

Every metric the service exposes is defined here; the modules that own
the behavior import the metric and increment it at the point of action.
Scraped from GET /metrics.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, route, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # Dashboard assembly fans out to several gateway reads, so the upper
    # buckets matter more here than for a plain CRUD service.
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Engine metrics
# ---------------------------------------------------------------------------

GATEWAY_FAILURES = Counter(
    "gateway_failures_total",
    "Event store / content calls that failed",
    ["operation", "reason"],  # reason: "timeout" | "unavailable"
)

STREAK_RECOMPUTES = Counter(
    "streak_recomputes_total",
    "Streak recomputations by resulting state",
    ["state"],  # "hot" | "cold"
)

STREAK_FREEZES = Counter(
    "streak_freezes_total",
    "Streak freeze requests by outcome",
    ["outcome"],  # "consumed" | "already_frozen" | "none_available"
)

PROBLEM_ATTEMPTS = Counter(
    "problem_attempts_total",
    "Recorded problem attempts",
    ["problem_type", "result"],  # result: "correct" | "incorrect" | "revealed"
)

XP_AWARDED = Counter(
    "xp_awarded_total",
    "Experience points awarded for problem attempts",
    ["problem_type"],
)

AUTHORING_WARNINGS = Counter(
    "authoring_warnings_total",
    "Authoring inconsistencies detected while projecting",
    ["kind"],
)

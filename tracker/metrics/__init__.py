# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Prometheus metric objects. HTTP metrics are fed by the middleware,
business metrics by the service layer.
"""

from prometheus_client import Counter, Gauge, Histogram

# ── HTTP Metrics (used by middleware) ──
REQUEST_COUNT = Counter(
    "tracker_requests_total",
    "Total HTTP requests to the project tracker",
    ["method", "endpoint", "status"],
)
REQUEST_LATENCY = Histogram(
    "tracker_request_duration_seconds",
    "Request latency in seconds",
    ["method", "endpoint"],
)
HTTP_ERRORS = Counter(
    "tracker_http_errors_total",
    "Total HTTP error responses",
    ["method", "endpoint", "status"],
)

# ── Business Metrics (updated by service layer only) ──
PROJECTS_CREATED = Counter(
    "tracker_projects_created_total",
    "Total projects created",
)
PROJECTS_DESTROYED = Counter(
    "tracker_projects_destroyed_total",
    "Total projects destroyed",
)
ACTIVE_PROJECTS = Gauge(
    "tracker_active_projects",
    "Number of projects currently stored",
)
EVENTS_RECORDED = Counter(
    "tracker_events_recorded_total",
    "Audit events recorded",
    ["event_type"],
)
TICKETS_ISSUED = Counter(
    "tracker_ticket_numbers_issued_total",
    "Ticket numbers issued",
)
MEMBERSHIP_CHANGES = Counter(
    "tracker_membership_changes_total",
    "Membership mutations applied",
    ["operation"],
)
REASSIGNMENTS_REJECTED = Counter(
    "tracker_reassignments_rejected_total",
    "Function reassignments rejected",
    ["reason"],
)
VALIDATION_FAILURES = Counter(
    "tracker_validation_failures_total",
    "Project saves rejected by validation",
    ["field"],
)
TAG_RECOMPUTES = Counter(
    "tracker_tag_recomputes_total",
    "Full tag-count recomputations",
)
ADMIN_FLAG_REWRITES = Counter(
    "tracker_admin_flag_rewrites_total",
    "Registry-wide admin flag rewrites",
)

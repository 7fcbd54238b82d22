"""Domain metrics for the data lifecycle.

HTTP metrics live in ``datavault.monitoring.middleware``.
"""

from prometheus_client import Counter

AUDIT_WRITE_FAILURES_TOTAL = Counter(
    "datavault_audit_write_failures_total",
    "Audit entries that could not be recorded (primary operation kept)",
    ["action"],
)

LIFECYCLE_OPERATIONS_TOTAL = Counter(
    "datavault_lifecycle_operations_total",
    "Completed consent and data lifecycle operations",
    ["operation"],
)

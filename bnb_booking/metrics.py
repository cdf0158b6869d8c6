"""
Prometheus metrics for calendar syncs, reservations, pricing and payments.

Metrics are exposed via the /metrics endpoint for scraping by Prometheus.

Metric Types:
    - Counter: Cumulative metrics that only increase (e.g., syncs run)
    - Histogram: Observations bucketed by value (e.g., feed fetch latency)
    - Gauge: Point-in-time value that can go up or down (e.g., active rooms)

Example:
    >>> from bnb_booking.metrics import calendar_syncs, sync_duration
    >>> with sync_duration.labels(platform="airbnb").time():
    ...     result = sync_external_calendar(engine, "room-1", "airbnb")
    >>> calendar_syncs.labels(platform="airbnb", status="success").inc()
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Calendar Sync Metrics
# =============================================================================

calendar_syncs = Counter(
    "bnb_calendar_syncs_total",
    "Total external calendar sync attempts",
    ["platform", "status"],
)
"""
Counter for calendar sync attempts.

Labels:
    platform: airbnb or expedia
    status: success, partial or error
"""

sync_duration = Histogram(
    "bnb_calendar_sync_duration_seconds",
    "Duration of a single room/platform calendar sync in seconds",
    ["platform"],
    buckets=(0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, float("inf")),
)
"""
Histogram for calendar sync duration, fetch and ledger replacement included.

Labels:
    platform: airbnb or expedia
"""

nights_blocked = Counter(
    "bnb_calendar_nights_blocked_total",
    "Ledger nights written from external calendar feeds",
    ["platform"],
)

feed_fetch_latency = Histogram(
    "bnb_calendar_feed_fetch_seconds",
    "External calendar feed fetch latency in seconds",
    ["status_code"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, float("inf")),
)
"""
Histogram for feed fetch latency.

Labels:
    status_code: HTTP status code, or "error" for transport failures
"""

scheduled_runs = Counter(
    "bnb_scheduled_sync_runs_total",
    "Completed scheduled sync runs",
    ["job"],
)
"""
Counter for scheduler runs.

Labels:
    job: hourly_sync or weekly_cleanup
"""

# =============================================================================
# Reservation Metrics
# =============================================================================

reservation_transitions = Counter(
    "bnb_reservation_transitions_total",
    "Reservation lifecycle transitions",
    ["transition"],
)
"""
Counter for reservation lifecycle events.

Labels:
    transition: created, confirmed, duplicate_confirm, failed, cancelled, recheck_conflict
"""

ledger_commit_failures = Counter(
    "bnb_ledger_commit_failures_total",
    "Ledger writes that failed after a reservation was confirmed",
)
"""Counter for post-confirmation ledger writes that need data repair."""

refund_obligations = Counter(
    "bnb_refund_obligations_total",
    "Paid reservations cancelled by the confirmation-time availability re-check",
    ["refund_status"],
)
"""
Counter for refunds owed after a failed re-check.

Labels:
    refund_status: refunded or pending (the refund call failed)
"""

price_quotes = Counter(
    "bnb_price_quotes_total",
    "Stay price calculations performed",
)

# =============================================================================
# Payment Metrics
# =============================================================================

webhook_events = Counter(
    "bnb_payment_webhook_events_total",
    "Payment webhook events received",
    ["event_type", "outcome"],
)
"""
Counter for payment webhook deliveries.

Labels:
    event_type: Processor event type (e.g., checkout.session.completed)
    outcome: processed, ignored, rejected or error
"""

# =============================================================================
# System Metrics
# =============================================================================

active_rooms = Gauge(
    "bnb_active_rooms",
    "Number of active rooms seen by the last scheduled sync",
)

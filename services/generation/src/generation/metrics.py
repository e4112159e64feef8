"""Prometheus metrics for the generation service."""
from prometheus_client import Counter, Gauge, Histogram

GENERATION_REQUESTS = Counter(
    "generation_requests_total",
    "Generation requests by terminal outcome",
    ["outcome"],
)
GENERATION_DURATION = Histogram(
    "generation_duration_seconds",
    "Time from start to terminal event",
)
GENERATION_IN_FLIGHT = Gauge(
    "generation_in_flight",
    "Generation requests currently streaming",
)

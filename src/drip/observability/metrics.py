"""Prometheus metrics for DRIP faucet.

Metrics:
- drip_requests_total: Counter of faucet requests by token and outcome
- drip_tokens_distributed_total: Counter of tokens distributed (display units)
- drip_cooldown_entries: Gauge of tracked (address, token) pairs
- drip_cooldown_evictions_total: Counter of entries removed by the sweep
- drip_request_duration_seconds: Histogram of request duration
- drip_transaction_duration_seconds: Histogram of transaction submission duration
"""

from prometheus_client import Counter, Gauge, Histogram

# Counters
REQUESTS = Counter(
    "drip_requests_total",
    "Total number of faucet requests",
    ["token", "status"],
)

TOKENS_DISTRIBUTED = Counter(
    "drip_tokens_distributed_total",
    "Total tokens distributed",
    ["token"],
)

COOLDOWN_EVICTIONS = Counter(
    "drip_cooldown_evictions_total",
    "Cooldown entries evicted by the sweep",
)

# Gauges
COOLDOWN_ENTRIES = Gauge(
    "drip_cooldown_entries",
    "Number of (address, token) pairs currently tracked",
)

# Histograms
REQUEST_DURATION = Histogram(
    "drip_request_duration_seconds",
    "Request processing duration",
    ["token"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

TRANSACTION_DURATION = Histogram(
    "drip_transaction_duration_seconds",
    "Blockchain transaction submission duration",
    ["kind"],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

"""Observability module for DRIP faucet."""

from .health import ChainHealthCheck, HealthCheck, HealthStatus, run_checks
from .logging import (
    clear_request_id,
    configure_logging,
    get_logger,
    new_request_id,
    set_request_id,
)
from .metrics import (
    COOLDOWN_ENTRIES,
    COOLDOWN_EVICTIONS,
    REQUEST_DURATION,
    REQUESTS,
    TOKENS_DISTRIBUTED,
    TRANSACTION_DURATION,
)

__all__ = [
    # Health
    "ChainHealthCheck",
    "HealthCheck",
    "HealthStatus",
    "run_checks",
    # Logging
    "clear_request_id",
    "configure_logging",
    "get_logger",
    "new_request_id",
    "set_request_id",
    # Metrics
    "COOLDOWN_ENTRIES",
    "COOLDOWN_EVICTIONS",
    "REQUEST_DURATION",
    "REQUESTS",
    "TOKENS_DISTRIBUTED",
    "TRANSACTION_DURATION",
]

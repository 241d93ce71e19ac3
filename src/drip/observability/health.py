"""Readiness checks for DRIP faucet.

The web layer exposes these as:
- /health: liveness, always 200 while the event loop runs
- /ready: Readiness probe (200 if every chain endpoint answers)
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from drip.blockchain import ChainClient

logger = logging.getLogger(__name__)


class HealthStatus(Enum):
    """Outcome of a probe."""

    OK = "ok"
    ERROR = "error"
    NOT_READY = "not_ready"


@dataclass
class CheckResult:
    """Outcome of one named readiness check."""

    name: str
    status: HealthStatus
    message: str | None = None


@dataclass
class HealthResult:
    """Aggregate served by /ready."""

    status: HealthStatus
    checks: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        """Response body for the probe endpoint."""
        result = {"status": self.status.value}
        if self.checks:
            result["checks"] = self.checks
        return result


class HealthCheck(ABC):
    """A single readiness condition."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Key under ``checks`` in the /ready body."""
        ...

    @abstractmethod
    async def check(self) -> CheckResult:
        """Evaluate the condition once."""
        ...


class ChainHealthCheck(HealthCheck):
    """Checks that a chain's RPC endpoint is reachable.

    Parameters
    ----------
    client : ChainClient
        Client for the chain to probe.
    """

    def __init__(self, client: ChainClient):
        self._client = client

    @property
    def name(self) -> str:
        return f"rpc_{self._client.name}"

    async def check(self) -> CheckResult:
        connected = await asyncio.to_thread(lambda: self._client.connected)
        if connected:
            return CheckResult(name=self.name, status=HealthStatus.OK)
        return CheckResult(
            name=self.name,
            status=HealthStatus.ERROR,
            message="RPC endpoint unreachable",
        )


async def run_checks(checks: list[HealthCheck]) -> HealthResult:
    """Evaluate ``checks`` in order; any failure makes the result not ready.

    Parameters
    ----------
    checks : list[HealthCheck]
        Checks to run, in order.

    Returns
    -------
    HealthResult
        Combined result of all checks.
    """
    if not checks:
        return HealthResult(status=HealthStatus.OK)

    results: dict[str, str] = {}
    all_ok = True

    for check in checks:
        try:
            result = await check.check()
            if result.status == HealthStatus.OK:
                results[result.name] = "ok"
            else:
                results[result.name] = result.message or "error"
                all_ok = False
        except Exception as e:
            logger.exception("Health check failed", extra={"check": check.name})
            results[check.name] = f"error: {type(e).__name__}: {e}"
            all_ok = False

    return HealthResult(
        status=HealthStatus.OK if all_ok else HealthStatus.NOT_READY,
        checks=results,
    )

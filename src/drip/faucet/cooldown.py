"""Cooldown Store for DRIP faucet.

Features:
- Last-dispensed timestamp per (address, token) pair
- Inclusive 24 hour cooldown window
- Per-pair locks so check-and-record cannot interleave
- Background sweep evicting expired entries

The store is process memory only; a restart forgets every cooldown.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from datetime import timedelta

from drip.observability.metrics import COOLDOWN_ENTRIES, COOLDOWN_EVICTIONS

logger = logging.getLogger(__name__)

COOLDOWN_WINDOW_MS = 24 * 60 * 60 * 1000
DEFAULT_SWEEP_INTERVAL_SECONDS = 24 * 60 * 60


def epoch_millis() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def _key(address: str, token: str) -> tuple[str, str]:
    return address.lower(), token.upper()


class CooldownStore:
    """In-memory record of when each address last received each token.

    Parameters
    ----------
    window_ms : int
        Cooldown window in milliseconds. A pair is eligible again once
        ``now - last_sent >= window_ms``.
    clock : Callable[[], int]
        Returns the current time in epoch milliseconds.
    sweep_interval_seconds : float
        Delay between background sweeps.
    """

    def __init__(
        self,
        window_ms: int = COOLDOWN_WINDOW_MS,
        clock: Callable[[], int] = epoch_millis,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
    ):
        self._window_ms = window_ms
        self._clock = clock
        self._sweep_interval = sweep_interval_seconds
        self._entries: dict[tuple[str, str], int] = {}
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def window(self) -> timedelta:
        """The cooldown window."""
        return timedelta(milliseconds=self._window_ms)

    @property
    def is_sweeping(self) -> bool:
        """Check if the background sweep is running."""
        return self._running

    def __len__(self) -> int:
        return len(self._entries)

    def get_last_sent(self, address: str, token: str) -> int | None:
        """Return the last send time for the pair in epoch millis, if recorded."""
        return self._entries.get(_key(address, token))

    def record_sent(self, address: str, token: str) -> None:
        """Record that ``token`` was sent to ``address`` now. Last write wins."""
        self._entries[_key(address, token)] = self._clock()
        COOLDOWN_ENTRIES.set(len(self._entries))

    def is_cooled_down(self, address: str, token: str) -> bool:
        """Whether the pair may receive ``token`` again."""
        last_sent = self.get_last_sent(address, token)
        if last_sent is None:
            return True
        return self._clock() - last_sent >= self._window_ms

    def remaining(self, address: str, token: str) -> timedelta | None:
        """Time left before the pair is eligible, or None if it already is."""
        last_sent = self.get_last_sent(address, token)
        if last_sent is None:
            return None
        left = self._window_ms - (self._clock() - last_sent)
        if left <= 0:
            return None
        return timedelta(milliseconds=left)

    def lock(self, address: str, token: str) -> asyncio.Lock:
        """Lock guarding check-then-record for one pair."""
        key = _key(address, token)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    def sweep(self) -> int:
        """Remove every entry at least one window old.

        Returns
        -------
        int
            Number of entries removed.
        """
        now = self._clock()
        expired = [key for key, sent in list(self._entries.items()) if now - sent >= self._window_ms]
        for key in expired:
            del self._entries[key]

        # Held locks stay, a waiter may still be queued on them
        for key in [k for k, lock in self._locks.items() if k not in self._entries]:
            if not self._locks[key].locked():
                del self._locks[key]

        COOLDOWN_ENTRIES.set(len(self._entries))
        if expired:
            COOLDOWN_EVICTIONS.inc(len(expired))
            logger.info(
                "Cooldown sweep evicted entries",
                extra={"evicted": len(expired), "remaining": len(self._entries)},
            )
        return len(expired)

    async def start_sweeping(self) -> None:
        """Start the periodic background sweep."""
        if self._running:
            logger.warning("Cooldown sweep already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._sweep_loop())
        logger.info(
            "Cooldown sweep started",
            extra={"interval_seconds": self._sweep_interval},
        )

    async def stop_sweeping(self) -> None:
        """Stop the periodic background sweep."""
        if not self._running:
            return

        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

        logger.info("Cooldown sweep stopped")

    async def _sweep_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._sweep_interval)
            try:
                self.sweep()
            except Exception as e:
                logger.error(
                    "Error in cooldown sweep",
                    extra={"error": str(e)},
                    exc_info=True,
                )

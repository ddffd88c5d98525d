"""Process-wide spacing gate for outbound generative service calls."""

from __future__ import annotations

import asyncio
import threading
import time
from typing import Awaitable, Callable, Optional

from ..logging import get_logger

Clock = Callable[[], float]
Sleep = Callable[[float], Awaitable[None]]


class RateLimitGate:
    """Enforces a minimum interval between any two outbound calls.

    Each caller reserves the next free slot under a lock and then suspends
    until that slot arrives, so concurrent jobs queue in arrival order and
    never fire closer together than ``cooldown`` seconds. The lock is a
    thread lock so one gate can be shared by jobs running on different
    event loops.
    """

    def __init__(
        self,
        cooldown: float = 1.0,
        *,
        clock: Clock = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if cooldown < 0:
            raise ValueError("cooldown must be non-negative")
        self.cooldown = cooldown
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_slot: Optional[float] = None
        self.logger = get_logger("gate")

    async def wait(self) -> float:
        """Suspend until this caller may call the service; return the time waited."""
        with self._lock:
            now = self._clock()
            slot = now if self._next_slot is None else max(now, self._next_slot)
            self._next_slot = slot + self.cooldown
        delay = slot - now
        if delay > 0:
            self.logger.debug("Rate limit gate waiting %.2fs", delay)
            await self._sleep(delay)
        return delay

    def reset(self) -> None:
        with self._lock:
            self._next_slot = None


_DEFAULT_GATE: Optional[RateLimitGate] = None
_DEFAULT_GATE_LOCK = threading.Lock()


def default_gate(cooldown: float = 1.0) -> RateLimitGate:
    """Return the gate shared by every generator in this process.

    ``cooldown`` only applies when the shared gate is first created.
    """
    global _DEFAULT_GATE
    with _DEFAULT_GATE_LOCK:
        if _DEFAULT_GATE is None:
            _DEFAULT_GATE = RateLimitGate(cooldown)
        elif _DEFAULT_GATE.cooldown != cooldown:
            _DEFAULT_GATE.logger.warning(
                "Shared rate limit gate keeps its %.2fs cooldown; ignoring %.2fs",
                _DEFAULT_GATE.cooldown,
                cooldown,
            )
        return _DEFAULT_GATE


__all__ = ["RateLimitGate", "default_gate"]

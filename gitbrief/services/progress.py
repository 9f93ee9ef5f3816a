"""
Collection progress tracking.

ProgressTracker owns the process-wide RunState. Writers go through a
lock; readers get immutable RunState copies, either on demand via
snapshot() or pushed to a subscription.

Each subscription is a one-slot mailbox holding the newest state. A slow
reader skips intermediate states but never misses the terminal one: the
first not-running state a subscription receives is kept, delivered last,
and ends the iteration.
"""

import asyncio
import logging
import threading
from datetime import datetime
from typing import Optional, Set

from gitbrief.types import RunState

logger = logging.getLogger(__name__)


class ProgressSubscription:
    """
    Async iterator over RunState updates for one subscriber.

    Example:
        subscription = tracker.subscribe()
        try:
            async for state in subscription:
                print(state.current_count, state.total_count)
        finally:
            subscription.close()
    """

    def __init__(self, tracker: "ProgressTracker", initial: RunState):
        self._tracker = tracker
        self._latest = initial
        self._terminal: Optional[RunState] = None if initial.is_running else initial
        self._event = asyncio.Event()
        self._event.set()
        self._done = False

    def _offer(self, state: RunState) -> None:
        # Called by the tracker under its lock; must not block
        if self._terminal is not None:
            return
        self._latest = state
        if not state.is_running:
            self._terminal = state
        self._event.set()

    def __aiter__(self):
        return self

    async def __anext__(self) -> RunState:
        if self._done:
            raise StopAsyncIteration

        await self._event.wait()
        self._event.clear()

        if self._terminal is not None:
            self._done = True
            self.close()
            return self._terminal
        return self._latest

    def close(self) -> None:
        """Stop receiving updates."""
        self._done = True
        self._tracker._unsubscribe(self)


class ProgressTracker:
    """
    Guarded single-slot run state with fan-out to subscribers.

    start() is an atomic compare-and-set on is_running: it returns False
    without touching the state if a run is already in progress.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._state = RunState()
        self._subscribers: Set[ProgressSubscription] = set()

    # ------------------------------------------------------------------
    # Writers
    # ------------------------------------------------------------------

    def start(self, total: int = 0, message: str = "starting") -> bool:
        """
        Begin a run if none is active.

        Returns:
            True if this call started the run, False if one was already running
        """
        with self._lock:
            if self._state.is_running:
                return False
            self._state = RunState(
                is_running=True,
                message=message,
                current_count=0,
                total_count=total,
                started_at=datetime.utcnow(),
            )
            self._publish()
            return True

    def set_total(self, total: int, message: Optional[str] = None) -> None:
        """Set the number of repositories the active run will process."""
        with self._lock:
            self._require_running("set_total")
            updates = {"total_count": total}
            if message is not None:
                updates["message"] = message
            self._state = self._state.model_copy(update=updates)
            self._publish()

    def advance(self, message: str) -> None:
        """Record one more processed repository."""
        with self._lock:
            self._require_running("advance")
            self._state = self._state.model_copy(
                update={"current_count": self._state.current_count + 1, "message": message}
            )
            self._publish()

    def finish(self, message: str) -> None:
        """End the active run. Counters are left at their final values."""
        with self._lock:
            if not self._state.is_running:
                logger.warning(f"finish() called with no active run: {message}")
                return
            self._state = self._state.model_copy(
                update={"is_running": False, "message": message, "finished_at": datetime.utcnow()}
            )
            self._publish()

    # ------------------------------------------------------------------
    # Readers
    # ------------------------------------------------------------------

    def snapshot(self) -> RunState:
        """Current state (immutable copy)."""
        with self._lock:
            return self._state

    @property
    def is_running(self) -> bool:
        return self.snapshot().is_running

    def subscribe(self) -> ProgressSubscription:
        """
        Register a subscriber.

        The subscription immediately yields the current state. A subscriber
        joining while no run is active receives that single not-running
        state and then ends.
        """
        with self._lock:
            subscription = ProgressSubscription(self, self._state)
            if self._state.is_running:
                self._subscribers.add(subscription)
            return subscription

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require_running(self, operation: str) -> None:
        if not self._state.is_running:
            raise RuntimeError(f"ProgressTracker.{operation}() requires an active run")

    def _publish(self) -> None:
        state = self._state
        for subscription in list(self._subscribers):
            subscription._offer(state)
        if not state.is_running:
            # Every current subscriber now holds the terminal state
            self._subscribers.clear()

    def _unsubscribe(self, subscription: ProgressSubscription) -> None:
        with self._lock:
            self._subscribers.discard(subscription)

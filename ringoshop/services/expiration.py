# ringoshop/services/expiration.py
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from ringoshop.utils import utcnow

ExpireCallback = Callable[[int], object]


@dataclass
class _Entry:
    timer: threading.Timer
    deadline: datetime
    on_expire: ExpireCallback


class ExpirationRegistry:
    """Auto-cancel deadlines for orders still waiting for a payment proof.

    One ``threading.Timer`` per order. When a timer fires it removes its own
    entry under the lock and only then hands the order id to a small worker
    pool, so a fired timer and an explicit ``cancel`` can never both act on
    the same order. The registry is process local; entries do not survive a
    restart.
    """

    def __init__(self, workers: int = 2, logger: logging.Logger | None = None):
        self._lock = threading.Lock()
        self._entries: dict[int, _Entry] = {}
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, workers), thread_name_prefix="order-expiry"
        )
        self._closed = False
        self.logger = logger or logging.getLogger(__name__)

    # -- public API ---------------------------------------------------------

    def register(self, order_id: int, deadline: datetime, on_expire: ExpireCallback) -> None:
        delay = max(0.0, (deadline - utcnow()).total_seconds())
        timer = threading.Timer(delay, self._fire, args=(order_id,))
        timer.daemon = True
        timer.name = f"order-expiry-timer-{order_id}"

        with self._lock:
            if self._closed:
                self.logger.warning("expiration registry closed, order %s not scheduled", order_id)
                return
            previous = self._entries.pop(order_id, None)
            if previous is not None:
                previous.timer.cancel()
                self.logger.warning("order %s was already scheduled, replacing its deadline", order_id)
            self._entries[order_id] = _Entry(timer=timer, deadline=deadline, on_expire=on_expire)
            # started under the lock so _fire never sees a half-installed entry
            timer.start()

        self.logger.info("order %s auto-cancels at %s (in %.0fs)", order_id, deadline.isoformat(), delay)

    def cancel(self, order_id: int) -> bool:
        """Stop and forget the deadline of ``order_id``. Safe to call repeatedly."""
        with self._lock:
            entry = self._entries.pop(order_id, None)
        if entry is None:
            return False
        entry.timer.cancel()
        self.logger.info("order %s auto-cancel withdrawn", order_id)
        return True

    def deadline_for(self, order_id: int) -> datetime | None:
        with self._lock:
            entry = self._entries.get(order_id)
            return entry.deadline if entry else None

    def __contains__(self, order_id: int) -> bool:
        with self._lock:
            return order_id in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def shutdown(self, wait: bool = False) -> None:
        with self._lock:
            self._closed = True
            entries = list(self._entries.values())
            self._entries.clear()
        for entry in entries:
            entry.timer.cancel()
        self._executor.shutdown(wait=wait)

    # -- timer side ---------------------------------------------------------

    def _fire(self, order_id: int) -> None:
        current = threading.current_thread()
        with self._lock:
            entry = self._entries.get(order_id)
            # the entry may have been cancelled or replaced since this timer was armed
            if entry is None or entry.timer is not current:
                return
            del self._entries[order_id]
            try:
                future = self._executor.submit(entry.on_expire, order_id)
            except RuntimeError:
                self.logger.warning("expiry worker is shut down, order %s left as is", order_id)
                return
        future.add_done_callback(lambda f: self._report(order_id, f))

    def _report(self, order_id: int, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            self.logger.error("auto-cancel of order %s failed: %r", order_id, exc)

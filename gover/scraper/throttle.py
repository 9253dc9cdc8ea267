"""Per-domain request throttle: bounded parallelism plus a minimum start delay.

All requests to one host share a single budget: at most ``parallelism``
requests in flight, and consecutive request starts at least ``delay``
seconds apart.  Hosts never share state with each other.
"""

from __future__ import annotations

import threading
import time
from contextlib import contextmanager
from typing import Iterator
from urllib.parse import urlparse

from gover.config import settings
from gover.errors import FetchCancelledError

# How often a thread blocked on a full domain re-checks the cancel event.
_SLOT_POLL_INTERVAL = 0.1


class DomainThrottle:
    def __init__(self, parallelism: int | None = None, delay: float | None = None) -> None:
        self.parallelism = parallelism if parallelism is not None else settings.max_parallelism
        self.delay = delay if delay is not None else settings.rate_limit_delay
        if self.parallelism < 1:
            raise ValueError(f"parallelism must be at least 1, got {self.parallelism}")
        self._lock = threading.Lock()
        self._slots: dict[str, threading.BoundedSemaphore] = {}
        self._next_start: dict[str, float] = {}

    def _slot(self, domain: str) -> threading.BoundedSemaphore:
        with self._lock:
            slot = self._slots.get(domain)
            if slot is None:
                slot = threading.BoundedSemaphore(self.parallelism)
                self._slots[domain] = slot
            return slot

    def reserve(self, domain: str) -> float:
        """Book the next start time for *domain*; return seconds to wait for it."""
        with self._lock:
            now = time.monotonic()
            start = max(now, self._next_start.get(domain, now))
            self._next_start[domain] = start + self.delay
            return start - now

    @contextmanager
    def acquire(self, url: str, cancel: threading.Event | None = None) -> Iterator[None]:
        """Hold one of *url*'s domain slots for the duration of the ``with`` body.

        Raises:
            FetchCancelledError: If *cancel* is set before the request may start.
        """
        cancel = cancel or threading.Event()
        domain = (urlparse(url).hostname or "").lower()
        slot = self._slot(domain)

        while not slot.acquire(timeout=_SLOT_POLL_INTERVAL):
            if cancel.is_set():
                raise FetchCancelledError(f"cancelled while waiting for a slot: {url}")
        try:
            wait = self.reserve(domain)
            if wait > 0 and cancel.wait(wait):
                raise FetchCancelledError(f"cancelled during rate-limit delay: {url}")
            if cancel.is_set():
                raise FetchCancelledError(f"cancelled before request: {url}")
            yield
        finally:
            slot.release()

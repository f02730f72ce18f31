# ABOUTME: Thread-safe admission control for outbound CRPT API calls.
# ABOUTME: Provides AdmissionGate, which bounds both request rate and requests in flight.

import logging
import math
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from .errors import Interrupted, InvalidConfiguration

logger = logging.getLogger(__name__)

# Upper bound on how long a cancellable wait goes without checking its event (seconds)
CANCEL_POLL_INTERVAL = 0.05


class TimeUnit(Enum):
    """Units a rate window can be expressed in, valued in seconds."""

    NANOSECONDS = 1e-9
    MICROSECONDS = 1e-6
    MILLISECONDS = 1e-3
    SECONDS = 1.0
    MINUTES = 60.0
    HOURS = 3600.0
    DAYS = 86400.0

    @property
    def seconds(self) -> float:
        return self.value

    @classmethod
    def parse(cls, name: str) -> "TimeUnit":
        """Look up a unit by name, case-insensitively ("seconds", "MINUTES", ...)."""
        if isinstance(name, cls):
            return name
        try:
            return cls[name.strip().upper()]
        except (KeyError, AttributeError):
            choices = ", ".join(unit.name.lower() for unit in cls)
            raise InvalidConfiguration(f"Unknown time unit {name!r} (expected one of: {choices})")


@dataclass(frozen=True)
class RateLimit:
    """At most ``max_requests`` admissions per ``window_seconds``."""

    window_seconds: float
    max_requests: int

    def __post_init__(self):
        if isinstance(self.max_requests, bool) or not isinstance(self.max_requests, int):
            raise InvalidConfiguration(f"Request limit must be an integer, got {self.max_requests!r}")
        if self.max_requests <= 0:
            raise InvalidConfiguration(f"Request limit must be positive, got {self.max_requests}")
        if isinstance(self.window_seconds, bool) or not isinstance(self.window_seconds, (int, float)):
            raise InvalidConfiguration(f"Window duration must be a number, got {self.window_seconds!r}")
        if not math.isfinite(self.window_seconds) or self.window_seconds <= 0:
            raise InvalidConfiguration(f"Window duration must be positive, got {self.window_seconds}")

    @classmethod
    def per(cls, time_unit: TimeUnit, max_requests: int, units: int = 1) -> "RateLimit":
        """Build a limit whose window is ``units`` of ``time_unit``.

        Args:
            time_unit: Unit the window is measured in.
            max_requests: Admissions allowed per window.
            units: Window length in ``time_unit``. Defaults to a single unit.
        """
        if isinstance(units, bool) or not isinstance(units, int) or units <= 0:
            raise InvalidConfiguration(f"Window size must be a positive integer, got {units!r}")
        return cls(window_seconds=time_unit.seconds * units, max_requests=max_requests)


class WindowCounter:
    """Admission count for the current fixed window.

    Holds no lock of its own; every call must be made while holding the
    lock of the gate that owns it.
    """

    def __init__(self, window_seconds: float, now: float):
        self.window_seconds = window_seconds
        self.start = now
        self.count = 0

    def refresh(self, now: float) -> bool:
        """Start a new window at ``now`` if the current one has elapsed.

        Returns:
            True if the window was reset.
        """
        if now - self.start >= self.window_seconds:
            self.start = now
            self.count = 0
            return True
        return False

    def remaining(self, now: float) -> float:
        """Seconds left in the current window at ``now``."""
        return min(self.window_seconds, self.window_seconds - (now - self.start))


class WindowGate:
    """Caps admissions per fixed time window.

    All window state changes happen under one lock. A caller that finds the
    window full sleeps on a condition (releasing the lock) until the window
    should have elapsed, then checks again against a fresh timestamp, so
    threads waking together cannot all reset the window and over-admit.
    """

    def __init__(self, rate_limit: RateLimit):
        self._limit = rate_limit.max_requests
        self._cond = threading.Condition(threading.Lock())
        self._counter = WindowCounter(rate_limit.window_seconds, time.monotonic())

    def admit(self, cancel: threading.Event | None = None) -> float:
        """Block until the current window has room, then count one admission.

        Args:
            cancel: Optional event; setting it aborts the wait with Interrupted.

        Returns:
            Start timestamp of the window the admission was counted in.
        """
        with self._cond:
            while True:
                now = time.monotonic()
                if self._counter.refresh(now):
                    logger.debug("Rate window elapsed, starting a new one")
                if self._counter.count < self._limit:
                    self._counter.count += 1
                    return self._counter.start

                remaining = self._counter.remaining(now)
                if remaining <= 0:
                    continue
                logger.debug(f"Rate window full ({self._limit} admissions), waiting {remaining:.3f}s")
                self._wait(remaining, cancel)

    def revoke(self, window_start: float) -> None:
        """Undo one admission, if the window it was counted in is still current."""
        with self._cond:
            if self._counter.start == window_start and self._counter.count > 0:
                self._counter.count -= 1
                self._cond.notify()

    def snapshot(self) -> tuple[float, int]:
        with self._cond:
            return self._counter.start, self._counter.count

    def _wait(self, timeout: float, cancel: threading.Event | None) -> None:
        if cancel is None:
            self._cond.wait(timeout)
            return

        deadline = time.monotonic() + timeout
        while True:
            if cancel.is_set():
                raise Interrupted("Interrupted while waiting for the rate window to reset")
            left = deadline - time.monotonic()
            if left <= 0:
                return
            self._cond.wait(min(left, CANCEL_POLL_INTERVAL))


class TokenPool:
    """Bounded pool of capacity tokens, one per request in flight."""

    def __init__(self, size: int):
        if size <= 0:
            raise InvalidConfiguration(f"Token pool size must be positive, got {size}")
        self.size = size
        self._semaphore = threading.BoundedSemaphore(size)
        self._lock = threading.Lock()
        self._in_flight = 0

    def acquire(self, cancel: threading.Event | None = None) -> None:
        """Take a token, blocking while all of them are checked out."""
        if cancel is None:
            self._semaphore.acquire()
        else:
            while not self._semaphore.acquire(timeout=CANCEL_POLL_INTERVAL):
                if cancel.is_set():
                    raise Interrupted("Interrupted while waiting for a capacity token")
        with self._lock:
            self._in_flight += 1

    def release(self) -> None:
        with self._lock:
            if self._in_flight == 0:
                raise RuntimeError("TokenPool.release() called more times than acquire()")
            self._in_flight -= 1
        self._semaphore.release()

    @property
    def in_flight(self) -> int:
        with self._lock:
            return self._in_flight


@dataclass(frozen=True)
class GateSnapshot:
    """Point-in-time view of an AdmissionGate."""
    window_start: float
    window_count: int
    in_flight: int


class AdmissionGate:
    """Admission control for a single endpoint.

    A caller first passes the WindowGate (rate) and then takes a token from
    the TokenPool (concurrency). Both use the same numeric limit. The window
    lock is never held while waiting for a token.
    """

    def __init__(self, rate_limit: RateLimit):
        self.rate_limit = rate_limit
        self._window = WindowGate(rate_limit)
        self._tokens = TokenPool(rate_limit.max_requests)

    def acquire(self, cancel: threading.Event | None = None) -> None:
        """Block until the caller may send one request.

        Args:
            cancel: Optional event. If it is set before or during the wait,
                Interrupted is raised and no admission or token is held.
        """
        if cancel is not None and cancel.is_set():
            raise Interrupted("Interrupted before admission")

        window_start = self._window.admit(cancel)
        try:
            self._tokens.acquire(cancel)
        except Interrupted:
            self._window.revoke(window_start)
            raise

    def release(self) -> None:
        """Return the token taken by a successful acquire()."""
        self._tokens.release()

    @contextmanager
    def admitted(self, cancel: threading.Event | None = None):
        """Hold one admission for the duration of the block."""
        self.acquire(cancel)
        try:
            yield
        finally:
            self.release()

    def snapshot(self) -> GateSnapshot:
        window_start, window_count = self._window.snapshot()
        return GateSnapshot(
            window_start=window_start,
            window_count=window_count,
            in_flight=self._tokens.in_flight,
        )

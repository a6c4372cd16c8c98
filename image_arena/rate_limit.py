# image_arena/rate_limit.py
from __future__ import annotations

import logging
import random
import threading
import time
from contextlib import ExitStack, contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator

from image_arena import config
from image_arena.errors import RateLimited

log = logging.getLogger("image-arena.ratelimit")


@dataclass
class Bucket:
    requests: list[float] = field(default_factory=list)
    last_cleanup: float = 0.0


class SlidingWindowLimiter:
    """In-process sliding window limiter keyed by client identity.

    Each key keeps the timestamps of its accepted requests inside the
    trailing window. Stale buckets are swept opportunistically from
    ``hit()`` so no background task is needed. State is per process and is
    lost on restart.
    """

    def __init__(
        self,
        max_requests: int,
        window_sec: float = config.RATE_WINDOW_SEC,
        cleanup_interval_sec: float = config.RATE_CLEANUP_INTERVAL_SEC,
        cleanup_chance: float = config.RATE_CLEANUP_CHANCE,
        clock: Callable[[], float] = time.time,
        rng: Callable[[], float] = random.random,
        name: str = "ip",
        message: str | None = None,
    ):
        if max_requests < 1:
            raise ValueError("max_requests must be >= 1")
        if window_sec <= 0:
            raise ValueError("window_sec must be > 0")
        self.max_requests = int(max_requests)
        self.window_sec = float(window_sec)
        self.cleanup_interval_sec = float(cleanup_interval_sec)
        self.cleanup_chance = float(cleanup_chance)
        self.clock = clock
        self.rng = rng
        self.name = name
        self.message = message
        self._lock = threading.Lock()
        self._buckets: dict[str, Bucket] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._buckets

    @property
    def lock(self) -> threading.Lock:
        """Guards every bucket; hold it around ``reserve()`` and ``Reservation.commit()``."""
        return self._lock

    def reserve(self, key: str, now: float) -> Reservation:
        """Check ``key`` against the window without counting the request.

        Raises RateLimited when the window is full. The caller must hold
        ``lock`` until the returned reservation is committed or dropped.
        """
        bucket = self._buckets.get(key)
        if bucket is None:
            bucket = Bucket(last_cleanup=now)
            self._buckets[key] = bucket
        recent = [t for t in bucket.requests if now - t < self.window_sec]
        bucket.requests = recent
        if len(recent) >= self.max_requests:
            retry_after = recent[0] + self.window_sec - now
            log.info("rate limited limiter=%s key=%s recent=%s", self.name, key, len(recent))
            raise RateLimited(self.message, retry_after=retry_after)
        return Reservation(bucket, now)

    def _sweep(self, now: float) -> int:
        removed = 0
        for key in list(self._buckets):
            bucket = self._buckets[key]
            if now - bucket.last_cleanup > self.cleanup_interval_sec:
                bucket.requests = [t for t in bucket.requests if now - t < self.window_sec]
                bucket.last_cleanup = now
                if not bucket.requests:
                    del self._buckets[key]
                    removed += 1
        return removed

    def maybe_cleanup(self, now: float | None = None) -> int:
        if self.rng() >= self.cleanup_chance:
            return 0
        return self.cleanup(now)

    def cleanup(self, now: float | None = None) -> int:
        now = self.clock() if now is None else now
        with self._lock:
            removed = self._sweep(now)
        if removed:
            log.debug("rate limit sweep limiter=%s removed=%s", self.name, removed)
        return removed

    def hit(self, key: str) -> None:
        """Count one request for ``key`` or raise RateLimited."""
        now = self.clock()
        self.maybe_cleanup(now)
        with self._lock:
            self.reserve(key, now).commit()

    def allow(self, key: str) -> bool:
        try:
            self.hit(key)
        except RateLimited:
            return False
        return True

    def reset(self, key: str) -> None:
        with self._lock:
            self._buckets.pop(key, None)


@dataclass
class Reservation:
    """A request that passed its window check but is not counted yet."""

    bucket: Bucket
    now: float

    def commit(self) -> None:
        self.bucket.requests.append(self.now)


@contextmanager
def holding(*limiters: SlidingWindowLimiter) -> Iterator[None]:
    """Hold the locks of several limiters, acquired in argument order.

    The same limiter passed twice is locked once.
    """
    with ExitStack() as stack:
        seen: set[int] = set()
        for lim in limiters:
            if id(lim) in seen:
                continue
            seen.add(id(lim))
            stack.enter_context(lim.lock)
        yield


class DualRateLimiter:
    """Checks a network-origin limiter and a session limiter together.

    A request is counted against both only when it passes both. The IP
    limiter is consulted first, so it decides the rejection message when
    both are exhausted.
    """

    def __init__(self, ip_limiter: SlidingWindowLimiter, session_limiter: SlidingWindowLimiter):
        self.ip_limiter = ip_limiter
        self.session_limiter = session_limiter

    @classmethod
    def from_config(cls) -> "DualRateLimiter":
        return cls(
            SlidingWindowLimiter(config.RATE_MAX_PER_IP, name="ip"),
            SlidingWindowLimiter(
                config.RATE_MAX_PER_SESSION,
                name="session",
                message="Rate limit exceeded for this session. Please slow down.",
            ),
        )

    def hit(self, client_ip: str, session_id: str) -> None:
        ip_l, ses_l = self.ip_limiter, self.session_limiter
        now = ip_l.clock()
        ip_l.maybe_cleanup(now)
        ses_l.maybe_cleanup(now)
        # lock order is always ip, then session
        with holding(ip_l, ses_l):
            ip_res = ip_l.reserve(client_ip, now)
            ses_res = ses_l.reserve(session_id, now)
            ip_res.commit()
            ses_res.commit()

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Mapping, Optional

UNKNOWN_CLIENT = "unknown"

@dataclass
class RateLimitRecord:
    count: int
    window_reset_at: float

@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int = 0  # whole seconds until the window resets, set on rejection

def _seconds_until(reset_at: float, now: float) -> int:
    return max(1, math.ceil(reset_at - now))

def client_key_from_headers(headers: Mapping[str, str]) -> str:
    """
    Best-effort client identifier for rate limiting.

    Uses the first hop of X-Forwarded-For, then X-Real-IP. Callers behind
    the same unidentified proxy share the "unknown" bucket.
    """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    real_ip = (headers.get("x-real-ip") or "").strip()
    if real_ip:
        return real_ip

    return UNKNOWN_CLIENT

class RateLimiter:
    def hit(self, key: str, now: Optional[float] = None) -> RateLimitDecision:
        raise NotImplementedError

    def sweep(self, now: Optional[float] = None) -> int:
        raise NotImplementedError

    def reset(self) -> None:
        raise NotImplementedError

class InMemoryRateLimiter(RateLimiter):
    """
    Fixed-window counter held in process memory.

    State is lost on restart. Every hit is a single check-and-update under
    one lock so concurrent requests from the same key cannot both take the
    last slot of a window.
    """

    def __init__(
        self,
        max_requests: int = 10,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.clock = clock
        self._records: Dict[str, RateLimitRecord] = {}
        self._lock = threading.Lock()

    def hit(self, key: str, now: Optional[float] = None) -> RateLimitDecision:
        if now is None:
            now = self.clock()

        with self._lock:
            record = self._records.get(key)

            if record is None or now > record.window_reset_at:
                record = RateLimitRecord(count=1, window_reset_at=now + self.window_seconds)
                self._records[key] = record
                return RateLimitDecision(True, self.max_requests - 1)

            if record.count >= self.max_requests:
                return RateLimitDecision(False, 0, _seconds_until(record.window_reset_at, now))

            record.count += 1
            return RateLimitDecision(True, self.max_requests - record.count)

    def sweep(self, now: Optional[float] = None) -> int:
        """Remove records whose window has expired. Returns the number removed."""
        if now is None:
            now = self.clock()

        with self._lock:
            expired = [key for key, record in self._records.items() if now > record.window_reset_at]
            for key in expired:
                del self._records[key]
            return len(expired)

    def reset(self) -> None:
        with self._lock:
            self._records.clear()

    def get(self, key: str) -> Optional[RateLimitRecord]:
        with self._lock:
            record = self._records.get(key)
            return RateLimitRecord(record.count, record.window_reset_at) if record else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

"""Fixed-window request throttling keyed by client IP or authenticated user id."""

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from app.core.config import Settings

logger = logging.getLogger(__name__)

SAFELISTED_IPS = frozenset({"127.0.0.1", "::1"})


@dataclass(frozen=True)
class RateLimitRule:
    name: str
    limit: int
    period: int  # seconds


@dataclass(frozen=True)
class RateLimitResult:
    allowed: bool
    limit: int
    remaining: int
    reset: int  # epoch seconds when the current window ends

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(self.reset),
        }


class RateLimiter:
    """
    In-process counters per (rule, key, window). Thread-safe.

    Only the current window of each rule is kept: the first hit of a new window
    sweeps every counter the rule holds for earlier windows.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._counters: dict[tuple[str, str], tuple[int, int]] = {}
        self._current_window: dict[str, int] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)

    def _sweep(self, rule: RateLimitRule, window: int) -> None:
        # Caller holds the lock.
        if self._current_window.get(rule.name) == window:
            return
        self._current_window[rule.name] = window
        stale = [
            counter_key
            for counter_key, (stored_window, _count) in self._counters.items()
            if counter_key[0] == rule.name and stored_window < window
        ]
        for counter_key in stale:
            del self._counters[counter_key]
        if stale:
            logger.debug("Rate limit %s: dropped %s expired counters", rule.name, len(stale))

    def hit(self, rule: RateLimitRule, key: str) -> RateLimitResult:
        """Count one request against `rule` for `key` and report whether it is allowed."""
        now = int(self._clock())
        window = now // rule.period
        reset = (window + 1) * rule.period
        with self._lock:
            self._sweep(rule, window)
            stored_window, count = self._counters.get((rule.name, key), (window, 0))
            if stored_window != window:
                count = 0
            count += 1
            self._counters[(rule.name, key)] = (window, count)
        return RateLimitResult(
            allowed=count <= rule.limit,
            limit=rule.limit,
            remaining=max(rule.limit - count, 0),
            reset=reset,
        )

    def reset(self) -> None:
        with self._lock:
            self._counters.clear()
            self._current_window.clear()


@dataclass
class RateLimitPolicy:
    """The limiter plus the rules applied to API traffic."""

    api_per_ip: RateLimitRule
    auth_per_ip: RateLimitRule
    per_user: RateLimitRule
    limiter: RateLimiter = field(default_factory=RateLimiter)
    safelist: frozenset[str] = SAFELISTED_IPS

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RateLimitPolicy | None":
        """Build the policy, or None when rate limiting is disabled."""
        if not settings.RATE_LIMIT_ENABLED:
            return None
        return cls(
            api_per_ip=RateLimitRule("api/ip", settings.RATE_LIMIT_API_PER_MINUTE, 60),
            auth_per_ip=RateLimitRule("auth/ip", settings.RATE_LIMIT_AUTH_PER_MINUTE, 60),
            per_user=RateLimitRule("api/user", settings.RATE_LIMIT_USER_PER_HOUR, 3600),
        )

    def is_safelisted(self, ip: str) -> bool:
        return ip in self.safelist

    def check_ip(self, ip: str, is_auth_path: bool) -> RateLimitResult | None:
        """Return the first exceeded result for this IP, or None when within limits."""
        if self.is_safelisted(ip):
            return None
        rules = [self.auth_per_ip, self.api_per_ip] if is_auth_path else [self.api_per_ip]
        for rule in rules:
            result = self.limiter.hit(rule, ip)
            if not result.allowed:
                logger.warning("Rate limit %s exceeded for ip=%s", rule.name, ip)
                return result
        return None

    def check_user(self, user_id: int) -> RateLimitResult | None:
        result = self.limiter.hit(self.per_user, str(user_id))
        if not result.allowed:
            logger.warning("Rate limit %s exceeded for user_id=%s", self.per_user.name, user_id)
            return result
        return None

"""Unit tests for app.services.rate_limit and the throttling middleware."""

import unittest
from unittest.mock import MagicMock

from app.models import RoleName
from app.services.rate_limit import RateLimiter, RateLimitPolicy, RateLimitRule
from tests.helpers import PASSWORD, ApiTestCase


class FakeClock:
    def __init__(self, now: float = 1_000_020.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestRateLimiter(unittest.TestCase):
    def setUp(self) -> None:
        self.clock = FakeClock()
        self.limiter = RateLimiter(clock=self.clock)
        self.rule = RateLimitRule("test", limit=3, period=60)

    def test_allows_up_to_limit_then_denies(self) -> None:
        results = [self.limiter.hit(self.rule, "1.2.3.4") for _ in range(4)]
        self.assertEqual([r.allowed for r in results], [True, True, True, False])
        self.assertEqual([r.remaining for r in results], [2, 1, 0, 0])

    def test_reset_is_end_of_window(self) -> None:
        result = self.limiter.hit(self.rule, "k")
        self.assertEqual(result.reset, 1_000_020 // 60 * 60 + 60)
        self.assertEqual(
            result.headers(),
            {
                "X-RateLimit-Limit": "3",
                "X-RateLimit-Remaining": "2",
                "X-RateLimit-Reset": str(result.reset),
            },
        )

    def test_new_window_starts_fresh(self) -> None:
        for _ in range(4):
            self.limiter.hit(self.rule, "k")
        self.clock.now += 60
        self.assertTrue(self.limiter.hit(self.rule, "k").allowed)

    def test_keys_and_rules_are_independent(self) -> None:
        for _ in range(3):
            self.limiter.hit(self.rule, "a")
        self.assertTrue(self.limiter.hit(self.rule, "b").allowed)
        other = RateLimitRule("other", limit=1, period=60)
        self.assertTrue(self.limiter.hit(other, "a").allowed)

    def test_expired_windows_are_dropped(self) -> None:
        for i in range(500):
            self.limiter.hit(self.rule, f"10.0.{i // 256}.{i % 256}")
        self.assertEqual(len(self.limiter), 500)
        self.clock.now += 86_400
        self.limiter.hit(self.rule, "10.9.9.9")
        self.assertEqual(len(self.limiter), 1)

    def test_sweep_only_touches_the_rule_entering_a_new_window(self) -> None:
        hourly = RateLimitRule("hourly", limit=10, period=3600)
        self.clock.now = 3600 * 1000
        self.limiter.hit(hourly, "user-1")
        self.limiter.hit(self.rule, "ip-1")
        self.clock.now += 120
        self.limiter.hit(self.rule, "ip-2")
        self.assertEqual(len(self.limiter), 2)
        self.assertEqual(self.limiter.hit(hourly, "user-1").remaining, 8)

    def test_reset_clears_counters(self) -> None:
        for _ in range(4):
            self.limiter.hit(self.rule, "k")
        self.limiter.reset()
        self.assertTrue(self.limiter.hit(self.rule, "k").allowed)


class TestRateLimitPolicy(unittest.TestCase):
    def _policy(self) -> RateLimitPolicy:
        return RateLimitPolicy(
            api_per_ip=RateLimitRule("api/ip", 5, 60),
            auth_per_ip=RateLimitRule("auth/ip", 2, 60),
            per_user=RateLimitRule("api/user", 1, 3600),
            limiter=RateLimiter(clock=FakeClock()),
        )

    def test_disabled_in_settings(self) -> None:
        settings = MagicMock()
        settings.RATE_LIMIT_ENABLED = False
        self.assertIsNone(RateLimitPolicy.from_settings(settings))

    def test_built_from_settings(self) -> None:
        settings = MagicMock()
        settings.RATE_LIMIT_ENABLED = True
        settings.RATE_LIMIT_API_PER_MINUTE = 100
        settings.RATE_LIMIT_AUTH_PER_MINUTE = 10
        settings.RATE_LIMIT_USER_PER_HOUR = 1000
        policy = RateLimitPolicy.from_settings(settings)
        self.assertEqual(policy.api_per_ip, RateLimitRule("api/ip", 100, 60))
        self.assertEqual(policy.auth_per_ip, RateLimitRule("auth/ip", 10, 60))
        self.assertEqual(policy.per_user, RateLimitRule("api/user", 1000, 3600))

    def test_auth_paths_use_stricter_rule(self) -> None:
        policy = self._policy()
        self.assertIsNone(policy.check_ip("10.0.0.1", is_auth_path=True))
        self.assertIsNone(policy.check_ip("10.0.0.1", is_auth_path=True))
        exceeded = policy.check_ip("10.0.0.1", is_auth_path=True)
        self.assertIsNotNone(exceeded)
        self.assertEqual(exceeded.limit, 2)

    def test_localhost_is_safelisted(self) -> None:
        policy = self._policy()
        for _ in range(10):
            self.assertIsNone(policy.check_ip("127.0.0.1", is_auth_path=True))
            self.assertIsNone(policy.check_ip("::1", is_auth_path=False))

    def test_per_user(self) -> None:
        policy = self._policy()
        self.assertIsNone(policy.check_user(1))
        self.assertIsNotNone(policy.check_user(1))
        self.assertIsNone(policy.check_user(2))


class TestRateLimitedApi(ApiTestCase):
    settings_overrides = {
        "RATE_LIMIT_ENABLED": True,
        "RATE_LIMIT_AUTH_PER_MINUTE": 2,
        "RATE_LIMIT_USER_PER_HOUR": 2,
    }

    def test_auth_endpoint_throttled_per_ip(self) -> None:
        self.create_user()
        body = {"auth": {"email": "user@example.com", "password": PASSWORD}}
        statuses = [self.client.post("/api/v1/auth/login", json=body).status_code for _ in range(3)]
        self.assertEqual(statuses, [200, 200, 429])
        response = self.client.post("/api/v1/auth/login", json=body)
        self.assertEqual(response.status_code, 429)
        self.assertEqual(
            response.json(),
            {
                "success": False,
                "message": "Rate limit exceeded. Please try again later.",
                "errors": {},
            },
        )
        self.assertEqual(response.headers["X-RateLimit-Limit"], "2")
        self.assertEqual(response.headers["X-RateLimit-Remaining"], "0")
        self.assertIn("X-RateLimit-Reset", response.headers)

    def test_authenticated_user_throttled(self) -> None:
        user = self.create_user(role=RoleName.USER)
        headers = self.auth_headers(user)
        statuses = [
            self.client.get(f"/api/v1/users/{user.id}", headers=headers).status_code
            for _ in range(3)
        ]
        self.assertEqual(statuses, [200, 200, 429])

    def test_root_is_not_throttled(self) -> None:
        for _ in range(5):
            self.assertEqual(self.client.get("/").status_code, 200)


if __name__ == "__main__":
    unittest.main()

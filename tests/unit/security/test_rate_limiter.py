import os
import sys
# Go up three directory levels (security -> unit -> tests -> project root)
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../../../')))
# Import the setup script
import setup_path

import threading
import time
import unittest

from sql_gateway.security.rate_limiter import ClientInfo, RateLimitDecision, RateLimiter


class TestRateLimiter(unittest.TestCase):
    """Test cases for the fixed window rate limiter."""

    def setUp(self):
        """Set up test environment before each test."""
        self.limiter = RateLimiter(window_ms=900000, max_requests=20)

    def test_client_key(self):
        """Test the key built from IP and user agent."""
        self.assertEqual(ClientInfo("10.0.0.1", "curl/8").rate_limit_key, "10.0.0.1-curl/8")
        self.assertEqual(ClientInfo("10.0.0.1").rate_limit_key, "10.0.0.1-unknown")

    def test_twenty_first_request_rejected(self):
        """Test that the request after the maximum is rejected."""
        decisions = [self.limiter.hit("client") for _ in range(21)]

        self.assertTrue(all(decision.allowed for decision in decisions[:20]))
        self.assertFalse(decisions[20].allowed)
        self.assertEqual(decisions[19].remaining, 0)
        self.assertIn(decisions[20].retry_after, (899, 900))

    def test_rejection_headers(self):
        """Test the headers of a rejected decision."""
        for _ in range(20):
            self.limiter.hit("client")
        headers = self.limiter.hit("client").headers()

        self.assertEqual(headers["RateLimit-Limit"], "20")
        self.assertEqual(headers["RateLimit-Remaining"], "0")
        self.assertLessEqual(int(headers["Retry-After"]), 900)
        self.assertGreaterEqual(int(headers["Retry-After"]), 1)

    def test_admitted_headers_have_no_retry_after(self):
        """Test that Retry-After is only sent on rejection."""
        headers = self.limiter.hit("client").headers()

        self.assertEqual(headers["RateLimit-Remaining"], "19")
        self.assertNotIn("Retry-After", headers)

    def test_decision_headers_without_limiter(self):
        """Test header rendering of a hand-built decision."""
        headers = RateLimitDecision(allowed=False, limit=5, remaining=0, retry_after=42).headers()

        self.assertEqual(headers["Retry-After"], "42")
        self.assertEqual(headers["RateLimit-Reset"], "42")

    def test_keys_are_independent(self):
        """Test that one client's usage does not affect another."""
        for _ in range(21):
            self.limiter.hit("a")

        self.assertTrue(self.limiter.hit("b").allowed)

    def test_limiters_do_not_share_counters(self):
        """Test that two limiters keep separate storage."""
        other = RateLimiter(window_ms=900000, max_requests=1)
        other.hit("client")

        self.assertFalse(other.hit("client").allowed)
        self.assertTrue(self.limiter.hit("client").allowed)

    def test_reset_after_window(self):
        """Test that the counter starts over once the window has passed."""
        limiter = RateLimiter(window_ms=1000, max_requests=2)
        for _ in range(3):
            limiter.hit("client")
        self.assertFalse(limiter.hit("client").allowed)

        time.sleep(1.2)

        decision = limiter.hit("client")
        self.assertTrue(decision.allowed)
        self.assertEqual(decision.remaining, 1)

    def test_zero_maximum_rejects_everything(self):
        """Test that a maximum of zero admits no request."""
        limiter = RateLimiter(window_ms=900000, max_requests=0)

        self.assertFalse(limiter.hit("client").allowed)

    def test_concurrent_hits_admit_exactly_max(self):
        """Test that concurrent requests never exceed the maximum."""
        limiter = RateLimiter(window_ms=900000, max_requests=50)
        admitted = []
        lock = threading.Lock()

        def worker():
            for _ in range(10):
                decision = limiter.hit("shared")
                if decision.allowed:
                    with lock:
                        admitted.append(decision)

        threads = [threading.Thread(target=worker) for _ in range(10)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        self.assertEqual(len(admitted), 50)

    def test_invalid_arguments(self):
        """Test constructor validation."""
        with self.assertRaises(ValueError):
            RateLimiter(window_ms=0)
        with self.assertRaises(ValueError):
            RateLimiter(max_requests=-1)


if __name__ == '__main__':
    unittest.main()

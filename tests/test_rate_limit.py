import unittest
from types import SimpleNamespace
from unittest.mock import patch

import support  # noqa: F401

from starlette.requests import Request

from resume_edge.core.rate_limit import client_key, per_minute, rate_limit_exceeded_handler


def _request(forwarded_for: str | None = None, host: str = "10.0.0.7") -> Request:
    headers = []
    if forwarded_for is not None:
        headers.append((b"x-forwarded-for", forwarded_for.encode("latin-1")))
    return Request({"type": "http", "method": "POST", "path": "/", "headers": headers, "client": (host, 5000)})


class ClientKeyTests(unittest.TestCase):
    def test_forwarded_header_ignored_unless_trusted(self):
        with patch("resume_edge.core.rate_limit.settings", SimpleNamespace(trust_x_forwarded_for=False)):
            self.assertEqual(client_key(_request("203.0.113.9, 10.0.0.1")), "10.0.0.7")

    def test_first_forwarded_hop_used_when_trusted(self):
        with patch("resume_edge.core.rate_limit.settings", SimpleNamespace(trust_x_forwarded_for=True)):
            self.assertEqual(client_key(_request("203.0.113.9, 10.0.0.1")), "203.0.113.9")
            self.assertEqual(client_key(_request("  ")), "10.0.0.7")


class RateLimitHelpersTests(unittest.TestCase):
    def test_per_minute_never_drops_below_one(self):
        self.assertEqual(per_minute(10), "10/minute")
        self.assertEqual(per_minute(0), "1/minute")

    def test_exceeded_handler_returns_user_message(self):
        response = rate_limit_exceeded_handler(_request(), exc=None)
        self.assertEqual(response.status_code, 429)
        self.assertEqual(response.body, b'{"detail":"Too many requests. Please wait a minute and try again."}')


if __name__ == "__main__":
    unittest.main()

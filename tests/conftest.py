"""
Shared pytest fixtures for the email authentication checker test suite.

No fixture performs real DNS or HTTP work: resolver calls are patched in
the individual test modules.
"""

from __future__ import annotations

import pytest

from mailauth import create_app
from mailauth.utils.rate_limit import clear_all_rate_limits


# ---------------------------------------------------------------------------
# Test configuration
# ---------------------------------------------------------------------------


class TestConfig:
    """Minimal Flask config for automated testing."""

    TESTING = True
    SECRET_KEY = "test-secret-key-not-for-production"
    SERVICE_NAME = "Email Authentication Checker"
    MAX_CONTENT_LENGTH = 16 * 1024
    DOH_URL = "https://doh.test/dns-query"
    DNS_TIMEOUT_SECONDS = 2.0
    RATE_LIMIT_ENABLED = True
    RATE_LIMIT_MAX_REQUESTS = 3
    RATE_LIMIT_WINDOW_SECONDS = 1800
    RATE_LIMIT_KEY_HEADER = "CF-Connecting-IP"


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_rate_limits():
    """Start and finish every test with an empty admission store."""
    clear_all_rate_limits()
    yield
    clear_all_rate_limits()


@pytest.fixture(scope="function")
def app():
    """Create a Flask application instance configured for testing."""
    flask_app = create_app(TestConfig)
    with flask_app.app_context():
        yield flask_app


@pytest.fixture(scope="function")
def client(app):
    """Return a Flask test client."""
    return app.test_client()

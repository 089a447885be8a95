"""
Configuration module for the email authentication checker.

Loads settings from environment variables with sensible defaults.
"""

import os


class Config:
    """Base configuration shared by all environments."""

    # Security
    SECRET_KEY: str = os.environ.get("SECRET_KEY", "dev-secret-change-me")

    # Upload / payload limits (the only accepted body is {"domain": "..."})
    MAX_CONTENT_LENGTH: int = 16 * 1024  # 16 KB

    # DNS-over-HTTPS resolver
    DOH_URL: str = os.environ.get("DOH_URL", "https://cloudflare-dns.com/dns-query")
    DNS_TIMEOUT_SECONDS: float = float(os.environ.get("DNS_TIMEOUT_SECONDS", "5.0"))

    # Admission control: at most RATE_LIMIT_MAX_REQUESTS checks per source
    # address within RATE_LIMIT_WINDOW_SECONDS.
    RATE_LIMIT_ENABLED: bool = os.environ.get("RATE_LIMIT_ENABLED", "True").lower() == "true"
    RATE_LIMIT_MAX_REQUESTS: int = int(os.environ.get("RATE_LIMIT_MAX_REQUESTS", "3"))
    RATE_LIMIT_WINDOW_SECONDS: int = int(os.environ.get("RATE_LIMIT_WINDOW_SECONDS", "1800"))

    # Header set by the fronting proxy with the real client address.
    RATE_LIMIT_KEY_HEADER: str = os.environ.get("RATE_LIMIT_KEY_HEADER", "CF-Connecting-IP")

    SERVICE_NAME: str = "Email Authentication Checker"

"""Domain input normalisation shared by the API and the command line."""
from __future__ import annotations

import re
from typing import Any

import dns.exception
import dns.name

from mailauth.exceptions import InputError

# Hostname validation pattern: lowercase labels separated by dots, TLD of
# at least 2 letters or an IDNA A-label (xn--...)
_HOSTNAME_RE = re.compile(
    r"^[a-z0-9_]([a-z0-9_-]*[a-z0-9])?(\.[a-z0-9_]([a-z0-9_-]*[a-z0-9])?)*\.(?:[a-z]{2,}|xn--[a-z0-9-]*[a-z0-9])$"
)


def normalize_domain(value: Any) -> str:
    """Return *value* as a lower-case domain name without a trailing dot.

    Raises:
        InputError: *value* is not a string, is empty, or is not a
            syntactically valid domain name.
    """
    if not isinstance(value, str) or not value.strip():
        raise InputError("invalid_domain", "Invalid domain")

    hostname = value.strip().lower()
    if hostname.endswith("."):
        hostname = hostname[:-1]

    try:
        # Enforces the 63-octet label and 255-octet name limits.
        name = dns.name.from_text(hostname)
    except dns.exception.DNSException as exc:
        raise InputError("invalid_domain", f"Invalid domain: {exc}") from exc

    hostname = name.to_text(omit_final_dot=True)
    if not _HOSTNAME_RE.match(hostname):
        raise InputError(
            "invalid_domain",
            "Invalid domain: use letters, digits, hyphens and dots (e.g. example.com)",
        )
    return hostname

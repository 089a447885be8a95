"""
Result and settings models for the email authentication checker.

  DnsSettings        - resolver configuration (DoH endpoint, timeout)
  RecordResult       - verdict for one mechanism (SPF, DKIM or DMARC)
  DomainCheckResult  - the combined verdict returned to callers

All models are frozen dataclasses; results are created once per request
and never mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Final

# ---------------------------------------------------------------------------
# Status values
# ---------------------------------------------------------------------------

STATUS_PASS: Final[str] = "pass"
STATUS_FAIL: Final[str] = "fail"
STATUS_WARNING: Final[str] = "warning"

VALID_STATUSES: Final[frozenset[str]] = frozenset({STATUS_PASS, STATUS_FAIL, STATUS_WARNING})

DEFAULT_DOH_URL: Final[str] = "https://cloudflare-dns.com/dns-query"
DEFAULT_TIMEOUT_SECONDS: Final[float] = 5.0


# ---------------------------------------------------------------------------
# DnsSettings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DnsSettings:
    """DNS-over-HTTPS resolver configuration."""

    doh_url: str = DEFAULT_DOH_URL
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> DnsSettings:
        """Build settings from a Flask config (or any mapping of config keys).

        Missing keys fall back to the module defaults.
        """
        return cls(
            doh_url=config.get("DOH_URL") or DEFAULT_DOH_URL,
            timeout_seconds=float(config.get("DNS_TIMEOUT_SECONDS", DEFAULT_TIMEOUT_SECONDS)),
        )


# ---------------------------------------------------------------------------
# RecordResult
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecordResult:
    """Verdict for a single authentication mechanism.

    ``record`` is the record chosen for display.  A ``fail`` with
    ``record=None`` means no matching record was published at all.
    """

    status: str
    recommendation: str
    record: str | None = None
    details: str | None = None

    def __post_init__(self) -> None:
        if self.status not in VALID_STATUSES:
            raise ValueError(f"Unknown status: {self.status!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "record": self.record,
            "recommendation": self.recommendation,
            "details": self.details,
        }


# ---------------------------------------------------------------------------
# DomainCheckResult
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DomainCheckResult:
    """Combined SPF/DKIM/DMARC verdict for one domain."""

    domain: str
    spf: RecordResult
    dkim: RecordResult
    dmarc: RecordResult
    m365: bool = False

    @property
    def all_passed(self) -> bool:
        """True when every mechanism reported ``pass``."""
        return all(r.status == STATUS_PASS for r in (self.spf, self.dkim, self.dmarc))

    def to_dict(self) -> dict[str, Any]:
        """Serialise to the flat JSON object returned by the API."""
        return {
            "domain": self.domain,
            "spf": self.spf.to_dict(),
            "dkim": self.dkim.to_dict(),
            "dmarc": self.dmarc.to_dict(),
            "m365": self.m365,
        }

"""
DMARC record validation.

Validates the DMARC (Domain-based Message Authentication, Reporting and
Conformance) record for a domain:
- Queries _dmarc.{domain} TXT record
- Requires a p= policy of none, quarantine or reject
- Requires at least one reporting tag (rua= or ruf=)
- Summarises p, sp, pct, rua and ruf in the result details

A record without reporting tags is reported as ``fail`` even though the
recommendation is phrased as a suggestion.  Callers and the UI rely on
that status, so it is kept until severity levels are reworked.
"""

from __future__ import annotations

import logging
import re

from mailauth.checker.resolver import query_txt
from mailauth.models import STATUS_FAIL, STATUS_PASS, STATUS_WARNING, DnsSettings, RecordResult

logger = logging.getLogger(__name__)

_DMARC_VERSION_RE = re.compile(r"v=DMARC1", re.IGNORECASE)

_VALID_POLICIES = {"none", "quarantine", "reject"}


def check_dmarc(domain: str, settings: DnsSettings | None = None) -> RecordResult:
    """Validate the DMARC record for *domain*.

    Args:
        domain: The domain name to check.
        settings: Optional DnsSettings for the resolver.

    Returns:
        A RecordResult carrying the untruncated record.
    """
    dmarc_domain = f"_dmarc.{domain}"
    dmarc_records = [r.strip() for r in query_txt(dmarc_domain, settings) if _DMARC_VERSION_RE.search(r)]

    if not dmarc_records:
        return RecordResult(status=STATUS_FAIL, recommendation="No DMARC record found.")

    if len(dmarc_records) > 1:
        logger.info("Multiple DMARC records for %s (%d)", domain, len(dmarc_records))
        return RecordResult(
            status=STATUS_WARNING,
            record=dmarc_records[0],
            recommendation=(
                f"Multiple DMARC records found ({len(dmarc_records)}); only the first "
                "will be used. Remove the extra records."
            ),
        )

    dmarc_record = dmarc_records[0]
    tags = parse_dmarc_tags(dmarc_record)
    issues = validate_dmarc_tags(tags)
    details = _describe_policy(tags)

    if issues:
        return RecordResult(
            status=STATUS_FAIL,
            record=dmarc_record,
            recommendation="DMARC record has issues: " + "; ".join(issues) + ".",
            details=details,
        )

    return RecordResult(
        status=STATUS_PASS,
        record=dmarc_record,
        recommendation="DMARC record looks good!",
        details=details,
    )


def parse_dmarc_tags(record: str) -> dict[str, str]:
    """Parse a DMARC record string into a dict of tag=value pairs.

    Tags are separated by semicolons. Whitespace around tags and values
    is stripped. The v=DMARC1 tag is included in the output.
    """
    tags: dict[str, str] = {}
    for part in record.split(";"):
        part = part.strip()
        if not part:
            continue
        if "=" in part:
            key, _, value = part.partition("=")
            tags[key.strip().lower()] = value.strip()
        else:
            # Some records have bare tokens; store as-is
            tags[part.lower()] = ""
    return tags


def validate_dmarc_tags(tags: dict[str, str]) -> list[str]:
    """Return the issues found in a parsed DMARC record."""
    issues: list[str] = []

    policy = tags.get("p")
    if policy is None or policy.lower() not in _VALID_POLICIES:
        issues.append("invalid policy (p= must be none, quarantine or reject)")

    if "rua" not in tags and "ruf" not in tags:
        issues.append("no reporting address; consider adding rua= or ruf= to receive reports")

    return issues


def extract_uris(value: str) -> list[str]:
    """Extract URIs from a DMARC rua/ruf tag value.

    Values are comma-separated URIs, potentially with size limits
    (e.g., mailto:user@example.com!10m).
    """
    if not value:
        return []
    uris: list[str] = []
    for item in value.split(","):
        item = item.strip()
        if item:
            # Strip any size qualifier
            match = re.match(r"(mailto:[^\s!]+)", item, re.IGNORECASE)
            uris.append(match.group(1) if match else item)
    return uris


def _describe_policy(tags: dict[str, str]) -> str:
    parts = [f"policy={tags.get('p') or 'missing'}"]
    if "sp" in tags:
        parts.append(f"subdomain policy={tags['sp']}")
    if "pct" in tags:
        parts.append(f"pct={tags['pct']}")
    for tag in ("rua", "ruf"):
        uris = extract_uris(tags.get(tag, ""))
        if uris:
            parts.append(f"{tag}={', '.join(uris)}")

    details = "; ".join(parts)
    if (tags.get("p") or "").lower() == "none":
        details += "; p=none only monitors, consider quarantine or reject"
    return details

"""
SPF record validation.

Validates the SPF (Sender Policy Framework) record for a domain:
- Presence and uniqueness of the v=spf1 record
- Mechanism grammar (ip4, ip6, a, mx, include, exists, ptr, all,
  redirect=, exp=, bare qualifier+label terms)
- Presence of a terminal "all" mechanism
- DNS lookup count reporting (limit of 10 per RFC 7208)
"""

from __future__ import annotations

import logging
import re

from mailauth.checker.resolver import query_txt
from mailauth.models import STATUS_FAIL, STATUS_PASS, STATUS_WARNING, DnsSettings, RecordResult

logger = logging.getLogger(__name__)

_SPF_VERSION_RE = re.compile(r"^v=spf1(\s|$)", re.IGNORECASE)

# Mechanism and modifier prefixes accepted after an optional qualifier.
_RECOGNISED_PREFIXES: tuple[str, ...] = (
    "ip4:",
    "ip6:",
    "a:",
    "mx:",
    "include:",
    "exists:",
    "ptr:",
    "redirect=",
    "exp=",
)

# Terms that count against the 10-lookup limit (RFC 7208 Section 4.6.4)
_DNS_LOOKUP_MECHANISMS = {"include", "a", "mx", "ptr", "exists", "redirect"}

_TERMINAL_ALL = {"all", "-all", "~all", "?all"}

# Mechanisms valid without an argument, e.g. "mx", "-a", "a/24", "mx/24//64", "ptr"
_BARE_TERM_RE = re.compile(r"^[+\-~?]?(a|mx|ptr)(/{1,2}\d{1,3})*$", re.IGNORECASE)

_MAX_DNS_LOOKUPS = 10


def check_spf(domain: str, settings: DnsSettings | None = None) -> RecordResult:
    """Validate the SPF record for *domain*.

    Args:
        domain: The domain name to check.
        settings: Optional DnsSettings for the resolver.

    Returns:
        A RecordResult carrying the untruncated record.
    """
    spf_records = [r.strip() for r in query_txt(domain, settings) if _SPF_VERSION_RE.match(r.strip())]

    if not spf_records:
        return RecordResult(status=STATUS_FAIL, recommendation="No SPF record found.")

    if len(spf_records) > 1:
        logger.info("Multiple SPF records for %s (%d)", domain, len(spf_records))
        return RecordResult(
            status=STATUS_WARNING,
            record=spf_records[0],
            recommendation=(
                f"Multiple SPF records found ({len(spf_records)}). Only one SPF record "
                "is allowed; receivers will treat the first as authoritative. "
                "Merge them and remove the others."
            ),
        )

    spf_record = spf_records[0]
    terms = spf_record.split()[1:]
    issues = validate_spf_terms(terms)
    details = _describe_terms(terms)

    if issues:
        return RecordResult(
            status=STATUS_FAIL,
            record=spf_record,
            recommendation="SPF record has issues: " + "; ".join(issues) + ".",
            details=details,
        )

    return RecordResult(
        status=STATUS_PASS,
        record=spf_record,
        recommendation="SPF record looks good!",
        details=details,
    )


def validate_spf_terms(terms: list[str]) -> list[str]:
    """Return the grammar issues found in the terms following ``v=spf1``."""
    issues: list[str] = []

    if not terms:
        issues.append("no mechanisms defined")

    lowered = [t.lower() for t in terms]
    if not _TERMINAL_ALL.intersection(lowered):
        if "+all" in lowered:
            issues.append("+all lets any host send mail for the domain; use -all or ~all")
        else:
            issues.append("missing all mechanism (end the record with -all or ~all)")

    for term in terms:
        if not _is_recognised_term(term):
            issues.append(f"unrecognised mechanism '{term}'")

    return issues


def _is_recognised_term(term: str) -> bool:
    body = term.lower()
    if body[:1] in "+-~?":
        body = body[1:]
    if body == "all" or body.startswith(_RECOGNISED_PREFIXES):
        return True
    return bool(_BARE_TERM_RE.match(term))


def parse_mechanisms(terms: list[str]) -> list[dict[str, str]]:
    """Parse SPF terms into a list of mechanism dicts.

    Each mechanism dict has keys: qualifier, type, value.
    """
    mechanisms: list[dict[str, str]] = []

    for part in terms:
        part = part.strip()
        if not part:
            continue

        qualifier = "+"
        if part[0] in "+-~?":
            qualifier = part[0]
            part = part[1:]

        if "=" in part:
            # redirect=, exp=
            key, _, value = part.partition("=")
        elif ":" in part:
            # include:domain, ip4:range, a:domain, mx:domain
            key, _, value = part.partition(":")
        elif "/" in part:
            # a/24, mx/24
            key, _, val = part.partition("/")
            value = f"/{val}"
        else:
            key, value = part, ""

        mechanisms.append({"qualifier": qualifier, "type": key.lower(), "value": value})

    return mechanisms


def _describe_terms(terms: list[str]) -> str:
    mechanisms = parse_mechanisms(terms)
    lookup_count = sum(1 for m in mechanisms if m["type"] in _DNS_LOOKUP_MECHANISMS)
    details = f"{len(mechanisms)} mechanisms, {lookup_count} DNS lookups"
    if lookup_count > _MAX_DNS_LOOKUPS:
        details += (
            f"; exceeds the {_MAX_DNS_LOOKUPS} DNS lookup limit, "
            "receivers may return permerror"
        )
    return details

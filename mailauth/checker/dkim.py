"""
DKIM key validation.

DKIM selectors cannot be discovered from DNS, so a fixed list of common
selectors is probed:
- Queries {selector}._domainkey.{domain} TXT records, one selector after
  another in COMMON_SELECTORS order
- Pools every returned record (selector order, then resolver order)
- Parses DKIM record tags (v=, k=, p=) of the single candidate
- Validates required tags, key type and public key alphabet
- Measures key size using the cryptography library (details only)
"""

from __future__ import annotations

import base64
import binascii
import logging
import re
from typing import Final

from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives.serialization import load_der_public_key

from mailauth.checker.resolver import query_txt
from mailauth.models import STATUS_FAIL, STATUS_PASS, STATUS_WARNING, DnsSettings, RecordResult

logger = logging.getLogger(__name__)

# Probe order is significant: the first pooled candidate is the displayed one.
COMMON_SELECTORS: Final[tuple[str, ...]] = ("default", "mail", "selector1", "google", "k1")

_CANDIDATE_MARKERS_RE = re.compile(r"v=DKIM1|k=rsa|k=ed25519", re.IGNORECASE)
_PUBLIC_KEY_RE = re.compile(r"^[A-Za-z0-9+/]+={0,2}")

_VALID_KEY_TYPES = {"rsa", "ed25519"}
_REQUIRED_TAGS = ("v", "k", "p")


def check_dkim(
    domain: str,
    settings: DnsSettings | None = None,
    selectors: tuple[str, ...] = COMMON_SELECTORS,
) -> RecordResult:
    """Validate the DKIM keys published for *domain* under common selectors.

    Args:
        domain: The domain name to check.
        settings: Optional DnsSettings for the resolver.
        selectors: Selectors to probe, in display-priority order.

    Returns:
        A RecordResult carrying the untruncated record.
    """
    candidates: list[tuple[str, str]] = []
    for selector in selectors:
        for record in query_txt(f"{selector}._domainkey.{domain}", settings):
            if _CANDIDATE_MARKERS_RE.search(record):
                candidates.append((selector, record.strip()))

    if not candidates:
        return RecordResult(
            status=STATUS_FAIL,
            recommendation="No DKIM records found for common selectors.",
        )

    if len(candidates) > 1:
        found_at = ", ".join(dict.fromkeys(selector for selector, _ in candidates))
        return RecordResult(
            status=STATUS_WARNING,
            record=candidates[0][1],
            recommendation=(
                f"Multiple DKIM records found ({len(candidates)}). "
                "Verify that every selector publishes a valid, current key."
            ),
            details=f"Selectors with DKIM records: {found_at}",
        )

    selector, record = candidates[0]
    tags = parse_dkim_tags(record)
    issues = validate_dkim_tags(tags)
    details = _describe_key(selector, tags)

    if issues:
        return RecordResult(
            status=STATUS_FAIL,
            record=record,
            recommendation="DKIM record has issues: " + "; ".join(issues) + ".",
            details=details,
        )

    return RecordResult(
        status=STATUS_PASS,
        record=record,
        recommendation="DKIM record looks good!",
        details=details,
    )


def parse_dkim_tags(record: str) -> dict[str, str]:
    """Parse a DKIM TXT record into a dict of tag=value pairs.

    Tags are separated by semicolons. Leading/trailing whitespace on tags
    and values is stripped.
    """
    tags: dict[str, str] = {}
    for part in record.split(";"):
        part = part.strip()
        if not part or "=" not in part:
            continue
        key, _, value = part.partition("=")
        tags[key.strip().lower()] = value.strip()
    return tags


def validate_dkim_tags(tags: dict[str, str]) -> list[str]:
    """Return the tag issues found in a single DKIM record."""
    issues: list[str] = []

    missing = [f"{tag}=" for tag in _REQUIRED_TAGS if tag not in tags]
    if missing:
        issues.append("missing required tags: " + ", ".join(missing))

    key_type = tags.get("k")
    if key_type is not None and key_type.lower() not in _VALID_KEY_TYPES:
        issues.append(f"unsupported key type k={key_type} (use rsa or ed25519)")

    if "p" in tags:
        if tags["p"] == "":
            issues.append("public key is empty (p= with no value means the key is revoked)")
        elif public_key_value(tags) is None:
            issues.append("public key is not valid base64")

    return issues


def public_key_value(tags: dict[str, str]) -> str | None:
    """Return the base64 public key captured from the p= tag, or None.

    Whitespace inside the value is ignored; long keys are often wrapped.
    """
    match = _PUBLIC_KEY_RE.match("".join(tags.get("p", "").split()))
    return match.group(0) if match else None


def _describe_key(selector: str, tags: dict[str, str]) -> str:
    details = f"Selector: {selector}"
    p_value = public_key_value(tags)
    if p_value is None:
        return details

    key_size = measure_key_size(p_value, tags.get("k", "rsa").lower())
    if key_size is None:
        return f"{details}; key size could not be determined"
    return f"{details}; {key_size}-bit key"


def measure_key_size(p_value: str, key_type: str) -> int | None:
    """Decode the base64 public key and return its size in bits.

    Uses the cryptography library to load the DER-encoded public key.

    Args:
        p_value: The base64-encoded public key from the p= tag.
        key_type: The key algorithm (rsa, ed25519).

    Returns:
        Key size in bits, or None if parsing fails.
    """
    try:
        der_bytes = base64.b64decode(p_value, validate=True)
    except (binascii.Error, ValueError) as exc:
        logger.debug("Failed to decode DKIM p= base64: %s", exc)
        return None

    if key_type == "ed25519":
        # Ed25519 keys are always 256 bits
        return 256

    try:
        public_key = load_der_public_key(der_bytes)
    except (ValueError, TypeError, UnsupportedAlgorithm) as exc:
        logger.debug("Failed to load DER public key: %s", exc)
        return None

    return getattr(public_key, "key_size", None)

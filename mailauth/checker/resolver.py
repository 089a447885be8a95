"""
DNS-over-HTTPS resolver wrapper.

Issues JSON-format DoH queries (``application/dns-json``) and classifies
every failure mode (HTTP error status, timeout, transport error, malformed
body, empty answer) instead of raising.  Validators call ``query_txt`` and
only ever see a list of decoded TXT strings: absence of records and
resolver failure look the same to them.
"""

from __future__ import annotations

import logging
import re
from typing import Any

import dns.rdatatype
import requests
from flask import current_app, has_app_context

from mailauth.models import DnsSettings

logger = logging.getLogger(__name__)

_DOH_HEADERS: dict[str, str] = {"Accept": "application/dns-json"}

# One quoted TXT character-string, allowing escaped characters inside.
_TXT_CHUNK_RE = re.compile(r'"((?:[^"\\]|\\.)*)"')


def load_settings() -> DnsSettings:
    """Return resolver settings from the active Flask app, or the defaults."""
    if has_app_context():
        return DnsSettings.from_config(current_app.config)
    return DnsSettings()


def _empty(error_type: str, error_message: str) -> dict[str, Any]:
    return {
        "success": False,
        "records": [],
        "error_type": error_type,
        "error_message": error_message,
    }


def decode_txt_data(data: str) -> str:
    """Strip the wrapping quotes from a DoH TXT ``data`` value.

    Long TXT records are published as several quoted character-strings
    (``"v=DKIM1; p=MIIB" "IjANBg..."``); these are joined back into one
    string.
    """
    stripped = data.strip()
    if stripped.startswith('"') and stripped.endswith('"'):
        chunks = _TXT_CHUNK_RE.findall(stripped)
        if chunks:
            return "".join(chunks)
    return stripped.strip('"')


def query_dns(
    name: str,
    rdtype: str,
    settings: DnsSettings | None = None,
) -> dict[str, Any]:
    """Execute a DoH query with robust error handling.

    Args:
        name: The DNS name to query.
        rdtype: DNS record type string (e.g. "TXT").
        settings: Optional DnsSettings; taken from the app config if omitted.

    Returns:
        A dict with keys:
            success (bool): Whether the query returned records.
            records (list[str]): The decoded record strings, in answer order.
            error_type (str|None): Category of error if failed.
            error_message (str|None): Human-readable error description.
    """
    if settings is None:
        settings = load_settings()

    rdtype = rdtype.upper()

    try:
        response = requests.get(
            settings.doh_url,
            params={"name": name, "type": rdtype},
            headers=_DOH_HEADERS,
            timeout=settings.timeout_seconds,
        )
    except requests.Timeout:
        logger.warning("DoH timeout for %s/%s", name, rdtype)
        return _empty("TIMEOUT", f"DNS query timed out for {name}/{rdtype}")
    except requests.RequestException as exc:
        logger.warning("DoH transport error for %s/%s: %s", name, rdtype, exc)
        return _empty("TRANSPORT_ERROR", f"DNS transport error for {name}/{rdtype}: {exc}")

    if not response.ok:
        logger.warning("DoH HTTP %d for %s/%s", response.status_code, name, rdtype)
        return _empty("HTTP_ERROR", f"Resolver returned HTTP {response.status_code}")

    try:
        body = response.json()
    except ValueError:
        logger.warning("DoH response for %s/%s is not valid JSON", name, rdtype)
        return _empty("BAD_RESPONSE", f"Resolver returned an unreadable body for {name}/{rdtype}")

    answers = body.get("Answer") if isinstance(body, dict) else None
    if not answers:
        logger.info("NoAnswer for %s/%s", name, rdtype)
        return _empty("NO_ANSWER", f"No {rdtype} records found for {name}")

    wanted_type = int(dns.rdatatype.from_text(rdtype))
    records: list[str] = []
    for answer in answers:
        if not isinstance(answer, dict) or not isinstance(answer.get("data"), str):
            continue
        # CNAME hops are part of the answer chain; keep only the requested type
        if "type" in answer and answer["type"] != wanted_type:
            continue
        data = answer["data"]
        records.append(decode_txt_data(data) if wanted_type == dns.rdatatype.TXT else data)

    if not records:
        logger.info("NoAnswer for %s/%s (no %s data in answer)", name, rdtype, rdtype)
        return _empty("NO_ANSWER", f"No {rdtype} records found for {name}")

    logger.debug("DoH query %s/%s returned %d records", name, rdtype, len(records))
    return {
        "success": True,
        "records": records,
        "error_type": None,
        "error_message": None,
    }


def query_txt(name: str, settings: DnsSettings | None = None) -> list[str]:
    """Return the decoded TXT strings published at *name*, or [] on any failure."""
    return query_dns(name, "TXT", settings)["records"]

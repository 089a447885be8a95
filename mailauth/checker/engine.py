"""
Check orchestration engine.

Coordinates the SPF, DKIM and DMARC checks for a single domain:
- Resolving resolver settings once, on the calling thread
- Running the three validators concurrently via ThreadPoolExecutor
- Combining results in a fixed order (spf, dkim, dmarc)
- Flagging Microsoft 365 hosted domains from record signatures
- Shortening long records for display after classification
- Measuring execution time
"""

from __future__ import annotations

import dataclasses
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Final

from mailauth.checker.dkim import check_dkim
from mailauth.checker.dmarc import check_dmarc
from mailauth.checker.resolver import load_settings
from mailauth.checker.spf import check_spf
from mailauth.models import DnsSettings, DomainCheckResult, RecordResult

logger = logging.getLogger(__name__)

# Content signatures of Microsoft 365 hosted mail
_M365_SPF_INCLUDE: Final[str] = "include:spf.protection.outlook.com"
_M365_DKIM_MARKER: Final[str] = "domainkey.microsoft.com"

# Display truncation: records longer than _DISPLAY_MAX_LENGTH keep
# _DISPLAY_KEEP characters on each side of the ellipsis.
_DISPLAY_MAX_LENGTH: Final[int] = 100
_DISPLAY_KEEP: Final[int] = 30
_ELLIPSIS: Final[str] = "..."


def check_domain(domain: str, settings: DnsSettings | None = None) -> DomainCheckResult:
    """Run the SPF, DKIM and DMARC checks for an already-normalised *domain*.

    Args:
        domain: The domain name to check.
        settings: Optional DnsSettings; taken from the app config if omitted.

    Returns:
        The combined DomainCheckResult with display-ready records.
    """
    start_time = time.monotonic()

    # Worker threads have no app context, so settings are resolved here.
    if settings is None:
        settings = load_settings()

    with ThreadPoolExecutor(max_workers=3, thread_name_prefix="mailauth-check") as executor:
        spf_future = executor.submit(check_spf, domain, settings)
        dkim_future = executor.submit(check_dkim, domain, settings)
        dmarc_future = executor.submit(check_dmarc, domain, settings)

        spf_result = spf_future.result()
        dkim_result = dkim_future.result()
        dmarc_result = dmarc_future.result()

    m365 = is_m365(spf_result.record, dkim_result.record)

    result = DomainCheckResult(
        domain=domain,
        spf=_for_display(spf_result),
        dkim=_for_display(dkim_result),
        dmarc=_for_display(dmarc_result),
        m365=m365,
    )

    elapsed_ms = int((time.monotonic() - start_time) * 1000)
    logger.info(
        "Check completed for %s: spf=%s dkim=%s dmarc=%s m365=%s elapsed=%dms",
        domain,
        spf_result.status,
        dkim_result.status,
        dmarc_result.status,
        m365,
        elapsed_ms,
    )
    return result


def is_m365(spf_record: str | None, dkim_record: str | None) -> bool:
    """Return True when the untruncated records carry Microsoft 365 signatures."""
    if spf_record and _M365_SPF_INCLUDE in spf_record.lower():
        return True
    return bool(dkim_record and _M365_DKIM_MARKER in dkim_record.lower())


def truncate_record(record: str | None) -> str | None:
    """Shorten *record* for display, keeping its first and last 30 characters."""
    if record is None or len(record) <= _DISPLAY_MAX_LENGTH:
        return record
    return f"{record[:_DISPLAY_KEEP]}{_ELLIPSIS}{record[-_DISPLAY_KEEP:]}"


def _for_display(result: RecordResult) -> RecordResult:
    return dataclasses.replace(result, record=truncate_record(result.record))

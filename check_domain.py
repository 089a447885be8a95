"""
Standalone command-line check for one domain.

Runs the same SPF, DKIM and DMARC validation as the web API and prints the
result as JSON on stdout.  No admission control is applied.

USAGE
=====
  # Check a domain with the configured resolver
  python check_domain.py example.com

  # Use another DNS-over-HTTPS endpoint and a shorter timeout
  python check_domain.py example.com --doh-url https://dns.google/resolve --timeout 2

  # Enable debug-level logging (written to stderr)
  python check_domain.py example.com --verbose

EXIT CODES
==========
  0 - All three checks passed
  1 - At least one check reported fail or warning, or the check crashed
  2 - Invalid domain
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Check the SPF, DKIM and DMARC records of a domain.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("domain", metavar="DOMAIN", help="Domain name to check.")
    parser.add_argument(
        "--doh-url",
        metavar="URL",
        default=None,
        help="DNS-over-HTTPS JSON endpoint (default: DOH_URL from the configuration).",
    )
    parser.add_argument(
        "--timeout",
        metavar="SECONDS",
        type=float,
        default=None,
        help="Per-lookup timeout in seconds (default: DNS_TIMEOUT_SECONDS).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        default=False,
        help="Enable DEBUG-level logging output.",
    )
    return parser.parse_args(argv)


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _configure_logging(verbose: bool) -> logging.Logger:
    """Configure root logger for the script.

    Logs go to stderr so that stdout carries only the JSON result.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        stream=sys.stderr,
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%SZ",
    )
    return logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Main entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> int:
    """Run the check and print the result.

    Returns:
        Integer exit code (see module docstring).
    """
    args = _parse_args(argv)
    logger = _configure_logging(args.verbose)

    from mailauth.checker.engine import check_domain
    from mailauth.config import Config
    from mailauth.exceptions import InputError
    from mailauth.models import DnsSettings
    from mailauth.utils.domain import normalize_domain

    try:
        domain = normalize_domain(args.domain)
    except InputError as exc:
        print(json.dumps(exc.to_dict()), file=sys.stderr)
        return 2

    settings = DnsSettings(
        doh_url=args.doh_url or Config.DOH_URL,
        timeout_seconds=args.timeout if args.timeout is not None else Config.DNS_TIMEOUT_SECONDS,
    )

    try:
        result = check_domain(domain, settings)
    except Exception:
        logger.exception("Check failed for domain '%s'.", domain)
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0 if result.all_passed else 1


if __name__ == "__main__":
    sys.exit(main())

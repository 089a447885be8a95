"""
API blueprint routes.

Provides the JSON endpoint that checks a domain's SPF, DKIM and DMARC
records, plus unthrottled service and health endpoints.

Every check request passes admission control first, so throttled callers
and malformed input are both rejected before any DNS work is done.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import current_app, jsonify, request

from mailauth.api import bp
from mailauth.checker.engine import check_domain
from mailauth.exceptions import AdmissionRejected
from mailauth.models import DnsSettings
from mailauth.utils.domain import normalize_domain
from mailauth.utils.rate_limit import admit_request, normalize_source_key

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _enforce_rate_limit() -> None:
    """Count this request against its source address, raising when refused."""
    config = current_app.config
    if not config.get("RATE_LIMIT_ENABLED", True):
        return

    source_key = normalize_source_key(request.headers.get(config["RATE_LIMIT_KEY_HEADER"]))
    window_seconds = config["RATE_LIMIT_WINDOW_SECONDS"]

    if not admit_request(
        source_key,
        limit=config["RATE_LIMIT_MAX_REQUESTS"],
        window_seconds=window_seconds,
    ):
        minutes = max(1, window_seconds // 60)
        raise AdmissionRejected(
            "rate_limited",
            f"Failed to check domain please wait {minutes} minutes",
        )


# ---------------------------------------------------------------------------
# Public endpoints
# ---------------------------------------------------------------------------


@bp.route("/")
def index():
    """Service identification endpoint."""
    return jsonify({"name": current_app.config.get("SERVICE_NAME", "mailauth")})


@bp.route("/health")
def health():
    """Public health-check endpoint."""
    return jsonify(
        {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "service": current_app.config.get("SERVICE_NAME", "mailauth"),
        }
    )


@bp.route("/check-domain", methods=["POST"])
def check_domain_route():
    """Check the SPF, DKIM and DMARC records of the posted domain.

    Request body: ``{"domain": "example.com"}``

    Response format:
    {
        "domain": "example.com",
        "spf":   {"status": "pass", "record": "...", "recommendation": "...", "details": "..."},
        "dkim":  {...},
        "dmarc": {...},
        "m365": false
    }
    """
    _enforce_rate_limit()

    payload = request.get_json(silent=True)
    domain = normalize_domain(payload.get("domain") if isinstance(payload, dict) else None)

    try:
        result = check_domain(domain, DnsSettings.from_config(current_app.config))
    except Exception:
        logger.exception("Domain check failed for %s", domain)
        return jsonify({"error": "Failed to check domain, please try again later"}), 500

    return jsonify(result.to_dict())

"""
Unit tests for mailauth/checker/resolver.py

All requests.get calls are mocked so no real network activity occurs.
"""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import requests

from mailauth.checker.resolver import decode_txt_data, load_settings, query_dns, query_txt
from mailauth.models import DnsSettings

_PATCH_TARGET = "mailauth.checker.resolver.requests.get"

_SETTINGS = DnsSettings(doh_url="https://doh.test/dns-query", timeout_seconds=3.0)


# ---------------------------------------------------------------------------
# Helper: build a fake DoH response
# ---------------------------------------------------------------------------


def _doh_response(*answers: dict, status_code: int = 200, body: object = None) -> MagicMock:
    """Return a mock requests.Response carrying a DoH JSON body."""
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 400
    if body is None:
        body = {"Status": 0, "Answer": list(answers)} if answers else {"Status": 3}
    response.json.return_value = body
    return response


def _txt(data: str) -> dict:
    return {"name": "example.com.", "type": 16, "TTL": 300, "data": data}


# ---------------------------------------------------------------------------
# Tests - successful resolution
# ---------------------------------------------------------------------------


def test_query_txt_returns_records_with_quotes_stripped():
    """Quoted TXT data from the resolver is returned without quotes."""
    with patch(_PATCH_TARGET, return_value=_doh_response(_txt('"v=spf1 -all"'))):
        records = query_txt("example.com", _SETTINGS)

    assert records == ["v=spf1 -all"]


def test_query_txt_preserves_answer_order():
    """Multiple TXT answers are returned in resolver order."""
    answers = [_txt('"first"'), _txt('"second"'), _txt('"third"')]
    with patch(_PATCH_TARGET, return_value=_doh_response(*answers)):
        records = query_txt("example.com", _SETTINGS)

    assert records == ["first", "second", "third"]


def test_query_dns_sends_name_type_and_accept_header():
    """The DoH request carries name/type parameters, JSON accept header and timeout."""
    with patch(_PATCH_TARGET, return_value=_doh_response(_txt('"x"'))) as mock_get:
        query_dns("_dmarc.example.com", "txt", _SETTINGS)

    args, kwargs = mock_get.call_args
    assert args[0] == "https://doh.test/dns-query"
    assert kwargs["params"] == {"name": "_dmarc.example.com", "type": "TXT"}
    assert kwargs["headers"]["Accept"] == "application/dns-json"
    assert kwargs["timeout"] == 3.0


def test_query_dns_skips_cname_hops():
    """CNAME entries in the answer chain are not returned as TXT data."""
    answers = [
        {"name": "selector1._domainkey.example.com.", "type": 5, "data": "selector1.example.net."},
        _txt('"v=DKIM1; k=rsa; p=AAAA"'),
    ]
    with patch(_PATCH_TARGET, return_value=_doh_response(*answers)):
        result = query_dns("selector1._domainkey.example.com", "TXT", _SETTINGS)

    assert result["success"] is True
    assert result["records"] == ["v=DKIM1; k=rsa; p=AAAA"]


def test_query_dns_only_cname_is_no_answer():
    """An answer holding only CNAME hops counts as no TXT records."""
    answers = [{"name": "a.example.com.", "type": 5, "data": "b.example.net."}]
    with patch(_PATCH_TARGET, return_value=_doh_response(*answers)):
        result = query_dns("a.example.com", "TXT", _SETTINGS)

    assert result["success"] is False
    assert result["error_type"] == "NO_ANSWER"
    assert result["records"] == []


# ---------------------------------------------------------------------------
# Tests - TXT decoding
# ---------------------------------------------------------------------------


def test_decode_txt_data_joins_character_strings():
    """Long TXT records split into several quoted strings are joined."""
    assert decode_txt_data('"v=DKIM1; k=rsa; p=MIIB" "IjANBgkq"') == "v=DKIM1; k=rsa; p=MIIBIjANBgkq"


def test_decode_txt_data_unquoted_value_is_unchanged():
    assert decode_txt_data("v=spf1 -all") == "v=spf1 -all"


# ---------------------------------------------------------------------------
# Tests - failures are never raised
# ---------------------------------------------------------------------------


def test_query_dns_http_error_returns_empty():
    """A non-success HTTP status is reported as HTTP_ERROR with no records."""
    with patch(_PATCH_TARGET, return_value=_doh_response(status_code=503, body={})):
        result = query_dns("example.com", "TXT", _SETTINGS)

    assert result["success"] is False
    assert result["error_type"] == "HTTP_ERROR"
    assert result["records"] == []


def test_query_dns_missing_answer_key_returns_empty():
    """A body without an Answer key (e.g. NXDOMAIN) yields NO_ANSWER."""
    with patch(_PATCH_TARGET, return_value=_doh_response()):
        result = query_dns("nonexistent.example.com", "TXT", _SETTINGS)

    assert result["success"] is False
    assert result["error_type"] == "NO_ANSWER"
    assert result["records"] == []


def test_query_dns_timeout_returns_empty():
    """requests.Timeout is classified as TIMEOUT."""
    with patch(_PATCH_TARGET, side_effect=requests.Timeout("slow")):
        result = query_dns("slow.example.com", "TXT", _SETTINGS)

    assert result["success"] is False
    assert result["error_type"] == "TIMEOUT"
    assert "timed out" in (result["error_message"] or "").lower()


def test_query_dns_connection_error_returns_empty():
    """Transport failures are downgraded to an empty result."""
    with patch(_PATCH_TARGET, side_effect=requests.ConnectionError("refused")):
        result = query_dns("example.com", "TXT", _SETTINGS)

    assert result["success"] is False
    assert result["error_type"] == "TRANSPORT_ERROR"
    assert result["records"] == []


def test_query_dns_invalid_json_returns_empty():
    """An unreadable body is classified as BAD_RESPONSE."""
    response = _doh_response(_txt('"x"'))
    response.json.side_effect = ValueError("not json")
    with patch(_PATCH_TARGET, return_value=response):
        result = query_dns("example.com", "TXT", _SETTINGS)

    assert result["success"] is False
    assert result["error_type"] == "BAD_RESPONSE"


def test_query_txt_failure_is_empty_list():
    with patch(_PATCH_TARGET, side_effect=requests.ConnectionError("down")):
        assert query_txt("example.com", _SETTINGS) == []


# ---------------------------------------------------------------------------
# Tests - settings
# ---------------------------------------------------------------------------


def test_load_settings_reads_app_config(app):
    """Inside an app context the DoH endpoint and timeout come from config."""
    settings = load_settings()

    assert settings.doh_url == "https://doh.test/dns-query"
    assert settings.timeout_seconds == 2.0


def test_load_settings_outside_app_uses_defaults():
    settings = load_settings()

    assert settings.doh_url == "https://cloudflare-dns.com/dns-query"
    assert settings.timeout_seconds == 5.0

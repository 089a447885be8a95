"""
Tests for the check_domain.py command-line entry point.

The engine is patched, so no DNS calls occur.
"""

from __future__ import annotations

import json
from unittest.mock import patch

import check_domain
from mailauth.models import DomainCheckResult, RecordResult

_ENGINE_PATCH = "mailauth.checker.engine.check_domain"


def _result(status: str) -> DomainCheckResult:
    record = RecordResult(status=status, record="r", recommendation="text")
    return DomainCheckResult(domain="example.com", spf=record, dkim=record, dmarc=record)


def test_cli_prints_json_and_exits_zero_when_all_pass(capsys):
    with patch(_ENGINE_PATCH, return_value=_result("pass")) as mock_check:
        code = check_domain.main(["Example.com"])

    assert code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["domain"] == "example.com"
    assert output["spf"]["status"] == "pass"
    assert mock_check.call_args.args[0] == "example.com"


def test_cli_exits_one_when_a_check_does_not_pass(capsys):
    with patch(_ENGINE_PATCH, return_value=_result("warning")):
        code = check_domain.main(["example.com"])

    assert code == 1
    assert json.loads(capsys.readouterr().out)["dkim"]["status"] == "warning"


def test_cli_invalid_domain_exits_two(capsys):
    with patch(_ENGINE_PATCH) as mock_check:
        code = check_domain.main(["not a domain"])

    assert code == 2
    assert "Invalid domain" in capsys.readouterr().err
    mock_check.assert_not_called()


def test_cli_overrides_resolver_settings():
    with patch(_ENGINE_PATCH, return_value=_result("pass")) as mock_check:
        check_domain.main(["example.com", "--doh-url", "https://dns.example/resolve", "--timeout", "1.5"])

    settings = mock_check.call_args.args[1]
    assert settings.doh_url == "https://dns.example/resolve"
    assert settings.timeout_seconds == 1.5


def test_cli_engine_crash_exits_one():
    with patch(_ENGINE_PATCH, side_effect=RuntimeError("boom")):
        assert check_domain.main(["example.com"]) == 1

import pytest
from starlette.requests import Request

from portfolio.services.ip_allowlist import IpAllowlist, get_client_ip


def make_request(headers=None, client=("203.0.113.9", 5000)):
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


@pytest.mark.parametrize("raw", ["", "*", "  ", None])
def test_empty_or_wildcard_admits_everyone(raw):
    allowlist = IpAllowlist.from_config(raw)
    assert allowlist.enabled is False
    assert allowlist.is_allowed("198.51.100.7")
    assert allowlist.is_allowed("unknown")


def test_configured_list_admits_only_exact_matches():
    allowlist = IpAllowlist.from_config("127.0.0.1, 192.168.1.100")

    assert allowlist.is_allowed("127.0.0.1")
    assert allowlist.is_allowed("192.168.1.100")
    assert not allowlist.is_allowed("192.168.1.10")
    assert not allowlist.is_allowed("10.0.0.1")


def test_comparison_is_case_sensitive():
    allowlist = IpAllowlist.from_config("fe80::abcd")

    assert allowlist.is_allowed("fe80::abcd")
    assert not allowlist.is_allowed("FE80::ABCD")


def test_forwarded_for_takes_priority():
    request = make_request({"X-Forwarded-For": "10.1.1.1, 10.2.2.2", "X-Real-IP": "10.3.3.3"})
    assert get_client_ip(request) == "10.1.1.1"


def test_real_ip_used_without_forwarded_for():
    request = make_request({"X-Real-IP": "10.3.3.3"})
    assert get_client_ip(request) == "10.3.3.3"


def test_falls_back_to_connection_address():
    assert get_client_ip(make_request()) == "203.0.113.9"


def test_unknown_without_any_source():
    assert get_client_ip(make_request(client=None)) == "unknown"

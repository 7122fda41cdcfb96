from starlette.requests import Request

from storefront.logging import anonymize_ip
from storefront.utils.network import get_client_ip


def make_request(headers=None, client_host="1.2.3.4"):
    scope = {
        "type": "http",
        "headers": [],
        "client": (client_host, 1234) if client_host else None,
    }
    if headers:
        scope["headers"] = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request(scope)


def test_get_client_ip_prefers_direct_client_host():
    req = make_request(
        headers={"X-Forwarded-For": "203.0.113.5"},
        client_host="5.5.5.5",
    )
    assert get_client_ip(req) == "5.5.5.5"


def test_get_client_ip_uses_x_forwarded_for_for_trusted_proxy():
    req = make_request(
        headers={"X-Forwarded-For": "203.0.113.5, 70.41.3.18"},
        client_host="10.1.1.1",
    )
    assert get_client_ip(req) == "203.0.113.5"


def test_get_client_ip_falls_back_to_proxy_address():
    req = make_request(client_host="127.0.0.1")
    assert get_client_ip(req) == "127.0.0.1"


def test_get_client_ip_does_not_trust_cf_connecting_ip():
    req = make_request(headers={"CF-Connecting-IP": "203.0.113.5"}, client_host=None)
    assert get_client_ip(req) == "unknown"


def test_get_client_ip_handles_invalid_values():
    req = make_request(headers={"X-Forwarded-For": "not-an-ip"}, client_host=None)
    assert get_client_ip(req) == "unknown"


def test_anonymize_ip_returns_network_with_prefix_for_ipv4(monkeypatch):
    monkeypatch.setenv("LOG_IP_MODE", "anonymized")
    assert anonymize_ip("203.0.113.5") == "203.0.113.0/24"


def test_anonymize_ip_returns_network_with_prefix_for_ipv6(monkeypatch):
    monkeypatch.setenv("LOG_IP_MODE", "anonymized")
    assert anonymize_ip("2001:db8::1234") == "2001:db8::/64"


def test_anonymize_ip_modes():
    assert anonymize_ip("203.0.113.5", mode="full") == "203.0.113.5"
    assert anonymize_ip("203.0.113.5", mode="off") is None
    assert anonymize_ip("garbage", mode="full") == "unknown"

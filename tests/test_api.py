"""HTTP API tests."""

import pytest
from fastapi.testclient import TestClient

from ghttpping.api.v1 import network
from ghttpping.main import app
from ghttpping.schemas.network import (
    DnsResolution,
    EnvironmentCheckResult,
    HttpPingDualResult,
    HttpPingResult,
)

client = TestClient(app)


def test_health() -> None:
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_environment(monkeypatch) -> None:
    async def fake_check() -> EnvironmentCheckResult:
        return EnvironmentCheckResult(ipv4_connectivity=True, dns_resolution=True, internet_available=True)

    monkeypatch.setattr(network, "run_environment_check", fake_check)

    response = client.get("/api/v1/network/environment")

    assert response.status_code == 200
    body = response.json()
    assert body["internet_available"] is True
    assert body["ipv6_connectivity"] is False
    assert body["adapters"] == []


def test_ping_dual(monkeypatch) -> None:
    seen = {}

    async def fake_ping(url, ignore_tls_errors=False, save_verbose_log=False):
        seen.update(url=url, ignore_tls_errors=ignore_tls_errors, save_verbose_log=save_verbose_log)
        return HttpPingDualResult(
            url=url,
            dns_resolution=DnsResolution(ipv4_addresses=["93.184.216.34"]),
            ipv4=HttpPingResult(url=url, ip_address="93.184.216.34", status_code=200, response_time_ms=12, success=True),
            ipv6=HttpPingResult(url=url, error_message="No IPv6 address found for example.com"),
        )

    monkeypatch.setattr(network, "ping_http_dual", fake_ping)

    response = client.post(
        "/api/v1/network/ping-dual",
        json={"url": "https://example.com", "ignore_tls_errors": True},
    )

    assert response.status_code == 200
    assert seen == {"url": "https://example.com", "ignore_tls_errors": True, "save_verbose_log": False}
    body = response.json()
    assert body["ipv4"]["success"] is True
    assert body["ipv6"]["success"] is False


@pytest.mark.parametrize("url", ["ftp://bad", "", "https://exa;mple.com/"])
def test_ping_dual_rejects_bad_url(url: str) -> None:
    response = client.post("/api/v1/network/ping-dual", json={"url": url})

    assert response.status_code == 400


def test_dns_resolve(monkeypatch) -> None:
    async def fake_resolve(hostname):
        return DnsResolution(ipv4_addresses=["93.184.216.34"], ipv6_addresses=["2606:2800:220:1::1"])

    monkeypatch.setattr(network, "resolve_dns", fake_resolve)

    response = client.post("/api/v1/network/dns", json={"hostname": " example.com "})

    assert response.status_code == 200
    assert response.json() == {
        "ipv4_addresses": ["93.184.216.34"],
        "ipv6_addresses": ["2606:2800:220:1::1"],
    }


def test_dns_resolve_rejects_metacharacters() -> None:
    response = client.post("/api/v1/network/dns", json={"hostname": "example.com;rm"})

    assert response.status_code == 400


def test_dns_resolve_rejects_empty() -> None:
    response = client.post("/api/v1/network/dns", json={"hostname": ""})

    assert response.status_code == 422


def test_report() -> None:
    response = client.post(
        "/api/v1/network/report",
        json={"environment": {"ipv4_connectivity": True, "dns_resolution": True, "internet_available": True}},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert "Internet available: yes" in response.text

"""Tests for the environment check orchestrator."""

import asyncio
import time

import httpx
import pytest

from ghttpping.config import settings
from ghttpping.core.errors import CommandError
from ghttpping.schemas.network import DnsResolution
from ghttpping.services.diagnostics import run_environment_check

IPCONFIG = """
Ethernet adapter Ethernet:

   DNS Servers . . . . . . . . . . . : 192.168.1.53
                                       2001:db8::53
   NetBIOS over Tcpip. . . . . . . . : Enabled
"""


class FakeSource:
    def __init__(self, adapters_error: Exception | None = None, dump_delay: float = 0.0):
        self.adapters_error = adapters_error
        self.dump_delay = dump_delay

    def list_adapters(self) -> str:
        if self.adapters_error is not None:
            raise self.adapters_error
        return "Ethernet\n"

    def list_addresses(self, name: str) -> str:
        return "192.168.1.10\n2001:db8::10\n"

    def dump_dns_config(self) -> str:
        if self.dump_delay:
            time.sleep(self.dump_delay)
        return IPCONFIG

    def list_dns_servers(self) -> str:
        return ""


def _echo_transport(ipv4_up: bool, ipv6_up: bool, calls: list | None = None) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(request.url.host)
        up = ipv4_up if request.url.host.startswith("getipv4") else ipv6_up
        if not up:
            raise httpx.ConnectError("Network is unreachable", request=request)
        client_host = "203.0.113.7" if request.url.host.startswith("getipv4") else "2001:db8::7"
        return httpx.Response(
            200, json={"client_host": client_host, "datetime_jst": "2026-10-18 21:00:00"}
        )

    return httpx.MockTransport(handler)


def _resolver(ok: bool):
    async def resolve(hostname: str) -> DnsResolution:
        if ok:
            return DnsResolution(ipv4_addresses=["93.184.216.34"])
        return DnsResolution()

    return resolve


def _run(source=None, ipv4_up=True, ipv6_up=True, dns_ok=True, calls=None):
    return asyncio.run(
        run_environment_check(
            source or FakeSource(),
            transport=_echo_transport(ipv4_up, ipv6_up, calls),
            resolver=_resolver(dns_ok),
        )
    )


def test_healthy_dual_stack_environment() -> None:
    result = _run()

    assert result.internet_available is True
    assert result.ipv4_connectivity is True
    assert result.ipv6_connectivity is True
    assert result.dns_resolution is True
    assert result.error_messages == []
    assert result.ipv4_global_ip.client_host == "203.0.113.7"
    assert result.ipv6_global_ip.client_host == "2001:db8::7"
    assert [a.name for a in result.adapters] == ["Ethernet"]
    assert result.adapters[0].has_ipv4_global is False
    assert result.adapters[0].has_ipv6_global is True
    assert result.dns_servers[0].interface_alias == "Ethernet"
    assert result.dns_servers[0].ipv4_dns_servers == ["192.168.1.53"]
    assert result.dns_servers[0].ipv6_dns_servers == ["2001:db8::53"]


def test_ipv6_failure_is_silent_when_ipv4_works() -> None:
    calls: list[str] = []

    result = _run(ipv6_up=False, calls=calls)

    assert result.internet_available is True
    assert result.ipv6_connectivity is False
    assert result.ipv6_global_ip is None
    assert result.ipv4_global_ip is not None
    assert not any("IPv6" in message for message in result.error_messages)
    # Global IP lookups only run for families whose egress check passed
    assert calls.count("getipv6.0nyx.net") == 2
    assert calls.count("getipv4.0nyx.net") == 2


def test_ipv4_failure_is_reported() -> None:
    result = _run(ipv4_up=False)

    assert result.internet_available is True
    assert result.ipv4_connectivity is False
    assert result.ipv4_global_ip is None
    assert result.ipv6_global_ip is not None
    assert any(m.startswith("IPv4 connectivity check failed") for m in result.error_messages)
    assert not any("IPv6" in message for message in result.error_messages)


def test_both_families_down_reports_both() -> None:
    result = _run(ipv4_up=False, ipv6_up=False)

    assert result.internet_available is False
    assert result.ipv4_global_ip is None
    assert result.ipv6_global_ip is None
    assert result.error_messages[0].startswith("IPv4 connectivity check failed")
    assert result.error_messages[1].startswith("IPv6 connectivity check failed")


def test_dns_failure_means_no_internet() -> None:
    result = _run(dns_ok=False)

    assert result.dns_resolution is False
    assert result.internet_available is False
    assert result.ipv4_global_ip is None
    assert any("DNS resolution check failed" in m for m in result.error_messages)


@pytest.mark.parametrize("ipv4_up", [True, False])
@pytest.mark.parametrize("ipv6_up", [True, False])
@pytest.mark.parametrize("dns_ok", [True, False])
def test_internet_available_formula(ipv4_up: bool, ipv6_up: bool, dns_ok: bool) -> None:
    result = _run(ipv4_up=ipv4_up, ipv6_up=ipv6_up, dns_ok=dns_ok)

    assert result.internet_available == ((ipv4_up or ipv6_up) and dns_ok)
    if not result.internet_available:
        assert result.ipv4_global_ip is None
        assert result.ipv6_global_ip is None


def test_adapter_listing_failure_does_not_abort() -> None:
    source = FakeSource(adapters_error=CommandError("powershell", "exited with status 1"))

    result = _run(source=source)

    assert result.adapters == []
    assert result.internet_available is True
    assert result.error_messages[0].startswith("Failed to list network adapters")
    assert result.dns_servers != []


def test_dns_server_inventory_timeout(monkeypatch) -> None:
    monkeypatch.setattr(settings, "DNS_SERVER_TIMEOUT", 0.05)

    result = _run(source=FakeSource(dump_delay=0.5))

    assert result.dns_servers == []
    assert "Timed out while collecting DNS server information" in result.error_messages
    assert result.internet_available is True

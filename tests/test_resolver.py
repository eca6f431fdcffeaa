"""Tests for per-family DNS resolution."""

import asyncio
import socket
import time

from ghttpping.core.addresses import AddressFamily
from ghttpping.schemas.network import DnsResolution
from ghttpping.services.resolver import check_dns_resolution, resolve_dns


def _addrinfo(family, ip):
    if family == socket.AF_INET6:
        return (family, socket.SOCK_STREAM, 6, "", (ip, 80, 0, 0))
    return (family, socket.SOCK_STREAM, 6, "", (ip, 80))


def test_resolve_dns_splits_and_dedupes(monkeypatch) -> None:
    calls = []

    def fake_getaddrinfo(host, port, family=0, type=0, proto=0, flags=0):
        calls.append((host, family))
        return [
            _addrinfo(socket.AF_INET, "93.184.216.34"),
            _addrinfo(socket.AF_INET6, "2606:2800:220:1:248:1893:25c8:1946"),
            _addrinfo(socket.AF_INET, "93.184.216.34"),
            _addrinfo(socket.AF_INET, "93.184.216.35"),
        ]

    monkeypatch.setattr(socket, "getaddrinfo", fake_getaddrinfo)

    result = asyncio.run(resolve_dns("example.com"))

    assert calls == [("example.com", socket.AF_UNSPEC)]
    assert result.ipv4_addresses == ["93.184.216.34", "93.184.216.35"]
    assert result.ipv6_addresses == ["2606:2800:220:1:248:1893:25c8:1946"]
    assert not set(result.ipv4_addresses) & set(result.ipv6_addresses)


def test_resolve_dns_failure_is_empty(monkeypatch) -> None:
    def fake_getaddrinfo(*args, **kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(socket, "getaddrinfo", fake_getaddrinfo)

    result = asyncio.run(resolve_dns("nonexistent.invalid"))

    assert result == DnsResolution()
    assert result.for_family(AddressFamily.IPV4) == []


def test_resolve_dns_timeout_is_empty(monkeypatch) -> None:
    def slow_getaddrinfo(*args, **kwargs):
        time.sleep(0.5)
        return [_addrinfo(socket.AF_INET, "192.0.2.1")]

    monkeypatch.setattr(socket, "getaddrinfo", slow_getaddrinfo)

    result = asyncio.run(resolve_dns("slow.example", timeout=0.05))

    assert result.ipv4_addresses == []
    assert result.ipv6_addresses == []


def test_check_dns_resolution_uses_resolver() -> None:
    seen = []

    async def resolver(hostname: str) -> DnsResolution:
        seen.append(hostname)
        return DnsResolution(ipv6_addresses=["2001:db8::1"])

    async def empty(hostname: str) -> DnsResolution:
        return DnsResolution()

    assert asyncio.run(check_dns_resolution("example.org", resolver=resolver)) is True
    assert seen == ["example.org"]
    assert asyncio.run(check_dns_resolution(resolver=empty)) is False

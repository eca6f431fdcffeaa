import asyncio
import logging
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import httpx

from ghttpping.config import settings
from ghttpping.core.addresses import AddressFamily
from ghttpping.core.errors import CommandError, EgressError
from ghttpping.schemas.network import (
    DnsServerInfo,
    EnvironmentCheckResult,
    GlobalIpInfo,
    NetworkAdapter,
)
from ghttpping.services.egress import check_connectivity, fetch_global_ip_info
from ghttpping.services.inventory import (
    InventorySource,
    collect_adapters,
    collect_dns_servers,
    default_inventory_source,
)
from ghttpping.services.resolver import Resolver, check_dns_resolution

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class StepResult(Generic[T]):
    """Value of one diagnostic step plus the messages it wants reported."""

    value: T
    errors: list[str] = field(default_factory=list)


def _echo_url(family: AddressFamily) -> str:
    return settings.IPV4_ECHO_URL if family is AddressFamily.IPV4 else settings.IPV6_ECHO_URL


async def _adapters_step(source: InventorySource) -> StepResult[list[NetworkAdapter]]:
    try:
        adapters = await asyncio.to_thread(collect_adapters, source)
    except CommandError as exc:
        logger.warning("Adapter inventory failed: %s", exc)
        return StepResult([], [f"Failed to list network adapters: {exc}"])
    return StepResult(adapters)


async def _egress_step(
    family: AddressFamily, transport: httpx.AsyncBaseTransport | None
) -> StepResult[bool]:
    try:
        await check_connectivity(
            _echo_url(family), settings.EGRESS_TIMEOUT, family, transport=transport
        )
    except EgressError as exc:
        logger.info("%s egress check failed: %s", family.label, exc)
        return StepResult(False, [f"{family.label} connectivity check failed: {exc}"])
    return StepResult(True)


async def _dns_step(resolver: Resolver | None) -> StepResult[bool]:
    resolved = await check_dns_resolution(settings.DNS_CHECK_HOSTNAME, resolver)
    if not resolved:
        return StepResult(False, [f"DNS resolution check failed for {settings.DNS_CHECK_HOSTNAME}"])
    return StepResult(True)


async def _dns_servers_step(source: InventorySource) -> StepResult[list[DnsServerInfo]]:
    try:
        servers = await asyncio.wait_for(
            asyncio.to_thread(collect_dns_servers, source),
            timeout=settings.DNS_SERVER_TIMEOUT,
        )
    except asyncio.TimeoutError:
        logger.warning("DNS server inventory timed out after %ss", settings.DNS_SERVER_TIMEOUT)
        return StepResult([], ["Timed out while collecting DNS server information"])
    except CommandError as exc:
        logger.warning("DNS server inventory failed: %s", exc)
        return StepResult([], [f"Failed to collect DNS server information: {exc}"])
    return StepResult(servers)


async def _global_ip_step(
    family: AddressFamily, transport: httpx.AsyncBaseTransport | None
) -> StepResult[GlobalIpInfo | None]:
    try:
        info = await fetch_global_ip_info(
            _echo_url(family), settings.EGRESS_TIMEOUT, family, transport=transport
        )
    except EgressError as exc:
        logger.info("%s global IP lookup failed: %s", family.label, exc)
        return StepResult(None, [f"Failed to get {family.label} global IP: {exc}"])
    return StepResult(info)


async def run_environment_check(
    source: InventorySource | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    resolver: Resolver | None = None,
) -> EnvironmentCheckResult:
    """One best-effort snapshot of the host's network environment.

    Every step failure ends up in ``error_messages``; nothing here raises for
    a degraded environment.
    """
    source = source or default_inventory_source()

    adapters, ipv4, ipv6, dns = await asyncio.gather(
        _adapters_step(source),
        _egress_step(AddressFamily.IPV4, transport),
        _egress_step(AddressFamily.IPV6, transport),
        _dns_step(resolver),
    )
    dns_servers = await _dns_servers_step(source)

    errors: list[str] = []
    errors.extend(adapters.errors)
    errors.extend(ipv4.errors)
    # A v4-only host is common; its missing v6 is not worth flagging
    if not ipv4.value:
        errors.extend(ipv6.errors)
    errors.extend(dns.errors)
    errors.extend(dns_servers.errors)

    internet_available = (ipv4.value or ipv6.value) and dns.value

    global_ips: dict[AddressFamily, GlobalIpInfo | None] = {
        AddressFamily.IPV4: None,
        AddressFamily.IPV6: None,
    }
    if internet_available:
        families = [
            family
            for family, step in ((AddressFamily.IPV4, ipv4), (AddressFamily.IPV6, ipv6))
            if step.value
        ]
        lookups = await asyncio.gather(*(_global_ip_step(f, transport) for f in families))
        for family, lookup in zip(families, lookups):
            global_ips[family] = lookup.value
            errors.extend(lookup.errors)

    result = EnvironmentCheckResult(
        adapters=adapters.value,
        ipv4_connectivity=ipv4.value,
        ipv6_connectivity=ipv6.value,
        dns_resolution=dns.value,
        internet_available=internet_available,
        ipv4_global_ip=global_ips[AddressFamily.IPV4],
        ipv6_global_ip=global_ips[AddressFamily.IPV6],
        dns_servers=dns_servers.value,
        error_messages=errors,
    )
    logger.info(
        "Environment check | internet=%s ipv4=%s ipv6=%s dns=%s adapters=%d errors=%d",
        result.internet_available, result.ipv4_connectivity, result.ipv6_connectivity,
        result.dns_resolution, len(result.adapters), len(errors),
    )
    return result

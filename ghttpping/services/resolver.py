import asyncio
import logging
import socket
from typing import Awaitable, Callable

from ghttpping.config import settings
from ghttpping.schemas.network import DnsResolution

logger = logging.getLogger(__name__)

Resolver = Callable[[str], Awaitable[DnsResolution]]


async def resolve_dns(hostname: str, timeout: float | None = None) -> DnsResolution:
    """Resolve ``hostname`` into per-family address lists.

    Resolver failures are not raised: an empty result is itself the
    diagnostic answer.
    """
    try:
        results = await asyncio.wait_for(
            asyncio.to_thread(
                socket.getaddrinfo, hostname, 80, socket.AF_UNSPEC, socket.SOCK_STREAM
            ),
            timeout=timeout or settings.DNS_RESOLVE_TIMEOUT,
        )
    except asyncio.TimeoutError:
        logger.warning("DNS resolution timed out for %s", hostname)
        return DnsResolution()
    except (socket.gaierror, UnicodeError, OSError) as exc:
        logger.warning("DNS resolution failed for %s: %s", hostname, exc)
        return DnsResolution()

    ipv4: list[str] = []
    ipv6: list[str] = []
    for family, _type, _proto, _canonname, sockaddr in results:
        ip = sockaddr[0]
        if family == socket.AF_INET:
            if ip not in ipv4:
                ipv4.append(ip)
        elif family == socket.AF_INET6:
            if ip not in ipv6:
                ipv6.append(ip)

    logger.info(
        "DNS resolve | hostname=%s ipv4=%d ipv6=%d", hostname, len(ipv4), len(ipv6)
    )
    return DnsResolution(ipv4_addresses=ipv4, ipv6_addresses=ipv6)


async def check_dns_resolution(
    hostname: str | None = None, resolver: Resolver | None = None
) -> bool:
    """Baseline check: does a well-known name resolve at all?"""
    resolution = await (resolver or resolve_dns)(hostname or settings.DNS_CHECK_HOSTNAME)
    return bool(resolution.ipv4_addresses or resolution.ipv6_addresses)

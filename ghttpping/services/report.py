from ghttpping.schemas.network import (
    EnvironmentCheckResult,
    HttpPingDualResult,
    HttpPingResult,
)


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


def _environment_lines(env: EnvironmentCheckResult) -> list[str]:
    lines = [
        "## Environment check",
        f"Internet available: {_yes_no(env.internet_available)}",
        f"IPv4 connectivity: {_yes_no(env.ipv4_connectivity)}",
        f"IPv6 connectivity: {_yes_no(env.ipv6_connectivity)}",
        f"DNS resolution: {_yes_no(env.dns_resolution)}",
    ]
    for label, info in (("IPv4", env.ipv4_global_ip), ("IPv6", env.ipv6_global_ip)):
        if info:
            lines.append(f"{label} global IP: {info.client_host} ({info.datetime_jst})")

    if env.adapters:
        lines += ["", "Network adapters:"]
        for adapter in env.adapters:
            v4 = _yes_no(adapter.has_ipv4) + (" (global)" if adapter.has_ipv4_global else "")
            v6 = _yes_no(adapter.has_ipv6) + (" (global)" if adapter.has_ipv6_global else "")
            lines.append(f"  - {adapter.name}")
            lines.append(f"    IPv4: {v4}")
            lines.append(f"    IPv6: {v6}")
            if adapter.ip_addresses:
                lines.append(f"    Addresses: {', '.join(adapter.ip_addresses)}")

    if env.dns_servers:
        lines += ["", "DNS servers:"]
        for server in env.dns_servers:
            addrs = server.ipv4_dns_servers + server.ipv6_dns_servers
            lines.append(f"  - {server.interface_alias}: {', '.join(addrs)}")

    if env.error_messages:
        lines += ["", "Errors / warnings:"]
        lines += [f"  - {message}" for message in env.error_messages]
    return lines


def _ping_lines(label: str, result: HttpPingResult) -> list[str]:
    lines = [f"[{label}] {'success' if result.success else 'failure'}"]
    if result.ip_address:
        lines.append(f"  IP address: {result.ip_address}")
    if result.status_code is not None:
        lines.append(f"  Status code: {result.status_code}")
    if result.response_time_ms is not None:
        lines.append(f"  Response time: {result.response_time_ms} ms")
    if result.error_message:
        lines.append(f"  Error: {result.error_message}")
    return lines


def build_text_report(
    environment: EnvironmentCheckResult | None = None,
    ping: HttpPingDualResult | None = None,
) -> str:
    """Plain-text summary suitable for pasting into a mail or ticket."""
    lines = ["=== ghttpping connectivity report ==="]
    if environment is not None:
        lines += [""] + _environment_lines(environment)
    if ping is not None:
        resolution = ping.dns_resolution
        lines += [
            "",
            "## HTTP reachability",
            f"URL: {ping.url}",
            f"Resolved IPv4: {', '.join(resolution.ipv4_addresses) or '-'}",
            f"Resolved IPv6: {', '.join(resolution.ipv6_addresses) or '-'}",
        ]
        lines += _ping_lines("IPv4", ping.ipv4)
        lines += _ping_lines("IPv6", ping.ipv6)
    if environment is None and ping is None:
        lines += ["", "No results yet."]
    return "\n".join(lines) + "\n"

import logging
import platform
import re
import unicodedata
from dataclasses import dataclass
from typing import Protocol

from ghttpping.config import settings
from ghttpping.core.addresses import AddressFamily, address_family, is_usable_address
from ghttpping.core.errors import CommandError
from ghttpping.schemas.network import DnsServerInfo, NetworkAdapter
from ghttpping.services.commands import decode_command_output, run_command

logger = logging.getLogger(__name__)

MAX_ADAPTER_NAME_LENGTH = 255


class InventorySource(Protocol):
    """Raw text producer for adapter and DNS-server inventory."""

    def list_adapters(self) -> str:
        """Newline-separated names of interfaces that are up."""
        ...

    def list_addresses(self, name: str) -> str:
        """Newline-separated addresses assigned to one interface."""
        ...

    def dump_dns_config(self) -> str:
        """Verbose per-interface configuration report (ipconfig /all shape)."""
        ...

    def list_dns_servers(self) -> str:
        """Flat ``interface : address`` listing, one server per line."""
        ...


# ── Windows: PowerShell + ipconfig ──

_PS_PREFIX = ["powershell", "-NoProfile", "-NonInteractive", "-WindowStyle", "Hidden", "-Command"]

_PS_LIST_ADAPTERS = (
    "Get-NetAdapter | Where-Object {$_.Status -eq 'Up'} | Select-Object -ExpandProperty Name"
)
_PS_LIST_ADDRESSES = (
    "Get-NetIPAddress -InterfaceAlias '{alias}' -ErrorAction SilentlyContinue | "
    "Where-Object {{$_.PrefixOrigin -ne 'WellKnown'}} | Select-Object -ExpandProperty IPAddress"
)
_PS_LIST_DNS_SERVERS = """Get-NetAdapter | Where-Object {$_.Status -eq 'Up'} | ForEach-Object {
    $iface = $_.Name
    Get-DnsClientServerAddress -InterfaceAlias $iface -ErrorAction SilentlyContinue |
    Select-Object -ExpandProperty ServerAddresses |
    ForEach-Object { "$iface : $_" }
}"""


def _ps_quote(value: str) -> str:
    # Single-quoted PowerShell literal: the only escape is a doubled quote
    return value.replace("'", "''")


class WindowsInventorySource:
    def __init__(self, encoding: str | None = None):
        self.encoding = encoding or settings.COMMAND_ENCODING

    def _powershell(self, script: str) -> str:
        return decode_command_output(run_command([*_PS_PREFIX, script]), self.encoding)

    def list_adapters(self) -> str:
        return self._powershell(_PS_LIST_ADAPTERS)

    def list_addresses(self, name: str) -> str:
        return self._powershell(_PS_LIST_ADDRESSES.format(alias=_ps_quote(name)))

    def dump_dns_config(self) -> str:
        return decode_command_output(run_command(["ipconfig", "/all"]), self.encoding)

    def list_dns_servers(self) -> str:
        return self._powershell(_PS_LIST_DNS_SERVERS)


# ── Linux / macOS with iproute2 and systemd-resolved ──

_IP_LINK_RE = re.compile(r"^\d+:\s+(?P<name>[^:@\s]+)(?:@\S+)?:\s+<(?P<flags>[^>]*)>")
_IP_ADDR_RE = re.compile(r"\binet6?\s+(?P<addr>[0-9A-Fa-f:.]+)(?:/\d+)?")
_RESOLVECTL_RE = re.compile(r"^(?:Link\s+\d+\s+\((?P<link>[^)]+)\)|(?P<global>Global))\s*:\s*(?P<servers>.*)$")


class PosixInventorySource:
    encoding = "utf-8"

    def _run(self, cmd: list[str]) -> str:
        return decode_command_output(run_command(cmd), self.encoding)

    def list_adapters(self) -> str:
        names = []
        for line in self._run(["ip", "-o", "link", "show", "up"]).splitlines():
            match = _IP_LINK_RE.match(line.strip())
            if match and "LOOPBACK" not in match.group("flags").split(","):
                names.append(match.group("name"))
        return "\n".join(names)

    def list_addresses(self, name: str) -> str:
        output = self._run(["ip", "-o", "addr", "show", "dev", name])
        return "\n".join(m.group("addr") for m in _IP_ADDR_RE.finditer(output))

    def dump_dns_config(self) -> str:
        # No verbose per-interface report here; the flat listing is used instead
        return ""

    def list_dns_servers(self) -> str:
        lines = []
        for raw in self._run(["resolvectl", "dns"]).splitlines():
            match = _RESOLVECTL_RE.match(raw.strip())
            if not match:
                continue
            alias = match.group("link") or match.group("global")
            lines.extend(f"{alias} : {server}" for server in match.group("servers").split())
        return "\n".join(lines)


def default_inventory_source() -> InventorySource:
    if platform.system().lower() == "windows":
        return WindowsInventorySource()
    return PosixInventorySource()


# ── Parsing ──


@dataclass(frozen=True)
class LabelSet:
    language: str
    adapter_markers: tuple[str, ...]
    dns_server_labels: tuple[str, ...]


# Checked in order; add a row to support another ipconfig display language
LOCALIZED_LABELS: tuple[LabelSet, ...] = (
    LabelSet("en", adapter_markers=("adapter",), dns_server_labels=("dns servers",)),
    LabelSet("ja", adapter_markers=("アダプター",), dns_server_labels=("dns サーバー",)),
)

# Attribute rows look like "   Description . . . . . : value"
_PLACEHOLDER = " . "


def is_valid_adapter_name(name: str) -> bool:
    if not name or len(name) > MAX_ADAPTER_NAME_LENGTH:
        return False
    return all(unicodedata.category(ch) != "Cc" for ch in name)


def parse_adapter_names(text: str) -> list[str]:
    return [line.strip() for line in text.splitlines() if line.strip()]


def parse_address_list(text: str) -> list[str]:
    """Keep real, non-loopback addresses; everything else is noise."""
    return [line.strip() for line in text.splitlines() if is_usable_address(line.strip())]


def _section_name(line: str) -> str | None:
    """Interface name if ``line`` opens an adapter section, else None."""
    if not line or line[0].isspace() or ":" not in line:
        return None
    head = line.split(":", 1)[0].strip()
    for labels in LOCALIZED_LABELS:
        for marker in labels.adapter_markers:
            match = re.search(re.escape(marker) + r"\s+", head, re.IGNORECASE)
            if match:
                return head[match.end():].strip() or head
    return None


def _is_dns_label_line(line: str) -> bool:
    if ":" not in line:
        return False
    lowered = line.lower()
    return any(label in lowered for ls in LOCALIZED_LABELS for label in ls.dns_server_labels)


class _DnsBuckets:
    def __init__(self):
        self._servers: dict[str, tuple[list[str], list[str]]] = {}

    def add(self, alias: str, token: str) -> None:
        token = token.strip()
        family = address_family(token)
        if family is None:
            return
        ipv4, ipv6 = self._servers.setdefault(alias, ([], []))
        bucket = ipv4 if family is AddressFamily.IPV4 else ipv6
        if token not in bucket:
            bucket.append(token)

    def touch(self, alias: str) -> None:
        self._servers.setdefault(alias, ([], []))

    def result(self) -> list[DnsServerInfo]:
        return [
            DnsServerInfo(interface_alias=alias, ipv4_dns_servers=v4, ipv6_dns_servers=v6)
            for alias, (v4, v6) in self._servers.items()
            if v4 or v6
        ]


def parse_ipconfig_dns(text: str) -> list[DnsServerInfo]:
    """Parse the verbose ``ipconfig /all`` report (English or Japanese)."""
    buckets = _DnsBuckets()
    current: str | None = None
    capturing = False

    for line in text.splitlines():
        if not line.strip():
            continue

        name = _section_name(line)
        if name is not None:
            current = name
            capturing = False
            buckets.touch(current)
            continue

        if not line[0].isspace():
            # Some other top-level heading ends any value list
            capturing = False
            continue

        if current is None:
            continue

        if _is_dns_label_line(line):
            capturing = True
            for token in line.split(":", 1)[1].split():
                buckets.add(current, token)
            continue

        if _PLACEHOLDER in line:
            capturing = False
            continue

        if capturing:
            for token in line.split():
                buckets.add(current, token)

    return buckets.result()


def parse_flat_dns(text: str) -> list[DnsServerInfo]:
    """Parse ``interface : address`` lines."""
    buckets = _DnsBuckets()
    for line in text.splitlines():
        alias, sep, address = line.strip().partition(" : ")
        if sep and alias.strip():
            buckets.add(alias.strip(), address)
    return buckets.result()


# ── Collection ──


def collect_adapters(source: InventorySource) -> list[NetworkAdapter]:
    """Build the adapter inventory. CommandError from the name listing propagates."""
    adapters: list[NetworkAdapter] = []
    for name in parse_adapter_names(source.list_adapters()):
        if not is_valid_adapter_name(name):
            logger.warning("Skipping adapter with invalid name: %r", name)
            continue
        try:
            addresses = parse_address_list(source.list_addresses(name))
        except CommandError as exc:
            logger.warning("Could not list addresses for adapter %s: %s", name, exc)
            continue
        adapters.append(NetworkAdapter(name=name, ip_addresses=addresses))
    logger.info("Collected %d network adapters", len(adapters))
    return adapters


def collect_dns_servers(source: InventorySource) -> list[DnsServerInfo]:
    """Verbose report first; flat listing when it fails or finds nothing."""
    try:
        servers = parse_ipconfig_dns(source.dump_dns_config())
        if servers:
            return servers
        logger.info("Verbose DNS report yielded no interfaces, using flat listing")
    except CommandError as exc:
        logger.warning("Verbose DNS report unavailable (%s), using flat listing", exc)
    return parse_flat_dns(source.list_dns_servers())

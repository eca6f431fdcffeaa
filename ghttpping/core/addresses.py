import ipaddress
from dataclasses import dataclass
from enum import Enum


class AddressFamily(str, Enum):
    IPV4 = "ipv4"
    IPV6 = "ipv6"

    @property
    def label(self) -> str:
        return "IPv4" if self is AddressFamily.IPV4 else "IPv6"


class AddressScope(str, Enum):
    LOOPBACK = "loopback"
    UNSPECIFIED = "unspecified"
    MULTICAST = "multicast"
    LINK_LOCAL = "link-local"
    PRIVATE = "private"
    RESERVED = "reserved"
    BROADCAST = "broadcast"
    GLOBAL = "global"


@dataclass(frozen=True)
class AddressInfo:
    family: AddressFamily | None
    scope: AddressScope | None = None
    is_global: bool = False

    @property
    def is_address(self) -> bool:
        return self.family is not None


NOT_AN_ADDRESS = AddressInfo(family=None)

_IPV4_BROADCAST = ipaddress.IPv4Address("255.255.255.255")
_RFC1918 = tuple(
    ipaddress.IPv4Network(net) for net in ("10.0.0.0/8", "172.16.0.0/12", "192.168.0.0/16")
)
_IPV6_UNIQUE_LOCAL = ipaddress.IPv6Network("fc00::/7")


def looks_like_ip(text: str) -> bool:
    """Cheap textual test used to pick address tokens out of command output."""
    dots = text.count(".")
    colons = text.count(":")
    has_digit = any(ch.isdigit() for ch in text)
    has_hex = any(ch in "0123456789abcdefABCDEF" for ch in text)
    return (dots >= 3 and has_digit) or (colons >= 2 and has_hex)


def classify_address(text: str) -> AddressInfo:
    """Classify an address string by family and scope.

    Never raises: anything that is not a literal IPv4/IPv6 address yields
    ``NOT_AN_ADDRESS``.
    """
    if not isinstance(text, str):
        return NOT_AN_ADDRESS
    candidate = text.strip()
    # "::" carries no hex digit but is still a literal
    if not looks_like_ip(candidate) and candidate != "::":
        return NOT_AN_ADDRESS
    try:
        ip = ipaddress.ip_address(candidate)
    except ValueError:
        return NOT_AN_ADDRESS

    if isinstance(ip, ipaddress.IPv4Address):
        scope = _ipv4_scope(ip)
        return AddressInfo(AddressFamily.IPV4, scope, scope is AddressScope.GLOBAL)

    scope = _ipv6_scope(ip)
    is_global = scope not in (
        AddressScope.LOOPBACK,
        AddressScope.MULTICAST,
        AddressScope.UNSPECIFIED,
    )
    return AddressInfo(AddressFamily.IPV6, scope, is_global)


def _ipv4_scope(ip: ipaddress.IPv4Address) -> AddressScope:
    if ip.is_unspecified:
        return AddressScope.UNSPECIFIED
    if ip.is_loopback:
        return AddressScope.LOOPBACK
    if ip == _IPV4_BROADCAST:
        return AddressScope.BROADCAST
    if ip.is_multicast:
        return AddressScope.MULTICAST
    if ip.is_link_local:
        return AddressScope.LINK_LOCAL
    if any(ip in net for net in _RFC1918):
        return AddressScope.PRIVATE
    # Shared (100.64/10), documentation, benchmarking, 240/4 and the like
    if not ip.is_global:
        return AddressScope.RESERVED
    return AddressScope.GLOBAL


def _ipv6_scope(ip: ipaddress.IPv6Address) -> AddressScope:
    if ip.is_unspecified:
        return AddressScope.UNSPECIFIED
    if ip.is_loopback:
        return AddressScope.LOOPBACK
    if ip.is_multicast:
        return AddressScope.MULTICAST
    if ip.is_link_local:
        return AddressScope.LINK_LOCAL
    if ip in _IPV6_UNIQUE_LOCAL:
        return AddressScope.PRIVATE
    if not ip.is_global:
        return AddressScope.RESERVED
    return AddressScope.GLOBAL


def address_family(text: str) -> AddressFamily | None:
    return classify_address(text).family


def is_usable_address(text: str) -> bool:
    """Valid address that is not loopback (adapter inventory filter)."""
    info = classify_address(text)
    return info.is_address and info.scope is not AddressScope.LOOPBACK

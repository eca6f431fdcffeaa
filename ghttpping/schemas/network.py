from pydantic import BaseModel, ConfigDict, Field, computed_field

from ghttpping.core.addresses import AddressFamily, classify_address


class NetworkAdapter(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, max_length=255)
    ip_addresses: list[str] = []

    # Derived flags: always recomputed from ip_addresses, never stored
    @computed_field
    @property
    def has_ipv4(self) -> bool:
        return any(self._families(AddressFamily.IPV4))

    @computed_field
    @property
    def has_ipv6(self) -> bool:
        return any(self._families(AddressFamily.IPV6))

    @computed_field
    @property
    def has_ipv4_global(self) -> bool:
        return any(info.is_global for info in self._families(AddressFamily.IPV4))

    @computed_field
    @property
    def has_ipv6_global(self) -> bool:
        return any(info.is_global for info in self._families(AddressFamily.IPV6))

    def _families(self, family: AddressFamily):
        for addr in self.ip_addresses:
            info = classify_address(addr)
            if info.family is family:
                yield info


class DnsServerInfo(BaseModel):
    interface_alias: str
    ipv4_dns_servers: list[str] = []
    ipv6_dns_servers: list[str] = []


class GlobalIpInfo(BaseModel):
    client_host: str
    datetime_jst: str


class EnvironmentCheckResult(BaseModel):
    adapters: list[NetworkAdapter] = []
    ipv4_connectivity: bool = False
    ipv6_connectivity: bool = False
    dns_resolution: bool = False
    internet_available: bool = False
    ipv4_global_ip: GlobalIpInfo | None = None
    ipv6_global_ip: GlobalIpInfo | None = None
    dns_servers: list[DnsServerInfo] = []
    error_messages: list[str] = []


class DnsResolution(BaseModel):
    ipv4_addresses: list[str] = []
    ipv6_addresses: list[str] = []

    def for_family(self, family: AddressFamily) -> list[str]:
        if family is AddressFamily.IPV4:
            return self.ipv4_addresses
        return self.ipv6_addresses


class HttpPingResult(BaseModel):
    url: str
    ip_address: str | None = None
    status_code: int | None = None
    response_time_ms: int | None = None
    success: bool = False
    error_message: str | None = None
    verbose_log: str | None = None


class HttpPingDualResult(BaseModel):
    url: str
    dns_resolution: DnsResolution
    ipv4: HttpPingResult
    ipv6: HttpPingResult


class HttpPingRequest(BaseModel):
    url: str
    ignore_tls_errors: bool = False
    save_verbose_log: bool = False


class DnsResolveRequest(BaseModel):
    hostname: str = Field(..., min_length=1, max_length=255)


class ReportRequest(BaseModel):
    environment: EnvironmentCheckResult | None = None
    ping: HttpPingDualResult | None = None

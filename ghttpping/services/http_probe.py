import asyncio
import logging
import time
from urllib.parse import urlsplit, urlunsplit

import httpx

from ghttpping.config import settings
from ghttpping.core.addresses import AddressFamily
from ghttpping.core.validation import ascii_hostname, effective_port, extract_hostname
from ghttpping.schemas.network import HttpPingDualResult, HttpPingResult
from ghttpping.services.resolver import Resolver, resolve_dns

logger = logging.getLogger(__name__)

_DEFAULT_PORTS = {"http": 80, "https": 443}


def _bracket(host: str) -> str:
    return f"[{host}]" if ":" in host else host


def build_target_url(url: str, ip_address: str, port: int) -> str:
    """Rewrite ``url`` so the connection goes to ``ip_address`` literally."""
    parts = urlsplit(url)
    netloc = f"{_bracket(ip_address)}:{port}"
    return urlunsplit((parts.scheme, netloc, parts.path or "/", parts.query, ""))


def build_host_header(url: str, hostname: str, port: int) -> str:
    scheme = urlsplit(url).scheme
    host = _bracket(hostname)
    if _DEFAULT_PORTS.get(scheme) == port:
        return host
    return f"{host}:{port}"


class _Transcript:
    """curl -v style record of one probe, fed by httpcore trace events."""

    def __init__(self):
        self.lines: list[str] = []

    def add(self, line: str) -> None:
        self.lines.append(line)

    @property
    def last(self) -> str | None:
        return self.lines[-1] if self.lines else None

    def text(self) -> str | None:
        return "\n".join(self.lines) if self.lines else None

    async def trace(self, event_name: str, info: dict) -> None:
        if event_name.endswith(".failed"):
            self.add(f"* {event_name}: {info.get('exception')!r}")
        elif event_name == "connection.connect_tcp.started":
            self.add(f"*   Trying {info.get('host')}:{info.get('port')}...")
        elif event_name == "connection.connect_tcp.complete":
            self.add("* Connected")
        elif event_name == "connection.start_tls.started":
            self.add(f"* TLS handshake, SNI: {info.get('server_hostname')}")
        elif event_name == "connection.start_tls.complete":
            stream = info.get("return_value")
            ssl_object = stream.get_extra_info("ssl_object") if stream is not None else None
            if ssl_object is not None:
                cipher = ssl_object.cipher()
                self.add(f"* TLS connection using {ssl_object.version()} / {cipher[0] if cipher else '?'}")
            else:
                self.add("* TLS handshake complete")
        elif event_name.endswith(".send_request_headers.started"):
            request = info.get("request")
            if request is not None:
                self.add(f"> {request.method.decode()} {request.url.target.decode()}")
                for name, value in request.headers:
                    self.add(f"> {name.decode()}: {value.decode(errors='replace')}")
        elif event_name.endswith(".receive_response_headers.complete"):
            value = info.get("return_value")
            if isinstance(value, tuple) and len(value) == 4:
                http_version, status, reason, headers = value
                self.add(f"< {http_version.decode()} {status} {reason.decode(errors='replace')}")
                for name, header_value in headers:
                    self.add(f"< {name.decode()}: {header_value.decode(errors='replace')}")


def _describe_error(exc: BaseException) -> str:
    detail = str(exc) or type(exc).__name__
    if isinstance(exc, asyncio.TimeoutError):
        return f"probe timed out after {settings.PROBE_TIMEOUT:g}s"
    if isinstance(exc, httpx.ConnectTimeout):
        return f"connection timed out: {detail}"
    if isinstance(exc, httpx.TimeoutException):
        return f"timed out: {detail}"
    if isinstance(exc, httpx.ConnectError):
        if "CERTIFICATE_VERIFY_FAILED" in detail:
            return f"TLS certificate verification failed: {detail}"
        return f"connection failed: {detail}"
    return f"{type(exc).__name__}: {detail}"


def _build_probe_client(
    ignore_tls_errors: bool, transport: httpx.AsyncBaseTransport | None
) -> httpx.AsyncClient:
    if transport is None:
        transport = httpx.AsyncHTTPTransport(verify=not ignore_tls_errors, retries=0)
    return httpx.AsyncClient(
        transport=transport,
        timeout=settings.PROBE_TIMEOUT,
        follow_redirects=False,
        # Environment proxies would bypass the forced address
        trust_env=False,
    )


async def _fetch_status(
    client: httpx.AsyncClient, target: str, headers: dict, extensions: dict
) -> int:
    # Headers are enough to classify the probe; the body is not downloaded
    async with client.stream("GET", target, headers=headers, extensions=extensions) as response:
        return response.status_code


async def probe_family(
    url: str,
    family: AddressFamily,
    addresses: list[str],
    hostname: str,
    port: int,
    ignore_tls_errors: bool = False,
    save_verbose_log: bool = False,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpPingResult:
    """Probe ``url`` over one address family.

    The TCP connection goes to the first address in ``addresses`` while TLS
    SNI and the Host header carry ``hostname``. Further addresses are not
    tried.
    """
    if not addresses:
        return HttpPingResult(
            url=url,
            success=False,
            error_message=f"No {family.label} address found for {hostname}",
        )

    ip_address = addresses[0]
    transcript = _Transcript() if save_verbose_log else None
    extensions: dict = {"sni_hostname": hostname}
    if transcript is not None:
        extensions["trace"] = transcript.trace
        transcript.add(f"* Resolve override: {hostname}:{port} -> {ip_address}")

    target = build_target_url(url, ip_address, port)
    headers = {"Host": build_host_header(url, hostname, port)}

    start = time.perf_counter()
    try:
        async with _build_probe_client(ignore_tls_errors, transport) as client:
            status_code = await asyncio.wait_for(
                _fetch_status(client, target, headers, extensions),
                timeout=settings.PROBE_TIMEOUT,
            )
    except (httpx.HTTPError, httpx.InvalidURL, OSError, UnicodeError, asyncio.TimeoutError) as exc:
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        error = _describe_error(exc)
        if transcript is not None and transcript.last:
            error = f"{error} (last event: {transcript.last})"
        logger.info(
            "HTTP probe failed | family=%s ip=%s elapsed=%dms error=%s",
            family.label, ip_address, elapsed_ms, error,
        )
        return HttpPingResult(
            url=url,
            ip_address=ip_address,
            response_time_ms=elapsed_ms,
            success=False,
            error_message=f"Connection error: {error}",
            verbose_log=transcript.text() if transcript else None,
        )

    elapsed_ms = int((time.perf_counter() - start) * 1000)
    success = 200 <= status_code < 300
    if transcript is not None:
        transcript.add(f"* Completed with HTTP {status_code} in {elapsed_ms} ms")
    logger.info(
        "HTTP probe | family=%s ip=%s status=%d elapsed=%dms",
        family.label, ip_address, status_code, elapsed_ms,
    )
    return HttpPingResult(
        url=url,
        ip_address=ip_address,
        status_code=status_code,
        response_time_ms=elapsed_ms,
        success=success,
        error_message=None if success else f"HTTP status: {status_code}",
        verbose_log=transcript.text() if transcript else None,
    )


async def ping_http_dual(
    url: str,
    ignore_tls_errors: bool = False,
    save_verbose_log: bool = False,
    *,
    resolver: Resolver | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> HttpPingDualResult:
    """Resolve the URL's host and probe it over IPv4 and IPv6 concurrently.

    Raises InvalidInputError before any I/O when the URL or hostname is
    rejected.
    """
    # Host header and SNI must carry the ASCII form
    hostname = ascii_hostname(extract_hostname(url))
    if ignore_tls_errors:
        logger.warning("SECURITY: TLS certificate verification disabled for %s", url)

    port = effective_port(url)
    resolution = await (resolver or resolve_dns)(hostname)

    ipv4_result, ipv6_result = await asyncio.gather(
        *(
            probe_family(
                url, family, resolution.for_family(family), hostname, port,
                ignore_tls_errors, save_verbose_log, transport=transport,
            )
            for family in (AddressFamily.IPV4, AddressFamily.IPV6)
        )
    )
    return HttpPingDualResult(
        url=url, dns_resolution=resolution, ipv4=ipv4_result, ipv6=ipv6_result
    )

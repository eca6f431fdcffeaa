import json
import logging

import httpx

from ghttpping.core.addresses import AddressFamily
from ghttpping.core.errors import EgressPayloadError, EgressTransportError
from ghttpping.schemas.network import GlobalIpInfo

logger = logging.getLogger(__name__)

# Binding the wildcard local address pins the connection to one family
_LOCAL_ADDRESSES = {AddressFamily.IPV4: "0.0.0.0", AddressFamily.IPV6: "::"}


def _build_egress_client(
    verify: bool,
    timeout: float,
    family: AddressFamily | None,
    transport: httpx.AsyncBaseTransport | None,
) -> httpx.AsyncClient:
    if transport is None:
        transport = httpx.AsyncHTTPTransport(
            verify=verify,
            retries=0,
            local_address=_LOCAL_ADDRESSES.get(family) if family else None,
        )
    return httpx.AsyncClient(transport=transport, timeout=timeout, follow_redirects=True)


async def _get_once(
    url: str,
    timeout: float,
    verify: bool,
    family: AddressFamily | None,
    transport: httpx.AsyncBaseTransport | None,
) -> httpx.Response:
    async with _build_egress_client(verify, timeout, family, transport) as client:
        response = await client.get(url)
        response.raise_for_status()
        return response


async def _get_with_tls_fallback(
    url: str,
    timeout: float,
    family: AddressFamily | None,
    transport: httpx.AsyncBaseTransport | None,
) -> httpx.Response:
    """GET with full verification, then once more without it.

    An intercepting proxy with a self-signed certificate still shows that
    egress works; verification is only relaxed after the strict attempt failed.
    """
    try:
        return await _get_once(url, timeout, True, family, transport)
    except httpx.HTTPError as exc:
        logger.warning("Egress request to %s failed (%s), retrying without TLS verification", url, exc)

    try:
        return await _get_once(url, timeout, False, family, transport)
    except httpx.HTTPError as exc:
        raise EgressTransportError(
            f"{url} unreachable with and without TLS verification: {exc}"
        ) from exc


async def check_connectivity(
    url: str,
    timeout: float,
    family: AddressFamily | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> None:
    """Raise EgressTransportError unless ``url`` answers with a 2xx status."""
    await _get_with_tls_fallback(url, timeout, family, transport)


async def fetch_global_ip_info(
    url: str,
    timeout: float,
    family: AddressFamily | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> GlobalIpInfo:
    response = await _get_with_tls_fallback(url, timeout, family, transport)
    try:
        body = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise EgressPayloadError(f"Invalid JSON from {url}: {exc}") from exc

    if not isinstance(body, dict):
        raise EgressPayloadError(f"Unexpected JSON from {url}: expected an object")
    client_host = body.get("client_host")
    datetime_jst = body.get("datetime_jst")
    if not isinstance(client_host, str) or not isinstance(datetime_jst, str):
        raise EgressPayloadError(f"Unexpected JSON from {url}: missing client_host/datetime_jst")
    return GlobalIpInfo(client_host=client_host, datetime_jst=datetime_jst)

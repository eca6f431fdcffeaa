import logging

from fastapi import APIRouter, HTTPException
from fastapi.responses import PlainTextResponse

from ghttpping.core.errors import InvalidInputError
from ghttpping.core.validation import validate_hostname
from ghttpping.schemas.network import (
    DnsResolution,
    DnsResolveRequest,
    EnvironmentCheckResult,
    HttpPingDualResult,
    HttpPingRequest,
    ReportRequest,
)
from ghttpping.services.diagnostics import run_environment_check
from ghttpping.services.http_probe import ping_http_dual
from ghttpping.services.report import build_text_report
from ghttpping.services.resolver import resolve_dns

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/environment", response_model=EnvironmentCheckResult)
async def environment_check():
    logger.info("Environment check requested")
    return await run_environment_check()


@router.post("/ping-dual", response_model=HttpPingDualResult)
async def ping_dual(payload: HttpPingRequest):
    logger.info(
        "Dual-stack ping | url=%s ignore_tls=%s verbose=%s",
        payload.url, payload.ignore_tls_errors, payload.save_verbose_log,
    )
    try:
        return await ping_http_dual(
            payload.url, payload.ignore_tls_errors, payload.save_verbose_log
        )
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))


@router.post("/dns", response_model=DnsResolution)
async def dns_resolve(payload: DnsResolveRequest):
    hostname = payload.hostname.strip()
    try:
        validate_hostname(hostname)
    except InvalidInputError as exc:
        raise HTTPException(status_code=400, detail=str(exc))

    logger.info("DNS resolve | hostname=%s", hostname)
    return await resolve_dns(hostname)


@router.post("/report", response_class=PlainTextResponse)
async def report(payload: ReportRequest):
    return build_text_report(payload.environment, payload.ping)

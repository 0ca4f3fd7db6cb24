"""Client for the token compiler service.

``POST {api_url}/api/v1/compile`` turns a TokenSpec into a CompiledPackage.
Failures are surfaced immediately as ``CompilationError``; whether to retry
a spec is the caller's decision.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable

import httpx
from pydantic import ValidationError

from token_e2e.errors import ApiUnavailableError, CompilationError
from token_e2e.models.package import DEFAULT_API_ERROR, ApiError, CompiledPackage
from token_e2e.models.token import TokenSpec
from token_e2e.observability import get_logger

logger = get_logger("compiler")

COMPILE_PATH = "/api/v1/compile"
HEALTH_PATH = "/healthz"
COMPILE_TIMEOUT_SECONDS = 30.0


def parse_api_error(response: httpx.Response) -> ApiError:
    """Return the structured error body, or ``DEFAULT_API_ERROR`` if unusable."""
    try:
        return ApiError.model_validate_json(response.content)
    except ValidationError:
        return DEFAULT_API_ERROR


async def compile_token(
    api_url: str,
    spec: TokenSpec,
    *,
    http_client: httpx.AsyncClient | None = None,
    timeout: float = COMPILE_TIMEOUT_SECONDS,
) -> CompiledPackage:
    """Compile ``spec`` on the remote service.

    Args:
        api_url: Base URL of the compiler service.
        spec: Token to compile; sent as the sole request payload.
        http_client: Optional shared client. A short-lived one is used otherwise.
        timeout: Upper bound for the whole request, in seconds.

    Returns:
        The compiled package for ``spec``.

    Raises:
        CompilationError: Non-2xx response, timeout, transport failure or a
            malformed success body.
    """
    url = f"{api_url.rstrip('/')}{COMPILE_PATH}"
    log = logger.bind(coin_type=spec.coin_type.value, symbol=spec.symbol)

    try:
        if http_client is None:
            async with httpx.AsyncClient() as client:
                response = await client.post(url, json=spec.to_request(), timeout=timeout)
        else:
            response = await http_client.post(url, json=spec.to_request(), timeout=timeout)
    except httpx.TimeoutException as exc:
        log.warning("compile_timeout", timeout=timeout)
        raise CompilationError(f"Compile request timed out after {timeout:g}s", timed_out=True) from exc
    except httpx.HTTPError as exc:
        log.warning("compile_transport_error", error=str(exc))
        raise CompilationError(f"Compile request failed: {exc}") from exc

    if response.is_error:
        api_error = parse_api_error(response)
        log.warning("compile_rejected", status=response.status_code, error=api_error.message)
        raise CompilationError(
            api_error.error,
            api_error.details,
            status_code=response.status_code,
        )

    try:
        compiled = CompiledPackage.model_validate_json(response.content)
    except ValidationError as exc:
        raise CompilationError("Malformed compile response", str(exc), status_code=response.status_code) from exc

    log.info("compile_succeeded", package=compiled.package_name, modules=len(compiled.modules))
    return compiled


async def check_api_health(
    api_url: str,
    *,
    max_retries: int = 30,
    interval_ms: int = 2000,
    http_client: httpx.AsyncClient | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> None:
    """Wait until ``GET {api_url}/healthz`` answers 2xx.

    Raises:
        ApiUnavailableError: No healthy answer within ``max_retries`` probes.
    """
    url = f"{api_url.rstrip('/')}{HEALTH_PATH}"
    client = http_client or httpx.AsyncClient(timeout=10.0)
    try:
        for attempt in range(1, max_retries + 1):
            try:
                response = await client.get(url)
                if response.is_success:
                    logger.info("api_ready", url=url, attempt=attempt)
                    return
                logger.debug("api_not_ready", url=url, status=response.status_code, attempt=attempt)
            except httpx.HTTPError as exc:
                logger.debug("api_unreachable", url=url, error=str(exc), attempt=attempt)
            if attempt < max_retries:
                await sleep(interval_ms / 1000)
    finally:
        if http_client is None:
            await client.aclose()

    raise ApiUnavailableError(api_url, max_retries * interval_ms / 1000)

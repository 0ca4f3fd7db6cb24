"""End-to-end run: fund once, then compile and publish every token spec.

Order of a run:
  1. Compiler health check (optional).
  2. Keypair: supplied, loaded from PRIVATE_KEY, or generated.
  3. Faucet funding, exactly once for the whole run.
  4. Balance confirmation.
  5. Per spec: compile -> publish -> explorer URL.

Steps 3 and 4 finish before any per-spec work starts, so the address is
never funded concurrently. A failing spec is recorded and the remaining
specs still run.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable, Sequence

import httpx

from token_e2e.config import E2ESettings
from token_e2e.crypto.keypair import Ed25519Keypair, get_or_create_keypair
from token_e2e.errors import CompilationError
from token_e2e.ledger.client import LedgerClient
from token_e2e.models.report import RunReport, TokenFailure, TokenSuccess
from token_e2e.models.token import CoinType, TokenSpec
from token_e2e.observability import get_logger
from token_e2e.orchestration.balance import wait_for_balance
from token_e2e.orchestration.publisher import describe_error, get_explorer_url, publish_package
from token_e2e.protocol.compiler import check_api_health, compile_token
from token_e2e.protocol.faucet import fund_from_faucet

logger = get_logger("runner")

STALE_FRAMEWORK_MARKER = "compilation framework error"
STALE_FRAMEWORK_HINT = (
    "Move framework cache may be stale. Rebuild: docker compose build --no-cache api"
)

_DEFAULT_TOKENS: tuple[tuple[CoinType, str, str, str], ...] = (
    (CoinType.SIMPLE, "E2ESimple", "ESIM", "E2E testnet validation - Simple coin"),
    (CoinType.COIN_MANAGER, "E2EManaged", "EMGD", "E2E testnet validation - CoinManager coin"),
    (CoinType.REGULATED, "E2EReg", "EREG", "E2E testnet validation - Regulated coin"),
)


def time_suffix() -> str:
    return f"t{int(time.time() * 1000)}"


def default_token_specs(
    suffix: str | None = None,
    coin_types: Sequence[CoinType] | None = None,
) -> list[TokenSpec]:
    """One spec per coin type, with names made unique by ``suffix``."""
    suffix = suffix if suffix is not None else time_suffix()
    wanted = set(coin_types) if coin_types else None
    return [
        TokenSpec(
            coin_type=coin_type,
            name=f"{name}{suffix}",
            symbol=symbol,
            decimals=6,
            description=description,
            icon_url="",
            total_supply="1000000",
            max_supply=None,
        )
        for coin_type, name, symbol, description in _DEFAULT_TOKENS
        if wanted is None or coin_type in wanted
    ]


class E2ERunner:
    """Drives one testnet validation run.

    Clients are injected; the runner never creates a ledger client itself.
    Every retry policy lives in the operations it calls.
    """

    def __init__(
        self,
        settings: E2ESettings,
        *,
        ledger_client: LedgerClient,
        http_client: httpx.AsyncClient | None = None,
        keypair: Ed25519Keypair | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.settings = settings
        self.ledger_client = ledger_client
        self.http_client = http_client
        self.keypair = keypair or get_or_create_keypair(settings.private_key_hex)
        self._sleep = sleep

    @property
    def address(self) -> str:
        return self.keypair.address

    async def run(
        self,
        specs: Sequence[TokenSpec] | None = None,
        *,
        check_health: bool = True,
    ) -> RunReport:
        """Execute the whole run and return its report.

        Raises:
            ApiUnavailableError: Health check failed.
            FundingError: Faucet and fallback both failed.
            BalanceTimeoutError: Funds never showed up.
        """
        specs = list(specs) if specs is not None else default_token_specs()
        cfg = self.settings

        if check_health:
            await check_api_health(
                cfg.api_url,
                max_retries=cfg.health_max_retries,
                interval_ms=cfg.health_interval_ms,
                http_client=self.http_client,
                sleep=self._sleep,
            )

        logger.info("wallet_ready", address=self.address)
        funding = await fund_from_faucet(
            cfg.iota_faucet_url,
            self.address,
            cfg.faucet_max_retries,
            http_client=self.http_client,
            sleep=self._sleep,
        )
        balance = await wait_for_balance(
            self.ledger_client,
            self.address,
            cfg.balance_max_retries,
            cfg.balance_interval_ms,
            sleep=self._sleep,
        )

        report = RunReport(address=self.address, funding=funding, balance=balance)
        semaphore = asyncio.Semaphore(cfg.concurrency)

        async def bounded(spec: TokenSpec) -> TokenSuccess | TokenFailure:
            async with semaphore:
                return await self.create_token(spec)

        outcomes = await asyncio.gather(*(bounded(spec) for spec in specs))
        for outcome in outcomes:
            if isinstance(outcome, TokenSuccess):
                report.successes.append(outcome)
            else:
                report.failures.append(outcome)

        logger.info(
            "run_finished",
            address=self.address,
            succeeded=len(report.successes),
            failed=len(report.failures),
        )
        return report

    async def create_token(self, spec: TokenSpec) -> TokenSuccess | TokenFailure:
        """Compile then publish one spec; failures become a TokenFailure."""
        cfg = self.settings
        log = logger.bind(coin_type=spec.coin_type.value, name=spec.name, symbol=spec.symbol)
        stage = "compile"
        try:
            compiled = await compile_token(cfg.api_url, spec, http_client=self.http_client)
            stage = "publish"
            digest = await publish_package(
                self.ledger_client,
                self.keypair,
                compiled,
                timeout=cfg.publish_timeout_seconds,
            )
        except Exception as exc:
            message = describe_error(exc)
            hint = None
            if isinstance(exc, CompilationError) and STALE_FRAMEWORK_MARKER in message.lower():
                hint = STALE_FRAMEWORK_HINT
            log.error("token_failed", stage=stage, error=message)
            return TokenFailure(spec=spec, error=message, stage=stage, hint=hint)

        explorer_url = get_explorer_url(cfg.iota_explorer_url, digest)
        log.info("token_published", digest=digest, explorer_url=explorer_url)
        return TokenSuccess(
            spec=spec,
            digest=digest,
            explorer_url=explorer_url,
            module_count=len(compiled.modules),
        )

"""``token-e2e`` command line entry point."""

from __future__ import annotations

import asyncio
from importlib.metadata import PackageNotFoundError, version

import click
import httpx
from rich.console import Console
from rich.table import Table

from token_e2e.config import E2ESettings, get_settings
from token_e2e.crypto.keypair import Ed25519Keypair
from token_e2e.errors import E2EError
from token_e2e.ledger.client import IotaRpcClient
from token_e2e.models.report import RunReport
from token_e2e.models.token import CoinType, TokenSpec
from token_e2e.observability import configure_logging
from token_e2e.orchestration.publisher import describe_error, get_explorer_url
from token_e2e.orchestration.runner import E2ERunner, default_token_specs
from token_e2e.protocol.compiler import check_api_health

EXIT_FAILURE = 1

console = Console()


def _version() -> str:
    try:
        return version("token-e2e")
    except PackageNotFoundError:
        return "0.0.0"


def render_wallet(keypair: Ed25519Keypair, *, generated: bool, out: Console | None = None) -> None:
    """Print the run's address; a generated wallet's secret is shown once so it can be reused."""
    out = out or console
    out.print(f"[bold]Wallet[/bold] {keypair.address}")
    if generated:
        out.print(
            "[yellow]⚠[/yellow] Generated a new wallet. "
            f"Set PRIVATE_KEY={keypair.export_secret_hex()} to reuse it."
        )


def render_report(report: RunReport, out: Console | None = None) -> None:
    """Print the run summary table."""
    out = out or console
    table = Table(title="SUMMARY", show_lines=False)
    table.add_column("", width=2)
    table.add_column("Coin type")
    table.add_column("Symbol")
    table.add_column("Result", overflow="fold")

    for success in report.successes:
        table.add_row("[green]✓[/green]", success.spec.coin_type.value, success.spec.symbol, success.explorer_url)
    for failure in report.failures:
        table.add_row(
            "[red]✗[/red]",
            failure.spec.coin_type.value,
            failure.spec.symbol,
            f"FAILED ({failure.stage}) - {failure.error}",
        )
    out.print(table)

    for failure in report.failures:
        if failure.hint:
            out.print(f"[yellow]⚠[/yellow] {failure.hint}")

    if report.ok:
        out.print(f"[green]✓[/green] All {len(report.successes)} tokens created successfully on testnet.")
    else:
        out.print(f"[red]✗[/red] {len(report.failures)} token(s) failed to create.")


@click.group()
@click.version_option(version=_version(), prog_name="token-e2e")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL.",
)
@click.option("--json-logs", is_flag=True, help="Emit JSON log lines.")
@click.pass_context
def cli(ctx: click.Context, log_level: str | None, json_logs: bool) -> None:
    """End-to-end testnet validation for the token creator pipeline."""
    settings = get_settings()
    configure_logging(
        log_level=log_level or settings.log_level,
        json_format=json_logs or settings.log_format == "json",
    )
    ctx.obj = settings


@cli.command()
@click.option("--api-url", default=None, help="Compiler service URL.")
@click.option("--rpc-url", default=None, help="Ledger JSON-RPC URL.")
@click.option("--faucet-url", default=None, help="Faucet URL.")
@click.option("--explorer-url", default=None, help="Explorer base URL.")
@click.option("--concurrency", type=click.IntRange(min=1), default=None, help="Specs processed at once.")
@click.option(
    "--coin-type",
    "coin_types",
    type=click.Choice([c.value for c in CoinType]),
    multiple=True,
    help="Only create these coin types (repeatable).",
)
@click.option("--skip-health-check", is_flag=True, help="Do not wait for /healthz.")
@click.pass_obj
def run(
    settings: E2ESettings,
    api_url: str | None,
    rpc_url: str | None,
    faucet_url: str | None,
    explorer_url: str | None,
    concurrency: int | None,
    coin_types: tuple[str, ...],
    skip_health_check: bool,
) -> None:
    """Fund a wallet, then compile and publish one token per coin type."""
    overrides = {
        "api_url": api_url,
        "iota_rpc_url": rpc_url,
        "iota_faucet_url": faucet_url,
        "iota_explorer_url": explorer_url,
        "concurrency": concurrency,
    }
    settings = settings.model_copy(update={k: v for k, v in overrides.items() if v is not None})
    specs = default_token_specs(coin_types=[CoinType(c) for c in coin_types] or None)

    try:
        report = asyncio.run(_run(settings, specs, check_health=not skip_health_check))
    except E2EError as exc:
        console.print(f"[red]✗[/red] {exc}")
        click.get_current_context().exit(EXIT_FAILURE)
    except Exception as exc:
        console.print(f"[red]✗[/red] fatal: {describe_error(exc)}")
        click.get_current_context().exit(EXIT_FAILURE)

    render_report(report)
    click.get_current_context().exit(report.exit_code)


async def _run(settings: E2ESettings, specs: list[TokenSpec], *, check_health: bool) -> RunReport:
    async with httpx.AsyncClient(timeout=30.0) as http_client, IotaRpcClient(
        settings.iota_rpc_url,
        http_client=http_client,
        gas_budget=settings.gas_budget,
        wait_timeout=settings.publish_timeout_seconds,
    ) as ledger:
        runner = E2ERunner(settings, ledger_client=ledger, http_client=http_client)
        render_wallet(runner.keypair, generated=settings.private_key_hex is None)
        return await runner.run(specs, check_health=check_health)


@cli.command()
@click.option("--api-url", default=None, help="Compiler service URL.")
@click.pass_obj
def health(settings: E2ESettings, api_url: str | None) -> None:
    """Wait for the compiler service to report healthy."""
    url = api_url or settings.api_url
    try:
        asyncio.run(
            check_api_health(
                url,
                max_retries=settings.health_max_retries,
                interval_ms=settings.health_interval_ms,
            )
        )
    except E2EError as exc:
        console.print(f"[red]✗[/red] {exc}")
        click.get_current_context().exit(EXIT_FAILURE)
    except Exception as exc:
        console.print(f"[red]✗[/red] fatal: {describe_error(exc)}")
        click.get_current_context().exit(EXIT_FAILURE)
    console.print(f"[green]✓[/green] API is ready at {url}")


@cli.command("explorer-url")
@click.argument("base")
@click.argument("digest")
def explorer_url_cmd(base: str, digest: str) -> None:
    """Print the explorer link for DIGEST."""
    click.echo(get_explorer_url(base, digest))

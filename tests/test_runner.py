"""End-to-end runner tests with a mocked compiler, faucet and ledger."""

import json

import httpx
import pytest

from token_e2e.config import E2ESettings
from token_e2e.errors import ApiUnavailableError, FundingError
from token_e2e.ledger import ExecutionResult
from token_e2e.models import CoinType, FundingSource, TokenSpec
from token_e2e.orchestration import E2ERunner, default_token_specs
from token_e2e.orchestration.runner import STALE_FRAMEWORK_HINT

API_URL = "http://compiler.test"
FAUCET_URL = "http://faucet.test"
EXPLORER_URL = "https://explorer.iota.org/testnet"

PACKAGE = {
    "modules": ["AQID"],
    "dependencies": ["0x1", "0x2"],
    "digest": [9, 9],
    "packageName": "token",
}


def make_settings(**overrides) -> E2ESettings:
    values = {
        "api_url": API_URL,
        "iota_rpc_url": "http://rpc.test",
        "iota_faucet_url": FAUCET_URL,
        "iota_explorer_url": EXPLORER_URL,
        "private_key": None,
        "faucet_max_retries": 3,
        "balance_max_retries": 5,
        "balance_interval_ms": 10,
        "concurrency": 1,
    }
    values.update(overrides)
    return E2ESettings(**values)


class FakeServices:
    """Compiler and faucet behind one MockTransport."""

    def __init__(self, *, failing_symbols=(), compile_error=None, faucet_status=200, healthy=True):
        self.failing_symbols = set(failing_symbols)
        self.compile_error = compile_error or {"error": "Compilation failed", "details": "bad spec"}
        self.faucet_status = faucet_status
        self.healthy = healthy
        self.compiled: list[str] = []
        self.gas_requests = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/healthz":
            return httpx.Response(200 if self.healthy else 503)
        if path == "/api/v1/compile":
            symbol = json.loads(request.content)["symbol"]
            self.compiled.append(symbol)
            if symbol in self.failing_symbols:
                return httpx.Response(500, json=self.compile_error)
            return httpx.Response(200, json=PACKAGE)
        if path == "/gas":
            self.gas_requests += 1
            return httpx.Response(self.faucet_status, json={"task": "queued", "error": None})
        return httpx.Response(404)

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self))


def make_runner(services, ledger, keypair, no_sleep, **settings):
    return E2ERunner(
        make_settings(**settings),
        ledger_client=ledger,
        http_client=services.client(),
        keypair=keypair,
        sleep=no_sleep,
    )


class TestEndToEnd:
    @pytest.mark.asyncio
    async def test_single_simple_token(self, make_ledger, keypair, no_sleep) -> None:
        spec = TokenSpec(
            coin_type=CoinType.SIMPLE,
            name="Test Token",
            symbol="TTK",
            decimals=6,
            description="",
            icon_url="",
            total_supply="1000000",
            max_supply=None,
        )
        services = FakeServices()
        ledger = make_ledger(balances=["0", "0", "500"])
        runner = make_runner(services, ledger, keypair, no_sleep)

        report = await runner.run([spec])

        assert report.ok
        assert report.exit_code == 0
        assert report.address == keypair.address
        assert report.balance == 500
        assert report.funding.source is FundingSource.FAUCET
        assert ledger.get_balance.await_count == 3

        (success,) = report.successes
        assert success.digest == "0xdigest123"
        assert success.explorer_url == f"{EXPLORER_URL}/txblock/0xdigest123"
        assert success.module_count == 1
        assert report.digest_for(spec) == "0xdigest123"

    @pytest.mark.asyncio
    async def test_default_specs_all_published(self, make_ledger, keypair, no_sleep) -> None:
        services = FakeServices()
        ledger = make_ledger(
            submissions=[ExecutionResult(digest=f"0xd{i}") for i in range(3)],
        )
        runner = make_runner(services, ledger, keypair, no_sleep)

        report = await runner.run(default_token_specs(suffix="t1"))

        assert [s.spec.symbol for s in report.successes] == ["ESIM", "EMGD", "EREG"]
        assert [s.digest for s in report.successes] == ["0xd0", "0xd1", "0xd2"]
        assert services.gas_requests == 1

    @pytest.mark.asyncio
    async def test_failed_spec_does_not_stop_the_rest(self, make_ledger, keypair, no_sleep) -> None:
        services = FakeServices(failing_symbols={"EMGD"})
        ledger = make_ledger(
            submissions=[ExecutionResult(digest="0xa"), ExecutionResult(digest="0xb")],
        )
        runner = make_runner(services, ledger, keypair, no_sleep)

        report = await runner.run(default_token_specs(suffix="t1"))

        assert not report.ok
        assert report.exit_code == 1
        assert [s.spec.symbol for s in report.successes] == ["ESIM", "EREG"]
        (failure,) = report.failures
        assert failure.spec.symbol == "EMGD"
        assert failure.stage == "compile"
        assert failure.error == "Compilation failed: bad spec"
        assert failure.hint is None
        assert services.compiled == ["ESIM", "EMGD", "EREG"]

    @pytest.mark.asyncio
    async def test_publish_failure_is_recorded(self, make_ledger, keypair, no_sleep, token_spec) -> None:
        ledger = make_ledger(submissions=[Exception("InsufficientGas")])
        runner = make_runner(FakeServices(), ledger, keypair, no_sleep)

        report = await runner.run([token_spec])

        (failure,) = report.failures
        assert failure.stage == "publish"
        assert failure.error == "InsufficientGas"

    @pytest.mark.asyncio
    async def test_blank_failure_is_still_described(self, make_ledger, keypair, no_sleep, token_spec) -> None:
        ledger = make_ledger(submissions=[RuntimeError()])
        runner = make_runner(FakeServices(), ledger, keypair, no_sleep)

        report = await runner.run([token_spec])

        assert report.failures[0].error == "RuntimeError"

    @pytest.mark.asyncio
    async def test_stale_framework_hint(self, make_ledger, keypair, no_sleep, token_spec) -> None:
        services = FakeServices(
            failing_symbols={"TTK"},
            compile_error={"error": "Compilation framework error", "details": "missing module"},
        )
        runner = make_runner(services, make_ledger(), keypair, no_sleep)

        report = await runner.run([token_spec])

        assert report.failures[0].hint == STALE_FRAMEWORK_HINT

    @pytest.mark.asyncio
    async def test_concurrent_run_keeps_input_order(self, make_ledger, keypair, no_sleep) -> None:
        ledger = make_ledger(
            submissions=[ExecutionResult(digest=f"0x{i}") for i in range(3)],
        )
        runner = make_runner(FakeServices(), ledger, keypair, no_sleep, concurrency=3)

        report = await runner.run(default_token_specs(suffix="t1"))

        assert [s.spec.symbol for s in report.successes] == ["ESIM", "EMGD", "EREG"]
        assert sorted(s.digest for s in report.successes) == ["0x0", "0x1", "0x2"]


class TestRunAborts:
    @pytest.mark.asyncio
    async def test_funding_failure_aborts_before_any_spec(self, make_ledger, keypair, no_sleep, token_spec) -> None:
        services = FakeServices(faucet_status=500)
        ledger = make_ledger()
        runner = make_runner(services, ledger, keypair, no_sleep)

        with pytest.raises(FundingError, match="status 500"):
            await runner.run([token_spec])

        assert services.gas_requests == 4
        assert services.compiled == []
        ledger.get_balance.assert_not_awaited()
        assert no_sleep.delays == [2, 4]

    @pytest.mark.asyncio
    async def test_unhealthy_api(self, make_ledger, keypair, no_sleep, token_spec) -> None:
        services = FakeServices(healthy=False)
        runner = make_runner(
            services, make_ledger(), keypair, no_sleep, health_max_retries=2, health_interval_ms=10
        )

        with pytest.raises(ApiUnavailableError):
            await runner.run([token_spec])
        assert services.gas_requests == 0

    @pytest.mark.asyncio
    async def test_health_check_can_be_skipped(self, make_ledger, keypair, no_sleep, token_spec) -> None:
        services = FakeServices(healthy=False)
        runner = make_runner(services, make_ledger(), keypair, no_sleep)

        report = await runner.run([token_spec], check_health=False)
        assert report.ok


class TestDefaultTokenSpecs:
    def test_one_per_coin_type(self) -> None:
        specs = default_token_specs(suffix="t42")
        assert [s.coin_type for s in specs] == [CoinType.SIMPLE, CoinType.COIN_MANAGER, CoinType.REGULATED]
        assert all(s.name.endswith("t42") for s in specs)
        assert all(s.total_supply == "1000000" and s.decimals == 6 for s in specs)

    def test_filter_by_coin_type(self) -> None:
        specs = default_token_specs(suffix="x", coin_types=[CoinType.REGULATED])
        assert [s.symbol for s in specs] == ["EREG"]

    def test_suffix_makes_names_unique(self) -> None:
        assert default_token_specs(suffix="a")[0].name != default_token_specs(suffix="b")[0].name

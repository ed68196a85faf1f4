import json

import pytest
from click.testing import CliRunner
from moto import mock_aws
from unittest.mock import AsyncMock, MagicMock, patch

from loanscan.configs.loanscan_config import LoanScanConfig
from loanscan.exceptions import PublishFailure, RegistryLookupFailure
from loanscan.main import build_registry_source, cli_entrypoint, generate_loanscan, main
from loanscan.registry.sources import DeploymentRegistrySource, StaticRegistrySource
from loanscan.types import RateResult, Report
from tests.conftest import DAI, RPC_URL

REPORT_DATA = json.dumps(
    {"lendRates": [{"apr": 0.05, "apy": 0.05, "tokenSymbol": "DAI"}], "borrowRates": []},
    indent=2,
)


def static_config(tmp_path) -> LoanScanConfig:
    return LoanScanConfig(
        registry={
            "source": "static",
            "terms": ["dai"],
            "instruments": [
                {
                    "symbol": "dai",
                    "principal_token": "0x" + "ab" * 20,
                    "underlying": DAI,
                    "pool": "0x" + "cd" * 20,
                }
            ],
        },
        output={"path": str(tmp_path / "loanscan")},
    )


def test_build_registry_source(tmp_path):
    session = MagicMock()

    assert isinstance(build_registry_source(static_config(tmp_path), session), StaticRegistrySource)
    assert isinstance(build_registry_source(LoanScanConfig(), session), DeploymentRegistrySource)


@pytest.mark.asyncio
async def test_generate_loanscan(tmp_path):
    config = static_config(tmp_path)
    mock_assembler = MagicMock()
    mock_assembler.generate = AsyncMock(
        return_value=Report(lend_rates=[RateResult("DAI", 0.05, 0.05)])
    )

    with patch(
        "loanscan.main.ReportAssembler", return_value=mock_assembler
    ) as mock_assembler_class:
        data = await generate_loanscan(config, RPC_URL)

    assert data == REPORT_DATA
    instruments = mock_assembler.generate.await_args.args[0]
    assert [i.symbol for i in instruments] == ["DAI"]
    assert mock_assembler_class.call_args.kwargs["vault"] == config.balancer_vault


@pytest.mark.asyncio
async def test_generate_loanscan_unknown_term(tmp_path):
    config = static_config(tmp_path)
    config.registry.terms = ["dai", "usdc"]

    with patch("loanscan.main.ReportAssembler") as mock_assembler_class:
        with pytest.raises(RegistryLookupFailure):
            await generate_loanscan(config, RPC_URL)

    mock_assembler_class.assert_not_called()


@pytest.mark.asyncio
async def test_main_writes_and_publishes(tmp_path):
    config = static_config(tmp_path)
    mock_publisher = MagicMock()

    with (
        patch(
            "loanscan.main.generate_loanscan", AsyncMock(return_value=REPORT_DATA)
        ),
        patch(
            "loanscan.main.S3Publisher", return_value=mock_publisher
        ) as mock_publisher_class,
    ):
        await main(config=config, rpc_url=RPC_URL)

    assert (tmp_path / "loanscan").read_text(encoding="utf-8") == REPORT_DATA
    mock_publisher_class.assert_called_once_with(
        bucket="elementfi", key="loanscan", region="us-east-2"
    )
    mock_publisher.publish.assert_called_once_with(REPORT_DATA)


@pytest.mark.asyncio
async def test_main_skip_upload(tmp_path):
    config = static_config(tmp_path)

    with (
        patch(
            "loanscan.main.generate_loanscan", AsyncMock(return_value=REPORT_DATA)
        ),
        patch("loanscan.main.S3Publisher") as mock_publisher_class,
    ):
        await main(config=config, rpc_url=RPC_URL, skip_upload=True)

    assert (tmp_path / "loanscan").exists()
    mock_publisher_class.assert_not_called()


@pytest.mark.asyncio
async def test_main_publish_failure_keeps_local_file(tmp_path):
    config = static_config(tmp_path)
    mock_publisher = MagicMock()
    mock_publisher.publish.side_effect = PublishFailure("denied")

    with (
        patch(
            "loanscan.main.generate_loanscan", AsyncMock(return_value=REPORT_DATA)
        ),
        patch("loanscan.main.S3Publisher", return_value=mock_publisher),
    ):
        with pytest.raises(PublishFailure):
            await main(config=config, rpc_url=RPC_URL)

    assert (tmp_path / "loanscan").read_text(encoding="utf-8") == REPORT_DATA


def test_cli_runs_without_flags(monkeypatch):
    monkeypatch.setenv("ETH_RPC_URL", RPC_URL)
    runner = CliRunner()
    captured = {}

    async def fake_main(**kwargs):
        captured.update(kwargs)

    with patch("loanscan.main.main", side_effect=fake_main):
        result = runner.invoke(cli_entrypoint, [])

    assert result.exit_code == 0, result.output
    assert captured["rpc_url"] == RPC_URL
    assert captured["skip_upload"] is False
    assert captured["config"].registry.terms == ["dai", "usdc"]


def test_cli_exits_when_rpc_url_env_is_unset(monkeypatch):
    monkeypatch.delenv("ETH_RPC_URL", raising=False)
    runner = CliRunner()

    with patch("loanscan.main.main", new_callable=MagicMock) as mock_main:
        result = runner.invoke(cli_entrypoint, [])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    mock_main.assert_not_called()


def test_cli_exits_when_rpc_url_secret_is_missing(aws_credentials):
    runner = CliRunner()

    with mock_aws(), patch("loanscan.main.main", new_callable=MagicMock) as mock_main:
        result = runner.invoke(cli_entrypoint, ["--rpc-url", "aws:missing/secret"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    mock_main.assert_not_called()


def test_cli_exits_with_error_on_failure():
    runner = CliRunner()

    async def failing_main(**kwargs):
        raise PublishFailure("denied")

    with patch("loanscan.main.main", side_effect=failing_main):
        result = runner.invoke(cli_entrypoint, ["--rpc-url", RPC_URL, "--skip-upload"])

    assert result.exit_code == 1


def test_cli_runs_main(tmp_path):
    runner = CliRunner()
    config_file = tmp_path / "loanscan.yaml"
    config_file.write_text("registry:\n  terms: [dai]\n")
    captured = {}

    async def fake_main(**kwargs):
        captured.update(kwargs)

    with patch("loanscan.main.main", side_effect=fake_main):
        result = runner.invoke(
            cli_entrypoint,
            ["-c", str(config_file), "--rpc-url", f"plain:{RPC_URL}", "--log-level", "debug"],
        )

    assert result.exit_code == 0, result.output
    assert captured["rpc_url"] == RPC_URL
    assert captured["skip_upload"] is False
    assert captured["config"].registry.terms == ["dai"]

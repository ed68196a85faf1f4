import asyncio
import logging
import sys

from typing import Optional

import aiohttp
import click
from botocore.exceptions import BotoCoreError, ClientError
from dotenv import load_dotenv

from loanscan.chain.reader import ChainReader
from loanscan.chain.rpc import EthRpcClient
from loanscan.cli import load_rpc_url_from_cli_arg
from loanscan.configs.loanscan_config import LoanScanConfig
from loanscan.exceptions import BaseLoanScanException
from loanscan.logger import setup_logging
from loanscan.publisher import S3Publisher, write_report
from loanscan.registry.sources import (
    DeploymentRegistrySource,
    RegistrySource,
    StaticRegistrySource,
)
from loanscan.report import ReportAssembler, serialize_report

logger = logging.getLogger(__name__)


def build_registry_source(
    config: LoanScanConfig, session: aiohttp.ClientSession
) -> RegistrySource:
    if config.registry.source == "static":
        return StaticRegistrySource(config.get_static_instruments())
    return DeploymentRegistrySource(session=session, url=config.registry.deployment_url)


async def generate_loanscan(config: LoanScanConfig, rpc_url: str) -> str:
    """
    Resolve the configured instruments, compute their fixed rates and return
    the serialized report.
    """
    async with aiohttp.ClientSession() as session:
        registry = await build_registry_source(config, session).load()
        instruments = registry.resolve(config.registry.terms)

        chain_reader = ChainReader(EthRpcClient(rpc_url, session))
        assembler = ReportAssembler(chain_reader, vault=config.balancer_vault)
        report = await assembler.generate(instruments)

    return serialize_report(report)


async def main(
    config: LoanScanConfig,
    rpc_url: str,
    skip_upload: bool = False,
) -> None:
    logger.info("🧩 Generating the LoanScan report...")
    data = await generate_loanscan(config, rpc_url)
    logger.info(f"📊 LoanScan report:\n{data}")

    write_report(config.output.path, data)
    if skip_upload:
        logger.info("⏭️ Upload skipped.")
        return

    publisher = S3Publisher(
        bucket=config.output.bucket,
        key=config.output.key,
        region=config.output.region,
    )
    await asyncio.to_thread(publisher.publish, data)
    logger.info("✅ LoanScan report published!")


@click.command()
@click.option(
    "--log-level",
    default="INFO",
    type=click.Choice(
        ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        case_sensitive=False,
    ),
    help="Logging level.",
)
@click.option(
    "-c",
    "--config-file",
    type=click.Path(exists=True),
    required=False,
    help="Path to YAML configuration file. Defaults reproduce the DAI & USDC run.",
)
@click.option(
    "--rpc-url",
    type=click.STRING,
    required=False,
    help=(
        "Ethereum RPC url, overrides the configuration "
        "(default env:ETH_RPC_URL). Format: "
        "https://..., "
        "aws:secret_name, "
        "plain:url "
        "or env:ENV_VAR_NAME"
    ),
)
@click.option(
    "--skip-upload",
    is_flag=True,
    default=False,
    help="Only write the local report, do not publish it to S3.",
)
def cli_entrypoint(
    log_level: str,
    config_file: Optional[str],
    rpc_url: Optional[str],
    skip_upload: bool,
) -> None:
    """
    LoanScan fixed rates entry point.
    """
    load_dotenv()
    setup_logging(log_level)

    config = LoanScanConfig.from_yaml(config_file) if config_file else LoanScanConfig()
    try:
        resolved_rpc_url = load_rpc_url_from_cli_arg(rpc_url or config.rpc_url)
    except (ValueError, KeyError, BotoCoreError, ClientError) as e:
        logger.error(f"⛔ Could not load the RPC url: {e}")
        sys.exit(1)

    try:
        asyncio.run(
            main(
                config=config,
                rpc_url=resolved_rpc_url,
                skip_upload=skip_upload,
            )
        )
    except BaseLoanScanException as e:
        logger.error(f"⛔ {e.__class__.__name__}: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    cli_entrypoint()

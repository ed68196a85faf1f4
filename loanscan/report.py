import asyncio
import json
import logging

from typing import List, Optional

from loanscan.chain.reader import ChainReader
from loanscan.exceptions import ChainReadFailure, RegistryLookupFailure
from loanscan.pricing.calculator import compute_fixed_rate, time_until_expiration
from loanscan.types import Address, Instrument, RateResult, Report

logger = logging.getLogger(__name__)


class ReportAssembler:
    """
    Computes the fixed rate of every instrument and gathers them in a `Report`.

    Instruments are processed concurrently; they read disjoint pools and share
    no state. The first failure aborts the whole report, no partial list is
    ever returned.
    """

    chain_reader: ChainReader
    vault: Address

    def __init__(self, chain_reader: ChainReader, vault: Address) -> None:
        self.chain_reader = chain_reader
        self.vault = vault

    async def generate(self, instruments: List[Instrument]) -> Report:
        logger.info(f"🔍 Computing fixed rates for {len(instruments)} instruments...")
        rates = await asyncio.gather(
            *(self.compute_rate(instrument) for instrument in instruments)
        )
        logger.info("... computed!")
        # gather keeps the order of its inputs.
        return Report(lend_rates=list(rates), borrow_rates=[])

    async def compute_rate(self, instrument: Instrument) -> RateResult:
        pool = instrument.pool
        block_timestamp, total_supply, reserves, expiration, unit_seconds = (
            await asyncio.gather(
                self.chain_reader.get_block_timestamp(),
                self.chain_reader.get_total_supply(pool),
                self.chain_reader.get_reserves(pool, self.vault, instrument.pool_id),
                self._or_read(instrument.expiration, self.chain_reader.get_expiration, pool),
                self._or_read(instrument.unit_seconds, self.chain_reader.get_unit_seconds, pool),
            )
        )

        if len(reserves.tokens) != 2:
            raise ChainReadFailure(
                f"Pool {pool} holds {len(reserves.tokens)} tokens, expected 2"
            )
        base_index = reserves.index_of(instrument.underlying)
        if base_index is None:
            raise RegistryLookupFailure(
                f"Underlying {instrument.underlying} of {instrument.symbol} "
                f"is not a token of pool {pool}"
            )
        pt_index = 1 if base_index == 0 else 0

        time_remaining = time_until_expiration(expiration, block_timestamp)
        fixed_rate = compute_fixed_rate(
            base_reserves=str(reserves.balances[base_index]),
            pt_reserves=str(reserves.balances[pt_index]),
            total_supply=str(total_supply),
            time_remaining_seconds=time_remaining,
            unit_seconds=unit_seconds,
            decimals=reserves.decimals[base_index],
        )
        logger.debug(
            f"{instrument.symbol} {instrument.principal_token}: "
            f"{time_remaining}s remaining, fixed rate {fixed_rate}"
        )
        return RateResult(token_symbol=instrument.symbol, apr=fixed_rate, apy=fixed_rate)

    @staticmethod
    async def _or_read(known: Optional[int], read, pool: Address) -> int:
        if known is not None:
            return known
        return await read(pool)


def serialize_report(report: Report) -> str:
    """JSON document published for LoanScan, pretty-printed with 2 spaces."""
    return json.dumps(report.serialize(), indent=2)

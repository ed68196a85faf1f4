import asyncio
import logging

from typing import Optional

from eth_utils import decode_hex

from loanscan.chain.abi import decode_result, encode_call, selector
from loanscan.chain.rpc import EthRpcClient
from loanscan.exceptions import ChainReadFailure, InvalidInput
from loanscan.types import Address, PoolId, ReserveSnapshot

logger = logging.getLogger(__name__)

TOTAL_SUPPLY_SELECTOR = selector("totalSupply()")
DECIMALS_SELECTOR = selector("decimals()")
EXPIRATION_SELECTOR = selector("expiration()")
UNIT_SECONDS_SELECTOR = selector("unitSeconds()")
GET_POOL_ID_SELECTOR = selector("getPoolId()")
GET_POOL_TOKENS_SELECTOR = selector("getPoolTokens(bytes32)")


class ChainReader:
    """
    Read-only view of the convergent curve pools and the Balancer vault.
    """

    def __init__(self, rpc_client: EthRpcClient) -> None:
        self.rpc_client = rpc_client

    async def get_block_timestamp(self) -> int:
        return await self.rpc_client.get_block_timestamp()

    async def get_total_supply(self, pool: Address) -> int:
        return await self._read_uint(pool, TOTAL_SUPPLY_SELECTOR, "totalSupply")

    async def get_expiration(self, pool: Address) -> int:
        return await self._read_uint(pool, EXPIRATION_SELECTOR, "expiration")

    async def get_unit_seconds(self, pool: Address) -> int:
        return await self._read_uint(pool, UNIT_SECONDS_SELECTOR, "unitSeconds")

    async def get_decimals(self, token: Address) -> int:
        return await self._read_uint(token, DECIMALS_SELECTOR, "decimals")

    async def get_pool_id(self, pool: Address) -> PoolId:
        result = await self.rpc_client.call(pool, GET_POOL_ID_SELECTOR)
        (pool_id,) = decode_result(["bytes32"], result, f"getPoolId of {pool}")
        return "0x" + pool_id.hex()

    async def get_reserves(
        self,
        pool: Address,
        vault: Address,
        pool_id: Optional[PoolId] = None,
    ) -> ReserveSnapshot:
        """
        Tokens, balances and decimals of `pool` as registered in the Balancer
        `vault`. The pool id is read from the pool when not provided.
        """
        if pool_id is None:
            pool_id = await self.get_pool_id(pool)

        try:
            raw_pool_id = decode_hex(pool_id)
        except ValueError as exc:
            raise InvalidInput(f"Invalid pool id {pool_id!r} for pool {pool}") from exc
        result = await self.rpc_client.call(
            vault, encode_call(GET_POOL_TOKENS_SELECTOR, ["bytes32"], [raw_pool_id])
        )
        tokens, balances, _last_change_block = decode_result(
            ["address[]", "uint256[]", "uint256"], result, f"getPoolTokens of {pool}"
        )
        if len(tokens) != len(balances):
            raise ChainReadFailure(
                f"Pool {pool} returned {len(tokens)} tokens but {len(balances)} balances"
            )

        decimals = await asyncio.gather(*(self.get_decimals(token) for token in tokens))
        logger.debug(f"Reserves of {pool}: tokens={tokens} balances={balances}")
        return ReserveSnapshot(
            tokens=list(tokens),
            balances=list(balances),
            decimals=list(decimals),
        )

    async def _read_uint(self, contract: Address, function_selector: str, name: str) -> int:
        result = await self.rpc_client.call(contract, function_selector)
        (value,) = decode_result(["uint256"], result, f"{name} of {contract}")
        return value

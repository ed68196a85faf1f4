"""Minimal Ethereum JSON-RPC transport used for read-only contract calls."""

from __future__ import annotations

import logging
from typing import Any, List

import aiohttp
from aiohttp import ClientSession

from loanscan.exceptions import ChainReadFailure

logger = logging.getLogger(__name__)


class EthRpcClient:
    """
    Sends `eth_call` and block queries to a single JSON-RPC endpoint.

    Every failure is raised as a `ChainReadFailure`: there is no retry and no
    endpoint rotation, a failed read aborts the run.
    """

    def __init__(self, rpc_url: str, session: ClientSession) -> None:
        if not rpc_url:
            raise ValueError("Ethereum RPC url cannot be empty")
        self.rpc_url = rpc_url
        self.session = session
        self._request_id = 0

    async def call(self, to: str, data: str, block: str = "latest") -> str:
        """Run `eth_call` against `to` and return the raw hex result."""
        result = await self._request("eth_call", [{"to": to, "data": data}, block])
        if not isinstance(result, str) or not result.startswith("0x"):
            raise ChainReadFailure(
                f"Invalid eth_call result from {to} (data={data}): {result!r}"
            )
        return result

    async def get_block_timestamp(self, block: str = "latest") -> int:
        result = await self._request("eth_getBlockByNumber", [block, False])
        if not isinstance(result, dict) or "timestamp" not in result:
            raise ChainReadFailure(f"Invalid block returned for {block}: {result!r}")
        return _parse_hex_int(result["timestamp"], "block timestamp")

    async def _request(self, method: str, params: List[Any]) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "id": self._next_request_id(),
            "method": method,
            "params": params,
        }
        logger.debug("➡️ %s %s", method, params)
        try:
            async with self.session.post(
                self.rpc_url,
                json=payload,
                headers={"Content-Type": "application/json"},
            ) as resp:
                if resp.status != 200:
                    raise ChainReadFailure(
                        f"{method} received non-200 status {resp.status} from the RPC"
                    )
                data = await resp.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise ChainReadFailure(f"{method} failed: {exc}") from exc
        except TimeoutError as exc:
            raise ChainReadFailure(f"{method} timed out") from exc

        if not isinstance(data, dict):
            raise ChainReadFailure(f"{method} returned a malformed response: {data!r}")
        if data.get("error") is not None:
            error = data["error"]
            message = error.get("message") if isinstance(error, dict) else error
            raise ChainReadFailure(f"{method} returned an error: {message}")
        if data.get("result") is None:
            raise ChainReadFailure(f"{method} returned an empty result")
        return data["result"]

    def _next_request_id(self) -> int:
        self._request_id += 1
        return self._request_id


def _parse_hex_int(value: Any, name: str) -> int:
    try:
        return int(value, 16)
    except (TypeError, ValueError) as exc:
        raise ChainReadFailure(f"Invalid hex value for {name}: {value!r}") from exc

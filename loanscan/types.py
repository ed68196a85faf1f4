from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Literal, Optional, Union

Address = str
PoolId = str
UnixTimestamp = int
DurationInSeconds = int
RegistrySourceName = Literal["static", "deployment"]

BALANCER_VAULT_ADDRESS: Address = "0xBA12222222228d8Ba445958a75a0704d566BF2C8"
ELEMENT_DEPLOYMENT_URL = (
    "https://raw.githubusercontent.com/element-fi/elf-deploy/main/addresses/mainnet.json"
)
DEFAULT_TERMS: List[str] = ["dai", "usdc"]

DEFAULT_BUCKET = "elementfi"
DEFAULT_OBJECT_KEY = "loanscan"
DEFAULT_REGION = "us-east-2"
DEFAULT_OUTPUT_PATH = "loanscan"
DEFAULT_RPC_URL = "env:ETH_RPC_URL"


@dataclass(frozen=True, slots=True)
class Instrument:
    """
    A principal token and the convergent curve pool it trades in.

    `expiration`, `unit_seconds` and `pool_id` are optional: when the registry
    does not carry them they are read from the pool contract.
    """

    symbol: str
    principal_token: Address
    underlying: Address
    pool: Address
    expiration: Optional[UnixTimestamp] = None
    unit_seconds: Optional[DurationInSeconds] = None
    pool_id: Optional[PoolId] = None


@dataclass(frozen=True, slots=True)
class ReserveSnapshot:
    tokens: List[Address]
    balances: List[int]
    decimals: List[int]

    def __post_init__(self) -> None:
        if not len(self.tokens) == len(self.balances) == len(self.decimals):
            raise ValueError(
                "Reserve snapshot lists must have the same length: "
                f"{len(self.tokens)} tokens, {len(self.balances)} balances, "
                f"{len(self.decimals)} decimals"
            )

    def index_of(self, token: Address) -> Optional[int]:
        """Position of `token` in the pool, compared case-insensitively."""
        for index, address in enumerate(self.tokens):
            if address.lower() == token.lower():
                return index
        return None


def json_number(value: float) -> Union[float, int]:
    """Integral rates are published as integers (`0`, not `0.0`)."""
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


@dataclass(frozen=True, slots=True)
class RateResult:
    token_symbol: str
    apr: float
    # No compounding conversion is applied, the published APY is the APR.
    apy: float

    def serialize(self) -> Dict[str, Any]:
        return {
            "apr": json_number(self.apr),
            "apy": json_number(self.apy),
            "tokenSymbol": self.token_symbol,
        }


@dataclass(slots=True)
class Report:
    lend_rates: List[RateResult] = field(default_factory=list)
    borrow_rates: List[RateResult] = field(default_factory=list)

    def serialize(self) -> Dict[str, Any]:
        return {
            "lendRates": [rate.serialize() for rate in self.lend_rates],
            "borrowRates": [rate.serialize() for rate in self.borrow_rates],
        }

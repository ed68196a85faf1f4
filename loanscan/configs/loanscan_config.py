import re

from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from typing_extensions import Annotated

from loanscan.types import (
    BALANCER_VAULT_ADDRESS,
    DEFAULT_BUCKET,
    DEFAULT_OBJECT_KEY,
    DEFAULT_OUTPUT_PATH,
    DEFAULT_REGION,
    DEFAULT_RPC_URL,
    DEFAULT_TERMS,
    ELEMENT_DEPLOYMENT_URL,
    Instrument,
    RegistrySourceName,
)

ADDRESS_PATTERN = re.compile(r"^0x[0-9a-f]{40}$")
POOL_ID_PATTERN = re.compile(r"^0x[0-9a-f]{64}$")


def validate_address(address: str) -> str:
    address = address.strip().lower()
    if not ADDRESS_PATTERN.match(address):
        raise ValueError(f"Invalid Ethereum address: {address}")
    return address


class InstrumentConfig(BaseModel):
    symbol: str
    principal_token: str
    underlying: str
    pool: str
    expiration: Optional[Annotated[int, Field(gt=0)]] = None
    unit_seconds: Optional[Annotated[int, Field(gt=0)]] = None
    pool_id: Optional[str] = None

    @field_validator("symbol")
    def validate_symbol(cls, value: str) -> str:
        return value.strip().upper()

    @field_validator("principal_token", "underlying", "pool")
    def validate_addresses(cls, value: str) -> str:
        return validate_address(value)

    @field_validator("pool_id")
    def validate_pool_id(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().lower()
        if not POOL_ID_PATTERN.match(value):
            raise ValueError(f"Invalid Balancer pool id: {value}")
        return value

    def to_instrument(self) -> Instrument:
        return Instrument(
            symbol=self.symbol,
            principal_token=self.principal_token,
            underlying=self.underlying,
            pool=self.pool,
            expiration=self.expiration,
            unit_seconds=self.unit_seconds,
            pool_id=self.pool_id,
        )


class RegistryConfig(BaseModel):
    source: RegistrySourceName = "deployment"
    deployment_url: str = ELEMENT_DEPLOYMENT_URL
    terms: List[str] = Field(default_factory=lambda: list(DEFAULT_TERMS))
    instruments: List[InstrumentConfig] = Field(default_factory=list)

    @field_validator("terms")
    def validate_terms(cls, value: List[str]) -> List[str]:
        terms = [term.strip().lower() for term in value]
        if len(terms) == 0:
            raise ValueError("At least one term must be configured")
        return terms

    @model_validator(mode="after")
    def check_static_instruments(self) -> "RegistryConfig":
        if self.source == "static" and len(self.instruments) == 0:
            raise ValueError("The static registry source needs at least one instrument")
        return self


class OutputConfig(BaseModel):
    path: str = DEFAULT_OUTPUT_PATH
    bucket: str = DEFAULT_BUCKET
    key: str = DEFAULT_OBJECT_KEY
    region: str = DEFAULT_REGION


class LoanScanConfig(BaseModel):
    rpc_url: str = DEFAULT_RPC_URL
    balancer_vault: str = BALANCER_VAULT_ADDRESS.lower()
    registry: RegistryConfig = Field(default_factory=RegistryConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)

    @field_validator("balancer_vault")
    def validate_vault(cls, value: str) -> str:
        return validate_address(value)

    @classmethod
    def from_yaml(cls, path: str) -> "LoanScanConfig":
        with open(path, "r") as file:
            loanscan_config = yaml.safe_load(file)
        return cls(**(loanscan_config or {}))

    def get_static_instruments(self) -> List[Instrument]:
        return [config.to_instrument() for config in self.registry.instruments]

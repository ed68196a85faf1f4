import logging

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List

import aiohttp
from aiohttp import ClientSession

from loanscan.exceptions import RegistryLookupFailure
from loanscan.registry.registry import InstrumentRegistry
from loanscan.types import ELEMENT_DEPLOYMENT_URL, Instrument

logger = logging.getLogger(__name__)


class RegistrySource(ABC):
    """Where the list of instruments comes from."""

    @abstractmethod
    async def load(self) -> InstrumentRegistry: ...


class StaticRegistrySource(RegistrySource):
    """Instruments listed by hand, usually in the YAML configuration."""

    def __init__(self, instruments: Iterable[Instrument]) -> None:
        self.instruments = list(instruments)

    async def load(self) -> InstrumentRegistry:
        logger.info(f"📒 Using {len(self.instruments)} statically configured instruments")
        return InstrumentRegistry(self.instruments)


class DeploymentRegistrySource(RegistrySource):
    """
    Instruments read from the Element deployment addresses file.

    The file maps each term (e.g. "dai") to its base token address in `tokens`
    and to the list of its tranches in `tranches`; every tranche carries its
    principal token address and its principal token pool.
    """

    def __init__(self, session: ClientSession, url: str = ELEMENT_DEPLOYMENT_URL) -> None:
        self.session = session
        self.url = url

    async def load(self) -> InstrumentRegistry:
        logger.info(f"🌐 Fetching deployment addresses from {self.url}...")
        deployment = await self._fetch_deployment()
        instruments = parse_deployment_addresses(deployment)
        logger.info(f"... found {len(instruments)} instruments!")
        return InstrumentRegistry(instruments)

    async def _fetch_deployment(self) -> Dict[str, Any]:
        try:
            async with self.session.get(self.url) as resp:
                if resp.status != 200:
                    raise RegistryLookupFailure(
                        f"Deployment addresses request to {self.url} returned {resp.status}"
                    )
                deployment = await resp.json(content_type=None)
        except aiohttp.ClientError as exc:
            raise RegistryLookupFailure(
                f"Could not fetch deployment addresses from {self.url}: {exc}"
            ) from exc
        if not isinstance(deployment, dict):
            raise RegistryLookupFailure(f"Malformed deployment addresses at {self.url}")
        return deployment


def parse_deployment_addresses(deployment: Dict[str, Any]) -> List[Instrument]:
    """
    Build the instruments described by a deployment addresses document.

    Terms with tranches but no base token address are skipped: resolving them
    later fails with a `RegistryLookupFailure`. The tranche expirations listed
    in the file are ignored, the assembler reads `expiration()` from each pool.
    """
    tokens: Dict[str, str] = {
        key.lower(): address for key, address in deployment.get("tokens", {}).items()
    }
    tranches: Dict[str, List[Dict[str, Any]]] = deployment.get("tranches", {})

    instruments: List[Instrument] = []
    for term, tranche_list in tranches.items():
        base = tokens.get(term.lower())
        if base is None:
            logger.warning(f"No base token address for {term}, skipping its tranches")
            continue
        if not isinstance(tranche_list, list):
            raise RegistryLookupFailure(
                f"Tranches of {term} are not a list: {tranche_list!r}"
            )
        for tranche in tranche_list:
            if not isinstance(tranche, dict):
                raise RegistryLookupFailure(f"Malformed tranche for {term}: {tranche!r}")
            principal_token = tranche.get("address")
            pt_pool = tranche.get("ptPool")
            if (
                principal_token is None
                or not isinstance(pt_pool, dict)
                or pt_pool.get("address") is None
            ):
                raise RegistryLookupFailure(
                    f"No principal token pool found for tranche {principal_token} ({term})"
                )
            instruments.append(
                Instrument(
                    symbol=term.upper(),
                    principal_token=principal_token,
                    underlying=base,
                    pool=pt_pool["address"],
                    pool_id=pt_pool.get("poolId"),
                )
            )
    return instruments

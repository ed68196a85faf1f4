import logging

from typing import Dict, Iterable, List

from loanscan.exceptions import RegistryLookupFailure
from loanscan.types import Address, Instrument

logger = logging.getLogger(__name__)


class InstrumentRegistry:
    """
    Immutable list of the known fixed-rate instruments.

    Built once at startup by a `RegistrySource` and passed explicitly to
    whoever needs to resolve instruments.
    """

    def __init__(self, instruments: Iterable[Instrument]) -> None:
        self._instruments: List[Instrument] = list(instruments)

    @property
    def instruments(self) -> List[Instrument]:
        return list(self._instruments)

    def __len__(self) -> int:
        return len(self._instruments)

    def filter_by_underlying(self, underlyings: Iterable[Address]) -> List[Instrument]:
        """
        Instruments whose underlying is one of `underlyings`, compared
        case-insensitively. Registry order is kept.
        """
        wanted = {address.lower() for address in underlyings}
        return [i for i in self._instruments if i.underlying.lower() in wanted]

    def resolve(self, terms: Iterable[str]) -> List[Instrument]:
        """
        Instruments of every requested term (underlying symbol), grouped by
        term in the requested order.

        Raises:
            RegistryLookupFailure: if a term has no instrument.
        """
        requested = list(terms)
        by_symbol: Dict[str, List[Instrument]] = {}
        for instrument in self._instruments:
            by_symbol.setdefault(instrument.symbol, []).append(instrument)

        resolved: List[Instrument] = []
        for term in requested:
            instruments = by_symbol.get(term.upper())
            if not instruments:
                raise RegistryLookupFailure(
                    f"No instrument registered for {term.upper()}"
                )
            resolved.extend(instruments)

        logger.info(f"📚 Resolved {len(resolved)} instruments for {requested}")
        return resolved

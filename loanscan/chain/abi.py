from typing import Any, List, Sequence, Tuple

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError, EncodingError
from eth_utils import decode_hex, function_signature_to_4byte_selector

from loanscan.exceptions import ChainReadFailure, InvalidInput


def selector(signature: str) -> str:
    """4 bytes selector of a function signature, e.g. `totalSupply()`."""
    return "0x" + function_signature_to_4byte_selector(signature).hex()


def encode_call(
    function_selector: str, types: Sequence[str], args: List[Any]
) -> str:
    """Calldata for `function_selector` called with `args`."""
    try:
        return function_selector + encode(list(types), args).hex()
    except (EncodingError, TypeError, ValueError) as exc:
        raise InvalidInput(
            f"Could not encode {args} as {list(types)} for {function_selector}: {exc}"
        ) from exc


def decode_result(
    types: Sequence[str], result: str, context: str
) -> Tuple[Any, ...]:
    """
    Decode the raw hex `result` of an `eth_call`.

    Raises:
        ChainReadFailure: if the result is not valid hex or does not hold `types`.
    """
    try:
        return decode(list(types), decode_hex(result))
    except (DecodingError, ValueError) as exc:
        raise ChainReadFailure(
            f"Could not decode {context} result as {list(types)}: {result!r} ({exc})"
        ) from exc

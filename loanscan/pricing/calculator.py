import math

from typing import Union

from loanscan.exceptions import InvalidInput

ONE_YEAR_IN_SECONDS: int = 31_536_000
TARGET_DECIMALS: int = 18

RawAmount = Union[str, int]


def parse_amount(value: RawAmount, name: str) -> int:
    """Parse an on-chain amount given as an integer string (or an int)."""
    if isinstance(value, bool):
        raise InvalidInput(f"{name} must be a non-negative integer, got {value!r}")
    if isinstance(value, int):
        amount = value
    else:
        try:
            amount = int(str(value).strip(), 10)
        except ValueError:
            raise InvalidInput(f"{name} must be a non-negative integer, got {value!r}")
    if amount < 0:
        raise InvalidInput(f"{name} must be a non-negative integer, got {value!r}")
    return amount


def time_until_expiration(expiration: int, block_timestamp: int) -> int:
    """Seconds left before `expiration`, clamped to zero once it has passed."""
    if block_timestamp < expiration:
        return expiration - block_timestamp
    return 0


def calc_spot_price_pt(
    base_reserves: RawAmount,
    pt_reserves: RawAmount,
    total_supply: RawAmount,
    time_remaining_seconds: int,
    unit_seconds: int,
    decimals: int,
) -> float:
    """
    Spot price of one principal token in units of the base asset, from the
    convergent curve invariant.

    Reserves are normalized to 18 decimals, the LP total supply is already an
    18 decimals amount. The curve exponent is `time_remaining / unit_seconds`
    so the price converges to 1 at expiration.

    Every step is a float operation: amounts are converted to doubles before
    scaling and before the supply is added, so each intermediate result is
    rounded exactly like the helper the published rates were always computed
    with.
    """
    if decimals < 0 or decimals > TARGET_DECIMALS:
        raise InvalidInput(f"decimals must be between 0 and 18, got {decimals}")
    if unit_seconds <= 0:
        raise InvalidInput(f"unit_seconds must be positive, got {unit_seconds}")
    if time_remaining_seconds < 0:
        raise InvalidInput(
            f"time_remaining_seconds must not be negative, got {time_remaining_seconds}"
        )

    diff = TARGET_DECIMALS - decimals
    base = float(parse_amount(base_reserves, "base_reserves"))
    principal = float(parse_amount(pt_reserves, "pt_reserves"))
    supply = float(parse_amount(total_supply, "total_supply"))

    normalized_base_reserves = base * 10**diff
    normalized_pt_reserves = principal * 10**diff

    pt_reserves_plus_supply = normalized_pt_reserves + supply
    if pt_reserves_plus_supply == 0:
        raise InvalidInput("pt_reserves and total_supply are both zero")

    t = time_remaining_seconds / unit_seconds
    return (normalized_base_reserves / pt_reserves_plus_supply) ** t


def calc_fixed_apr(spot_price: float, time_remaining_seconds: int) -> float:
    """
    Annualized discount rate implied by `spot_price`, in percentage points.

    An expired instrument (no time remaining) has no forward rate: 0 is returned.
    """
    if math.isnan(spot_price):
        return math.nan
    if time_remaining_seconds < 0:
        raise InvalidInput(
            f"time_remaining_seconds must not be negative, got {time_remaining_seconds}"
        )
    if time_remaining_seconds == 0:
        return 0.0
    if spot_price <= 0:
        raise InvalidInput(f"spot_price must be positive, got {spot_price}")

    time_remaining_years = time_remaining_seconds / ONE_YEAR_IN_SECONDS
    return ((1 - spot_price) / spot_price / time_remaining_years) * 100


def compute_fixed_rate(
    base_reserves: RawAmount,
    pt_reserves: RawAmount,
    total_supply: RawAmount,
    time_remaining_seconds: int,
    unit_seconds: int,
    decimals: int,
) -> float:
    """Fixed rate as a fraction (0.05 for 5%), as published in the report."""
    spot_price = calc_spot_price_pt(
        base_reserves,
        pt_reserves,
        total_supply,
        time_remaining_seconds,
        unit_seconds,
        decimals,
    )
    return calc_fixed_apr(spot_price, time_remaining_seconds) / 100

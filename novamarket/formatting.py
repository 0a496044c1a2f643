"""Display and input conversion helpers for addresses and amounts."""
from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

from eth_utils import denoms, from_wei

# Enough digits for any uint256 amount
_PRECISION = 100


def short_address(address: str | None) -> str:
    """Abbreviate an address for display, e.g. '0x1234…abcd'."""
    if not address:
        return ""
    if len(address) <= 10:
        return address
    return f"{address[:6]}…{address[-4:]}"


def format_ether(amount_wei: int) -> str:
    """Render a wei amount in whole currency units without float rounding."""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        value = Decimal(from_wei(amount_wei, "ether"))
        return format(value.normalize(), "f")


def parse_ether(text: str) -> int:
    """Convert a decimal string in whole currency units to wei.

    Raises:
        ValueError: not a decimal number, or finer than 1 wei.
    """
    try:
        value = Decimal(text.strip())
    except (InvalidOperation, AttributeError):
        raise ValueError(f"Not a decimal amount: {text!r}") from None
    if not value.is_finite():
        raise ValueError(f"Not a finite amount: {text!r}")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = value * denoms.ether
        if scaled != scaled.to_integral_value():
            raise ValueError(f"Amount {text!r} has more than 18 decimal places")
        return int(scaled)

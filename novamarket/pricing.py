"""Pure purchase-cost functions — no I/O."""
from __future__ import annotations

from .errors import InvalidQuantity

# Largest value a uint256 contract argument can hold
MAX_UINT256 = 2**256 - 1


def compute_cost(unit_price: int, quantity: int) -> int:
    """Total payment in wei for ``quantity`` units at ``unit_price`` each.

    Python integers are arbitrary precision, so products of any magnitude
    are exact.

    Raises:
        InvalidQuantity: ``quantity`` is not a positive integer, or it or
            the total does not fit in a uint256.
        ValueError: ``unit_price`` is negative.
    """
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidQuantity(f"Quantity must be an integer, got {quantity!r}")
    if quantity <= 0:
        raise InvalidQuantity(f"Quantity must be > 0, got {quantity}")
    if quantity > MAX_UINT256:
        raise InvalidQuantity(f"Quantity {quantity} does not fit in a uint256")
    if unit_price < 0:
        raise ValueError(f"Unit price must be non-negative, got {unit_price}")
    cost = unit_price * quantity
    if cost > MAX_UINT256:
        raise InvalidQuantity(f"Cost of {quantity} units does not fit in a uint256")
    return cost


def parse_quantity(text: str | int | None, default: int = 1) -> int:
    """Turn raw quantity input into a positive integer.

    Empty input means ``default`` units.

    Examples:
        "" → 1
        " 3 " → 3
        "0" → InvalidQuantity
    """
    if text is None or (isinstance(text, str) and not text.strip()):
        return default
    if isinstance(text, int) and not isinstance(text, bool):
        quantity = text
    else:
        try:
            quantity = int(str(text).strip())
        except ValueError:
            raise InvalidQuantity(f"Quantity must be a whole number, got {text!r}") from None
    if quantity <= 0:
        raise InvalidQuantity(f"Quantity must be > 0, got {quantity}")
    if quantity > MAX_UINT256:
        raise InvalidQuantity(f"Quantity {quantity} does not fit in a uint256")
    return quantity

"""
Price calculation for print products.

Total price is

    base_price * size * paper_type * print_side * quantity * quantity_scale

rounded to cents, where quantity_scale is a volume discount drawn from a
fixed tier table. Invalid numeric input degrades to 0 instead of raising.
"""

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Sequence

# (min quantity, max quantity inclusive, scale), ascending and non-overlapping
QUANTITY_SCALES: tuple[tuple[int, float, float], ...] = (
    (1, 99, 1.00),
    (100, 249, 0.95),
    (250, 499, 0.90),
    (500, 999, 0.85),
    (1000, 2499, 0.80),
    (2500, 4999, 0.75),
    (5000, 9999, 0.70),
    (10000, math.inf, 0.65),
)

_CENTS = Decimal("0.01")


def round2(value: float) -> float:
    """
    Round to 2 decimal places, half away from zero.

    Rounds the shortest decimal repr of the float, so 1.005 becomes 1.01.
    """
    if not math.isfinite(value):
        return value
    return float(Decimal(repr(value)).quantize(_CENTS, rounding=ROUND_HALF_UP))


def get_quantity_scale(quantity: int) -> float:
    """Return the volume-discount factor for a quantity (1.0 below 1)."""
    if quantity < 1:
        return 1.0

    for low, high, scale in QUANTITY_SCALES:
        if low <= quantity <= high:
            return scale

    return 1.0


def calculate_price(
    base_price: float,
    size_multiplier: float,
    paper_type_multiplier: float,
    print_side_multiplier: float,
    quantity: int,
) -> float:
    """
    Calculate the total price for a configured print job.

    Returns 0 when base_price is negative or quantity is below 1.
    Multipliers are used as given.
    """
    if base_price < 0 or quantity < 1:
        return 0

    total = (
        base_price
        * size_multiplier
        * paper_type_multiplier
        * print_side_multiplier
        * quantity
        * get_quantity_scale(quantity)
    )
    return round2(total)


def calculate_unit_price(
    base_price: float,
    size_multiplier: float,
    paper_type_multiplier: float,
    print_side_multiplier: float,
    quantity: int,
) -> float:
    """Price per single piece, rounded to cents."""
    if quantity < 1:
        return 0
    total = calculate_price(
        base_price, size_multiplier, paper_type_multiplier, print_side_multiplier, quantity
    )
    return round2(total / quantity)


def calculate_savings(
    base_price: float,
    size_multiplier: float,
    paper_type_multiplier: float,
    print_side_multiplier: float,
    quantity: int,
) -> float:
    """Amount saved by the volume discount compared to the undiscounted price."""
    current_scale = get_quantity_scale(quantity)
    base_scale = get_quantity_scale(1)

    if current_scale >= base_scale:
        return 0

    full_price = (
        base_price
        * size_multiplier
        * paper_type_multiplier
        * print_side_multiplier
        * quantity
        * base_scale
    )
    discounted = calculate_price(
        base_price, size_multiplier, paper_type_multiplier, print_side_multiplier, quantity
    )
    return max(0, round2(full_price - discounted))


def get_discount_percentage(quantity: int) -> int:
    """Volume discount for a quantity as a whole percentage."""
    scale = get_quantity_scale(quantity)
    percent = Decimal(repr((1 - scale) * 100)).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return int(percent)


@dataclass(frozen=True)
class PriceBreakdown:
    """Every factor of a price calculation, for display."""

    base_price: float
    size_multiplier: float
    paper_type_multiplier: float
    print_side_multiplier: float
    quantity: int
    quantity_scale: float
    discount_percentage: int
    unit_price: float
    total_price: float
    savings: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "base_price": self.base_price,
            "size_multiplier": self.size_multiplier,
            "paper_type_multiplier": self.paper_type_multiplier,
            "print_side_multiplier": self.print_side_multiplier,
            "quantity": self.quantity,
            "quantity_scale": self.quantity_scale,
            "discount_percentage": self.discount_percentage,
            "unit_price": self.unit_price,
            "total_price": self.total_price,
            "savings": self.savings,
        }


def get_price_breakdown(
    base_price: float,
    size_multiplier: float,
    paper_type_multiplier: float,
    print_side_multiplier: float,
    quantity: int,
) -> PriceBreakdown:
    args = (base_price, size_multiplier, paper_type_multiplier, print_side_multiplier, quantity)
    return PriceBreakdown(
        base_price=base_price,
        size_multiplier=size_multiplier,
        paper_type_multiplier=paper_type_multiplier,
        print_side_multiplier=print_side_multiplier,
        quantity=quantity,
        quantity_scale=get_quantity_scale(quantity),
        discount_percentage=get_discount_percentage(quantity),
        unit_price=calculate_unit_price(*args),
        total_price=calculate_price(*args),
        savings=calculate_savings(*args),
    )


# Quantity stepper helpers


def nearest_quantity(current: int, allowed: Sequence[int]) -> int:
    """
    Return the allowed quantity closest to current.

    Ties go to the quantity that appears first in allowed.

    Raises:
        ValueError: If allowed is empty.
    """
    if not allowed:
        raise ValueError("allowed quantities must not be empty")

    best = allowed[0]
    for candidate in allowed[1:]:
        if abs(candidate - current) < abs(best - current):
            best = candidate
    return best


def step_quantity(current: int, allowed: Sequence[int], direction: int) -> int | None:
    """
    Move one position up (direction > 0) or down (direction < 0) the allowed list.

    A current value not in the list is first snapped to its nearest allowed
    quantity. Returns None when there is no further step in that direction.
    """
    if not allowed or direction == 0:
        return None

    quantities = list(allowed)
    if current in quantities:
        index = quantities.index(current)
    else:
        index = quantities.index(nearest_quantity(current, quantities))

    index += 1 if direction > 0 else -1
    if index < 0 or index >= len(quantities):
        return None
    return quantities[index]

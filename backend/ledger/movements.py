"""
Stock movements and the fold that turns them into a stock level.

Stock on hand is never stored. It is the sum of a product's movements,
where an IN movement adds its quantity and an OUT movement subtracts it.
Everything in this module is pure: no I/O and no knowledge of storage.
"""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterable, Optional

from ledger.errors import ValidationError


class Direction(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"


@dataclass(frozen=True)
class Movement:
    """One immutable ledger entry. ``quantity`` is always positive."""

    id: str
    product_id: str
    direction: Direction
    quantity: int
    owner_id: str
    created_at: datetime
    notes: Optional[str] = None

    @property
    def signed_quantity(self) -> int:
        return signed_quantity(self.direction, self.quantity)


def signed_quantity(direction, quantity: int) -> int:
    return quantity if Direction(direction) is Direction.IN else -quantity


def fold(movements: Iterable[Any]) -> int:
    """Sum the signed quantities of ``movements``.

    Accepts anything exposing ``direction`` (or ``type``) and ``quantity``.
    Addition commutes, so the order of the input does not matter. Inputs
    are assumed to have passed :func:`validate_quantity` on the way in.
    """
    total = 0
    for m in movements:
        direction = getattr(m, "direction", None) or m.type
        total += signed_quantity(direction, m.quantity)
    return total


def validate_quantity(quantity: Any) -> int:
    # bool is an int subclass; True must not count as a quantity of 1
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise ValidationError("quantity", "must be an integer")
    if quantity <= 0:
        raise ValidationError("quantity", "must be greater than 0")
    return quantity


def validate_direction(direction: Any) -> Direction:
    try:
        return Direction(direction)
    except ValueError:
        raise ValidationError("type", "must be one of: IN, OUT") from None


def is_below_minimum(product: Any, current_stock: int) -> bool:
    """True when ``current_stock`` is strictly under ``product.min_stock``."""
    return current_stock < product.min_stock

import logging
from typing import Any, Iterable, Optional

from ledger.errors import NotFoundError
from ledger.movements import (
    Movement,
    fold,
    is_below_minimum,
    validate_direction,
    validate_quantity,
)
from ledger.store import MovementQuery, MovementStore

logger = logging.getLogger(__name__)


class StockLedger:
    """Append-only stock ledger over a MovementStore.

    Stock levels are recomputed from the movement history on every read.
    Every operation takes the acting ``owner_id`` and only sees rows that
    belong to it. No locks are taken: concurrent appends are independent
    inserts and the fold does not depend on their order.
    """

    def __init__(self, store: MovementStore):
        self.store = store

    def append(self, product_id: str, direction: Any, quantity: Any,
               notes: Optional[str], owner_id: str) -> Movement:
        direction = validate_direction(direction)
        quantity = validate_quantity(quantity)
        if not self.store.product_exists(product_id, owner_id):
            raise NotFoundError("Product", product_id)

        movement = self.store.insert(product_id, direction, quantity, notes, owner_id)
        logger.info(
            "Stock movement %s appended: product=%s %s %d",
            movement.id, product_id, direction.value, quantity,
        )
        return movement

    def current_stock(self, product_id: str, owner_id: str) -> int:
        if not self.store.product_exists(product_id, owner_id):
            raise NotFoundError("Product", product_id)
        return fold(self.store.fetch(product_id, owner_id))

    def current_stocks(self, product_ids: Iterable[str], owner_id: str) -> dict[str, int]:
        """Stock level per product; callers must have scoped ``product_ids`` to the owner."""
        grouped = self.store.fetch_many(product_ids, owner_id)
        return {pid: fold(movements) for pid, movements in grouped.items()}

    def delete(self, movement_id: str, owner_id: str) -> None:
        if self.store.delete(movement_id, owner_id) == 0:
            raise NotFoundError("Stock movement", movement_id)
        logger.info("Stock movement %s deleted", movement_id)

    def history(self, owner_id: str, product_id: Optional[str] = None,
                direction: Optional[Any] = None, start=None, end=None,
                descending: bool = True, offset: int = 0,
                limit: Optional[int] = None) -> list[Movement]:
        criteria = MovementQuery(
            product_id=product_id,
            direction=validate_direction(direction) if direction else None,
            start=start,
            end=end,
            descending=descending,
            offset=offset,
            limit=limit,
        )
        return self.store.query(owner_id, criteria)

    def history_count(self, owner_id: str, product_id: Optional[str] = None,
                      direction: Optional[Any] = None, start=None, end=None) -> int:
        """Number of movements ``history`` would return without paging."""
        criteria = MovementQuery(
            product_id=product_id,
            direction=validate_direction(direction) if direction else None,
            start=start,
            end=end,
        )
        return self.store.count(owner_id, criteria)

    fold = staticmethod(fold)
    is_below_minimum = staticmethod(is_below_minimum)

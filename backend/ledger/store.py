"""
Persistence contract for the stock ledger, plus an in-memory implementation.

A store only needs atomic single-row insert and delete and owner-scoped
reads. It never keeps a running total. ``SqlAlchemyMovementStore`` in
``ledger.sql_store`` is the database-backed implementation.
"""

import itertools
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Iterable, Optional, Protocol

from ledger.errors import PersistenceError
from ledger.movements import Direction, Movement


@dataclass(frozen=True)
class MovementQuery:
    """Filters for an owner-scoped movement listing."""

    product_id: Optional[str] = None
    direction: Optional[Direction] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    descending: bool = True
    offset: int = 0
    limit: Optional[int] = None


class MovementStore(Protocol):
    def product_exists(self, product_id: str, owner_id: str) -> bool: ...

    def insert(self, product_id: str, direction: Direction, quantity: int,
               notes: Optional[str], owner_id: str) -> Movement: ...

    def delete(self, movement_id: str, owner_id: str) -> int: ...

    def fetch(self, product_id: str, owner_id: str) -> list[Movement]: ...

    def fetch_many(self, product_ids: Iterable[str], owner_id: str) -> dict[str, list[Movement]]: ...

    def query(self, owner_id: str, criteria: MovementQuery) -> list[Movement]: ...

    def count(self, owner_id: str, criteria: MovementQuery) -> int: ...


class InMemoryMovementStore:
    """Movement arena indexed by product.

    Useful for tests and for embedding the ledger without a database.
    ``fail_inserts`` makes every insert raise PersistenceError, which
    simulates a store outage.
    """

    def __init__(self, clock=None):
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._ids = itertools.count(1)
        self._products: dict[str, str] = {}
        self._movements: dict[str, Movement] = {}
        self._by_product: dict[str, list[str]] = {}
        self.fail_inserts = False

    def add_product(self, product_id: str, owner_id: str) -> None:
        self._products[product_id] = owner_id
        self._by_product.setdefault(product_id, [])

    def product_exists(self, product_id: str, owner_id: str) -> bool:
        return self._products.get(product_id) == owner_id

    def insert(self, product_id, direction, quantity, notes, owner_id) -> Movement:
        if self.fail_inserts:
            raise PersistenceError("insert movement", "store unavailable")
        movement = Movement(
            id=f"mv-{next(self._ids)}",
            product_id=product_id,
            direction=Direction(direction),
            quantity=quantity,
            owner_id=owner_id,
            created_at=self._clock(),
            notes=notes,
        )
        self._movements[movement.id] = movement
        self._by_product.setdefault(product_id, []).append(movement.id)
        return movement

    def delete(self, movement_id, owner_id) -> int:
        movement = self._movements.get(movement_id)
        if movement is None or movement.owner_id != owner_id:
            return 0
        del self._movements[movement_id]
        self._by_product[movement.product_id].remove(movement_id)
        return 1

    def fetch(self, product_id, owner_id) -> list[Movement]:
        rows = (self._movements[i] for i in self._by_product.get(product_id, []))
        return sorted(
            (m for m in rows if m.owner_id == owner_id),
            key=lambda m: m.created_at,
        )

    def fetch_many(self, product_ids, owner_id) -> dict[str, list[Movement]]:
        return {pid: self.fetch(pid, owner_id) for pid in product_ids}

    def _matching(self, owner_id, criteria: MovementQuery) -> list[Movement]:
        rows = [m for m in self._movements.values() if m.owner_id == owner_id]
        if criteria.product_id:
            rows = [m for m in rows if m.product_id == criteria.product_id]
        if criteria.direction:
            rows = [m for m in rows if m.direction is criteria.direction]
        if criteria.start:
            rows = [m for m in rows if m.created_at >= criteria.start]
        if criteria.end:
            rows = [m for m in rows if m.created_at <= criteria.end]
        return rows

    def query(self, owner_id, criteria: MovementQuery) -> list[Movement]:
        rows = sorted(self._matching(owner_id, criteria), key=lambda m: m.created_at,
                      reverse=criteria.descending)
        end = None if criteria.limit is None else criteria.offset + criteria.limit
        return rows[criteria.offset:end]

    def count(self, owner_id, criteria: MovementQuery) -> int:
        return len(self._matching(owner_id, criteria))

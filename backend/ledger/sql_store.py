"""SQLAlchemy-backed MovementStore."""

import logging
from datetime import datetime, timezone
from typing import Iterable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger.errors import PersistenceError
from ledger.movements import Direction, Movement
from ledger.store import MovementQuery
from models.product import Product
from models.stock import StockMovement

logger = logging.getLogger(__name__)


def _utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    # SQLite hands back naive datetimes; they are stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_movement(row: StockMovement) -> Movement:
    return Movement(
        id=row.id,
        product_id=row.product_id,
        direction=Direction(row.type),
        quantity=row.quantity,
        owner_id=row.created_by,
        created_at=_utc(row.created_at),
        notes=row.notes,
    )


class SqlAlchemyMovementStore:
    """Movement store over a request-scoped Session.

    Inserts and deletes commit immediately, one row each. Any SQLAlchemy
    failure rolls the session back and surfaces as PersistenceError.
    """

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, operation: str, exc: Exception) -> PersistenceError:
        self.db.rollback()
        logger.error("Stock store %s failed", operation, exc_info=exc)
        return PersistenceError(operation)

    def product_exists(self, product_id: str, owner_id: str) -> bool:
        try:
            found = (
                self.db.query(Product.id)
                .filter(Product.id == product_id, Product.owner_id == owner_id)
                .first()
            )
        except SQLAlchemyError as e:
            raise self._fail("lookup product", e) from e
        return found is not None

    def insert(self, product_id, direction, quantity, notes, owner_id) -> Movement:
        row = StockMovement(
            product_id=product_id,
            type=Direction(direction).value,
            quantity=quantity,
            notes=notes,
            created_by=owner_id,
        )
        try:
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
        except SQLAlchemyError as e:
            raise self._fail("insert movement", e) from e
        return to_movement(row)

    def delete(self, movement_id, owner_id) -> int:
        try:
            deleted = (
                self.db.query(StockMovement)
                .filter(StockMovement.id == movement_id, StockMovement.created_by == owner_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            raise self._fail("delete movement", e) from e
        return deleted

    def fetch(self, product_id, owner_id) -> list[Movement]:
        return self.fetch_many([product_id], owner_id).get(product_id, [])

    def fetch_many(self, product_ids: Iterable[str], owner_id: str) -> dict[str, list[Movement]]:
        ids = list(product_ids)
        grouped: dict[str, list[Movement]] = {pid: [] for pid in ids}
        if not ids:
            return grouped
        try:
            rows = (
                self.db.query(StockMovement)
                .filter(StockMovement.product_id.in_(ids), StockMovement.created_by == owner_id)
                .order_by(StockMovement.created_at.asc())
                .all()
            )
        except SQLAlchemyError as e:
            raise self._fail("fetch movements", e) from e
        for row in rows:
            grouped[row.product_id].append(to_movement(row))
        return grouped

    def _filtered(self, owner_id: str, criteria: MovementQuery):
        q = self.db.query(StockMovement).filter(StockMovement.created_by == owner_id)
        if criteria.product_id:
            q = q.filter(StockMovement.product_id == criteria.product_id)
        if criteria.direction:
            q = q.filter(StockMovement.type == criteria.direction.value)
        if criteria.start:
            q = q.filter(StockMovement.created_at >= _utc(criteria.start))
        if criteria.end:
            q = q.filter(StockMovement.created_at <= _utc(criteria.end))
        return q

    def query(self, owner_id: str, criteria: MovementQuery) -> list[Movement]:
        col = StockMovement.created_at
        q = self._filtered(owner_id, criteria)
        q = q.order_by(col.desc() if criteria.descending else col.asc())
        if criteria.offset:
            q = q.offset(criteria.offset)
        if criteria.limit is not None:
            q = q.limit(criteria.limit)
        try:
            rows = q.all()
        except SQLAlchemyError as e:
            raise self._fail("list movements", e) from e
        return [to_movement(r) for r in rows]

    def count(self, owner_id: str, criteria: MovementQuery) -> int:
        try:
            return self._filtered(owner_id, criteria).count()
        except SQLAlchemyError as e:
            raise self._fail("count movements", e) from e

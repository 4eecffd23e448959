"""
Opening stock for newly created products.

A product's initial stock is recorded as one synthetic IN movement, so the
ledger stays the only source of quantities. The product row and that
movement are written separately: if the movement fails the product is kept
and the caller gets a CreatedWithWarning instead of an error.
"""

import logging
from dataclasses import dataclass
from typing import Union

from ledger.errors import PersistenceError
from ledger.movements import Direction
from ledger.service import StockLedger

logger = logging.getLogger(__name__)

INITIAL_STOCK_NOTE = "Initial stock"
INITIAL_STOCK_WARNING = "Product created but failed to set initial stock"


@dataclass(frozen=True)
class Created:
    current_stock: int


@dataclass(frozen=True)
class CreatedWithWarning:
    reason: str
    current_stock: int = 0


ProductCreation = Union[Created, CreatedWithWarning]


def seed_initial_stock(ledger: StockLedger, product_id: str, initial_stock: int,
                       owner_id: str) -> ProductCreation:
    if initial_stock <= 0:
        return Created(current_stock=0)
    try:
        ledger.append(product_id, Direction.IN, initial_stock, INITIAL_STOCK_NOTE, owner_id)
    except PersistenceError:
        logger.warning(
            "Product %s created without its initial stock of %d", product_id, initial_stock
        )
        return CreatedWithWarning(reason=INITIAL_STOCK_WARNING)
    return Created(current_stock=initial_stock)

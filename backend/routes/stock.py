# backend/routes/stock.py
from datetime import datetime
from typing import Optional, Literal

from fastapi import APIRouter, Depends, Query, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from ledger.movements import Movement
from ledger.service import StockLedger
from ledger.sql_store import SqlAlchemyMovementStore
from models.product import Product
from models.users import User
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
import schemas.stock as stock_schemas

router = APIRouter(prefix="/stock", tags=["Stock"])


# Request-scoped ledger bound to the request's session
def get_ledger(db: Session = Depends(get_db)) -> StockLedger:
    return StockLedger(SqlAlchemyMovementStore(db))


def _movement_out(m: Movement, **extra) -> dict:
    return {
        "id": m.id,
        "product_id": m.product_id,
        "type": m.direction.value,
        "quantity": m.quantity,
        "notes": m.notes,
        "created_by": m.owner_id,
        "created_at": m.created_at,
        **extra,
    }


@router.post("/movements", response_model=stock_schemas.StockMovementResponse,
             status_code=status.HTTP_201_CREATED)
def create_movement(
    payload: stock_schemas.StockMovementCreate,
    request: Request,
    db: Session = Depends(get_db),
    ledger: StockLedger = Depends(get_ledger),
    current_user: User = Depends(get_current_user),
):
    movement = ledger.append(
        payload.product_id, payload.type, payload.quantity, payload.notes, current_user.id
    )
    write_log(db, user_id=current_user.id, action="STOCK_MOVEMENT_CREATE", resource="stock",
              ip=client_ip(request),
              meta={"id": movement.id, "type": movement.direction.value, "quantity": movement.quantity})
    return _movement_out(movement)


@router.get("/movements", response_model=stock_schemas.StockMovementPage)
def list_movements(
    product_id: Optional[str] = Query(None, alias="productId"),
    type: Optional[stock_schemas.StockMovementType] = Query(None),
    start_date: Optional[datetime] = Query(None, alias="startDate"),
    end_date: Optional[datetime] = Query(None, alias="endDate"),
    sort: Literal["created_at"] = Query("created_at"),
    order: Literal["asc", "desc"] = Query("desc"),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1, le=500, alias="pageSize"),
    db: Session = Depends(get_db),
    ledger: StockLedger = Depends(get_ledger),
    current_user: User = Depends(get_current_user),
):
    filters = dict(product_id=product_id, direction=type, start=start_date, end=end_date)
    total = ledger.history_count(current_user.id, **filters)
    items = ledger.history(
        current_user.id,
        descending=(order == "desc"),
        offset=(page - 1) * page_size,
        limit=page_size,
        **filters,
    )

    # Resolve product names for the page in one query
    product_ids = {m.product_id for m in items}
    names = {}
    if product_ids:
        names = dict(
            db.query(Product.id, Product.name)
            .filter(Product.id.in_(product_ids), Product.owner_id == current_user.id)
            .all()
        )

    results = [
        _movement_out(m, product_name=names.get(m.product_id), user_name=current_user.full_name)
        for m in items
    ]
    return {"items": results, "total": total, "page": page, "page_size": page_size}


@router.get("/products/{product_id}", response_model=stock_schemas.CurrentStock)
def get_product_stock(
    product_id: str,
    ledger: StockLedger = Depends(get_ledger),
    current_user: User = Depends(get_current_user),
):
    return {"current_stock": ledger.current_stock(product_id, current_user.id)}


@router.delete("/movements/{movement_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_movement(
    movement_id: str,
    request: Request,
    db: Session = Depends(get_db),
    ledger: StockLedger = Depends(get_ledger),
    current_user: User = Depends(get_current_user),
):
    ledger.delete(movement_id, current_user.id)
    write_log(db, user_id=current_user.id, action="STOCK_MOVEMENT_DELETE", resource="stock",
              ip=client_ip(request), meta={"id": movement_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)

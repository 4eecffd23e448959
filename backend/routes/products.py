# backend/routes/products.py
import logging
from typing import Optional, List, Literal

from fastapi import (
    APIRouter, Depends, HTTPException, Query, Request, Response, status,
    UploadFile, File, Form
)
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from database import get_db
from ledger.errors import PersistenceError
from ledger.movements import is_below_minimum
from ledger.products import CreatedWithWarning, seed_initial_stock
from ledger.service import StockLedger
from models.category import Category
from models.product import Product
from models.stock import StockMovement
from models.users import User
from routes.stock import get_ledger
from utils.audit import write_log, client_ip
from utils.tokenJWT import get_current_user
from utils.uploads import discard_image, save_image
import schemas.product as product_schemas

router = APIRouter(prefix="/products", tags=["Products"])
logger = logging.getLogger(__name__)

# ---- HELPERS ----
def _get_owned(db: Session, product_id: str, owner_id: str) -> Product:
    product = (
        db.query(Product)
        .options(joinedload(Product.category))
        .filter(Product.id == product_id, Product.owner_id == owner_id)
        .first()
    )
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product

def _require_category(db: Session, category_id: str, owner_id: str) -> Category:
    category = (
        db.query(Category)
        .filter(Category.id == category_id, Category.owner_id == owner_id)
        .first()
    )
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category

def _sku_taken(db: Session, sku: str, owner_id: str, exclude_id: Optional[str] = None) -> bool:
    query = db.query(Product.id).filter(Product.owner_id == owner_id, Product.sku == sku)
    if exclude_id:
        query = query.filter(Product.id != exclude_id)
    return query.first() is not None

def _product_out(p: Product, current_stock: int, **extra) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "description": p.description,
        "sku": p.sku,
        "price": p.price,
        "min_stock": p.min_stock,
        "category_id": p.category_id,
        "category_name": p.category.name if p.category else None,
        "image_url": p.image_url,
        "created_at": p.created_at,
        "current_stock": current_stock,
        **extra,
    }

def _commit(db: Session, operation: str, image_url: Optional[str] = None) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        discard_image(image_url)
        logger.warning("%s rejected by the database: %s", operation, e.orig)
        raise HTTPException(status_code=409, detail="Product SKU already exists")
    except SQLAlchemyError as e:
        db.rollback()
        discard_image(image_url)
        logger.exception("%s failed", operation)
        raise PersistenceError(operation) from e


# =========================
# CREATE
# =========================
@router.post("", response_model=product_schemas.ProductCreated, status_code=status.HTTP_201_CREATED)
def create_product(
    request: Request,
    db: Session = Depends(get_db),
    ledger: StockLedger = Depends(get_ledger),
    current_user: User = Depends(get_current_user),
    image: Optional[UploadFile] = File(None),
    name: str = Form(..., min_length=1),
    description: Optional[str] = Form(None),
    category_id: str = Form(..., alias="categoryId"),
    sku: str = Form(..., min_length=1),
    price: float = Form(0.0, ge=0, allow_inf_nan=False),
    min_stock: int = Form(0, ge=0, alias="minStock"),
    initial_stock: int = Form(0, ge=0, alias="initialStock"),
):
    _require_category(db, category_id, current_user.id)
    if _sku_taken(db, sku, current_user.id):
        raise HTTPException(status_code=409, detail="Product SKU already exists")

    product = Product(
        name=name, description=description, category_id=category_id, sku=sku,
        price=price, min_stock=min_stock, owner_id=current_user.id,
        image_url=save_image(image),
    )
    db.add(product)
    _commit(db, "create product", image_url=product.image_url)
    db.refresh(product)

    # Opening stock is a separate ledger append; its failure keeps the product
    outcome = seed_initial_stock(ledger, product.id, initial_stock, current_user.id)
    extra = {}
    if isinstance(outcome, CreatedWithWarning):
        extra["warning"] = outcome.reason

    write_log(db, user_id=current_user.id, action="PRODUCT_CREATE", resource="products",
              status="WARNING" if extra else "SUCCESS", ip=client_ip(request),
              meta={"id": product.id, "sku": product.sku, "initial_stock": initial_stock, **extra})

    db.refresh(product)
    return _product_out(product, outcome.current_stock, **extra)


# =========================
# LIST
# =========================
@router.get("", response_model=List[product_schemas.ProductOut])
def list_products(
    search: Optional[str] = Query(None),
    category_id: Optional[str] = Query(None, alias="categoryId"),
    sort: Literal["name", "sku", "price", "created_at"] = Query("name"),
    order: Literal["asc", "desc"] = Query("asc"),
    min_stock: Optional[Literal["below", "above"]] = Query(None, alias="minStock"),
    db: Session = Depends(get_db),
    ledger: StockLedger = Depends(get_ledger),
    current_user: User = Depends(get_current_user),
):
    query = (
        db.query(Product)
        .options(joinedload(Product.category))
        .filter(Product.owner_id == current_user.id)
    )
    if search:
        like = f"%{search}%"
        query = query.filter(or_(Product.name.ilike(like), Product.sku.ilike(like)))
    if category_id:
        query = query.filter(Product.category_id == category_id)

    allowed = {
        "name": Product.name, "sku": Product.sku,
        "price": Product.price, "created_at": Product.created_at,
    }
    sort_col = allowed[sort]
    query = query.order_by(sort_col.asc() if order == "asc" else sort_col.desc())

    products = query.all()
    stocks = ledger.current_stocks([p.id for p in products], current_user.id)

    results = []
    for p in products:
        current = stocks.get(p.id, 0)
        below = is_below_minimum(p, current)
        if min_stock == "below" and not below:
            continue
        if min_stock == "above" and below:
            continue
        results.append(_product_out(p, current))
    return results


# =========================
# SINGLE PRODUCT
# =========================
@router.get("/{product_id}", response_model=product_schemas.ProductOut)
def get_product(
    product_id: str,
    db: Session = Depends(get_db),
    ledger: StockLedger = Depends(get_ledger),
    current_user: User = Depends(get_current_user),
):
    product = _get_owned(db, product_id, current_user.id)
    return _product_out(product, ledger.current_stock(product.id, current_user.id))


# =========================
# UPDATE (PUT)
# =========================
@router.put("/{product_id}", response_model=product_schemas.ProductOut)
def update_product(
    product_id: str,
    request: Request,
    db: Session = Depends(get_db),
    ledger: StockLedger = Depends(get_ledger),
    current_user: User = Depends(get_current_user),
    image: Optional[UploadFile] = File(None),
    name: str = Form(..., min_length=1),
    description: Optional[str] = Form(None),
    category_id: str = Form(..., alias="categoryId"),
    sku: str = Form(..., min_length=1),
    price: float = Form(..., ge=0, allow_inf_nan=False),
    min_stock: int = Form(..., ge=0, alias="minStock"),
):
    product = _get_owned(db, product_id, current_user.id)
    _require_category(db, category_id, current_user.id)
    if sku != product.sku and _sku_taken(db, sku, current_user.id, exclude_id=product.id):
        raise HTTPException(status_code=409, detail="Product SKU already exists")

    # Last write wins; stock is not a field here, it only moves through the ledger
    product.name = name
    product.description = description
    product.category_id = category_id
    product.sku = sku
    product.price = price
    product.min_stock = min_stock
    image_url = save_image(image)
    if image_url:
        product.image_url = image_url

    _commit(db, "update product", image_url=image_url)
    write_log(db, user_id=current_user.id, action="PRODUCT_UPDATE", resource="products",
              ip=client_ip(request), meta={"id": product.id})

    product = _get_owned(db, product_id, current_user.id)
    return _product_out(product, ledger.current_stock(product.id, current_user.id))


# =========================
# DELETE
# =========================
@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_product(
    product_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    product = _get_owned(db, product_id, current_user.id)

    # Movements and product go in one transaction so neither outlives the other
    try:
        db.query(StockMovement).filter(StockMovement.product_id == product.id).delete(synchronize_session=False)
        db.delete(product)
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception("delete product %s failed", product_id)
        raise PersistenceError("delete product") from e

    write_log(db, user_id=current_user.id, action="PRODUCT_DELETE", resource="products",
              ip=client_ip(request), meta={"id": product_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)

# backend/routes/categories.py
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
from sqlalchemy.orm import Session

from database import get_db
from models.category import Category
from models.product import Product
from models.users import User
from utils.tokenJWT import get_current_user
from utils.audit import write_log, client_ip
import schemas.category as category_schemas

router = APIRouter(prefix="/categories", tags=["Categories"])


def _get_owned(db: Session, category_id: str, owner_id: str) -> Category:
    category = (
        db.query(Category)
        .filter(Category.id == category_id, Category.owner_id == owner_id)
        .first()
    )
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.post("", response_model=category_schemas.CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: category_schemas.CategoryCreate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    category = Category(name=payload.name, description=payload.description, owner_id=current_user.id)
    db.add(category)
    db.commit()
    db.refresh(category)
    write_log(db, user_id=current_user.id, action="CATEGORY_CREATE", resource="categories",
              ip=client_ip(request), meta={"id": category.id})
    return category


@router.get("", response_model=List[category_schemas.CategoryOut])
def list_categories(
    search: Optional[str] = Query(None),
    sort: Literal["name", "created_at"] = Query("name"),
    order: Literal["asc", "desc"] = Query("asc"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Category).filter(Category.owner_id == current_user.id)
    if search:
        query = query.filter(Category.name.ilike(f"%{search}%"))

    col = Category.created_at if sort == "created_at" else Category.name
    query = query.order_by(col.asc() if order == "asc" else col.desc())
    return query.all()


@router.put("/{category_id}", response_model=category_schemas.CategoryOut)
def update_category(
    category_id: str,
    payload: category_schemas.CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    category = _get_owned(db, category_id, current_user.id)
    category.name = payload.name
    category.description = payload.description
    db.commit()
    db.refresh(category)
    write_log(db, user_id=current_user.id, action="CATEGORY_UPDATE", resource="categories",
              ip=client_ip(request), meta={"id": category.id})
    return category


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: str,
    request: Request,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    category = _get_owned(db, category_id, current_user.id)

    in_use = db.query(Product.id).filter(Product.category_id == category.id).first()
    if in_use:
        raise HTTPException(status_code=400, detail="Cannot delete category with associated products")

    db.delete(category)
    db.commit()
    write_log(db, user_id=current_user.id, action="CATEGORY_DELETE", resource="categories",
              ip=client_ip(request), meta={"id": category_id})
    return Response(status_code=status.HTTP_204_NO_CONTENT)

from datetime import datetime
from pydantic import Field
from typing import Optional

from schemas.base import APIModel


class CategoryBase(APIModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class CategoryCreate(CategoryBase):
    pass


class CategoryUpdate(CategoryBase):
    pass


class CategoryOut(CategoryBase):
    id: str
    created_at: Optional[datetime] = None

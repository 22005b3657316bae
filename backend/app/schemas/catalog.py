from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class CategoryOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProductImageOut(BaseModel):
    id: int
    url: str
    position: int = 0

    class Config:
        from_attributes = True


class ProductOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    category_id: Optional[int] = None
    featured: bool
    in_stock: bool
    created_at: Optional[datetime] = None
    images: List[ProductImageOut] = []

    class Config:
        from_attributes = True


class CategoryListResponse(BaseModel):
    categories: List[CategoryOut]


class ProductListResponse(BaseModel):
    products: List[ProductOut]

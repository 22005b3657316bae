from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session, selectinload

from app.core.database import get_db
from app.models.catalog import Category, Product
from app.schemas.catalog import CategoryListResponse, CategoryOut, ProductListResponse, ProductOut
from app.services.cache import CatalogReadCache


router = APIRouter()


def get_catalog_cache(request: Request) -> CatalogReadCache:
    return request.app.state.catalog_cache


@router.get("/categories", response_model=CategoryListResponse)
async def list_categories(
    db: Session = Depends(get_db),
    cache: CatalogReadCache = Depends(get_catalog_cache),
):
    def fetch() -> list[dict]:
        rows = db.query(Category).order_by(Category.name.asc()).all()
        return [CategoryOut.model_validate(c).model_dump() for c in rows]

    return {"categories": cache.get_categories(fetch)}


@router.get("/products/featured", response_model=ProductListResponse)
async def list_featured_products(
    db: Session = Depends(get_db),
    cache: CatalogReadCache = Depends(get_catalog_cache),
):
    def fetch() -> list[dict]:
        rows = (
            db.query(Product)
            .options(selectinload(Product.images))
            .filter(Product.featured.is_(True), Product.in_stock.is_(True))
            .order_by(Product.created_at.desc(), Product.id.desc())
            .all()
        )
        return [ProductOut.model_validate(p).model_dump() for p in rows]

    return {"products": cache.get_featured_products(fetch)}

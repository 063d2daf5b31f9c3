# smartcatalog/api/v1/routers/products.py

from fastapi import APIRouter, Depends, HTTPException, Query
from typing import Optional
import logging

from smartcatalog.api.deps import product_repo
from smartcatalog.api.v1.schemas.products import ProductIn, ProductUpdate
from smartcatalog.domain.repositories.product_repo import ProductRepo
from smartcatalog.domain.services.sorting import apply_sorting

logger = logging.getLogger(__name__)

router = APIRouter(tags=["products"])


@router.get("/products")
async def list_products(
    category: Optional[str] = Query(None),
    min_price: Optional[float] = Query(None, alias="minPrice", ge=0),
    max_price: Optional[float] = Query(None, alias="maxPrice", ge=0),
    brand: Optional[str] = Query(None, description="Filter by attributes.brand"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="price_asc, price_desc, name_asc, name_desc, newest, oldest"),
    repo: ProductRepo = Depends(product_repo),
):
    filters = {"category": category, "min_price": min_price, "max_price": max_price, "brand": brand}
    products = await repo.list_products(filters)
    if sort_by:
        products = apply_sorting(products, sort_by)
    logger.info(f"Response: list_products count={len(products)} filters={filters} sort={sort_by}")
    return {"success": True, "count": len(products), "data": products}


# Declared before /products/{product_id} so "search" is not taken for an id
@router.get("/products/search")
async def search_products(
    q: str = Query(..., min_length=1, description="Substring of name or description"),
    repo: ProductRepo = Depends(product_repo),
):
    products = await repo.text_search(q)
    return {"success": True, "count": len(products), "data": products}


@router.get("/products/category/{category}")
async def products_by_category(category: str, repo: ProductRepo = Depends(product_repo)):
    products = await repo.find_by_category(category)
    return {"success": True, "count": len(products), "data": products}


@router.get("/products/{product_id}")
async def get_product(product_id: int, repo: ProductRepo = Depends(product_repo)):
    product = await repo.get_by_id(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True, "data": product}


@router.post("/products", status_code=201)
async def create_product(body: ProductIn, repo: ProductRepo = Depends(product_repo)):
    product = await repo.create_product(body.model_dump())
    logger.info(f"Product created id={product.id}")
    return {"success": True, "message": "Product created successfully", "data": product}


@router.put("/products/{product_id}")
async def update_product(product_id: int, body: ProductUpdate, repo: ProductRepo = Depends(product_repo)):
    product = await repo.update_product(product_id, body.model_dump(exclude_unset=True))
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True, "message": "Product updated successfully", "data": product}


@router.delete("/products/{product_id}")
async def delete_product(product_id: int, repo: ProductRepo = Depends(product_repo)):
    product = await repo.delete_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    logger.info(f"Product deleted id={product_id}")
    return {"success": True, "message": "Product deleted successfully", "data": product}

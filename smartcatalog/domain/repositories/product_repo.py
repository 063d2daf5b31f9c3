# smartcatalog/domain/repositories/product_repo.py

from __future__ import annotations
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import re
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from smartcatalog.domain.models.product import Product

# Fields a caller may write; id and timestamps are owned here
_WRITABLE = {"name", "description", "price", "category", "image_url", "attributes"}

def _ci_equals(value: str) -> Dict[str, Any]:
    """Case-insensitive exact match."""
    return {"$regex": f"^{re.escape(value)}$", "$options": "i"}

class ProductRepo:
    """
    Product repository backed by the 'products' collection.
    Integer ids are allocated from the 'counters' collection.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "products"):
        self.col = db[collection_name]
        self.counters = db["counters"]

    @staticmethod
    def _query(filters: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Translate simple catalog filters (category, min/max price, brand) to MQL."""
        q: Dict[str, Any] = {}
        if not filters:
            return q
        if filters.get("category"):
            q["category"] = _ci_equals(filters["category"])
        price: Dict[str, float] = {}
        if filters.get("min_price") is not None:
            price["$gte"] = float(filters["min_price"])
        if filters.get("max_price") is not None:
            price["$lte"] = float(filters["max_price"])
        if price:
            q["price"] = price
        if filters.get("brand"):
            q["attributes.brand"] = _ci_equals(filters["brand"])
        return q

    async def _find(self, query: Dict[str, Any]) -> List[Product]:
        cursor = self.col.find(query, {"_id": 0}).sort("created_at", DESCENDING)
        return [Product.model_validate(doc) async for doc in cursor]

    # ----- Reads -------------------------------------------------------------

    async def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        """All products, newest first, optionally narrowed in the database."""
        return await self._find(self._query(filters))

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        doc = await self.col.find_one({"id": int(product_id)}, {"_id": 0})
        return Product.model_validate(doc) if doc else None

    async def find_by_category(self, category: str) -> List[Product]:
        return await self._find({"category": _ci_equals(category)})

    async def text_search(self, term: str) -> List[Product]:
        """Case-insensitive substring match on name or description."""
        pattern = {"$regex": re.escape(term), "$options": "i"}
        return await self._find({"$or": [{"name": pattern}, {"description": pattern}]})

    # ----- Writes ------------------------------------------------------------

    async def _next_id(self) -> int:
        doc = await self.counters.find_one_and_update(
            {"_id": "products"},
            {"$inc": {"seq": 1}},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc["seq"])

    async def create_product(self, data: Dict[str, Any]) -> Product:
        now = datetime.now(timezone.utc)
        doc = {k: v for k, v in data.items() if k in _WRITABLE}
        doc.setdefault("attributes", {})
        doc.update(id=await self._next_id(), created_at=now, updated_at=now)
        product = Product.model_validate(doc)  # validate before writing
        await self.col.insert_one(product.model_dump())
        return product

    async def update_product(self, product_id: int, data: Dict[str, Any]) -> Optional[Product]:
        """Partial update. Returns None when the product does not exist."""
        changes = {k: v for k, v in data.items() if k in _WRITABLE}
        changes["updated_at"] = datetime.now(timezone.utc)
        doc = await self.col.find_one_and_update(
            {"id": int(product_id)},
            {"$set": changes},
            projection={"_id": 0},
            return_document=ReturnDocument.AFTER,
        )
        return Product.model_validate(doc) if doc else None

    async def delete_product(self, product_id: int) -> Optional[Product]:
        """Delete and return the removed product, or None if it did not exist."""
        doc = await self.col.find_one_and_delete({"id": int(product_id)}, projection={"_id": 0})
        return Product.model_validate(doc) if doc else None

    async def ensure_indexes(self) -> None:
        await self.col.create_index([("id", ASCENDING)], unique=True)
        await self.col.create_index([("category", ASCENDING)])
        await self.col.create_index([("name", ASCENDING)])

"""
Pytest configuration and fixtures for the search API tests.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest

from smartcatalog.domain.models.product import Product


def _ts(day: int) -> datetime:
    return datetime(2024, 1, day, tzinfo=timezone.utc)


@pytest.fixture
def sample_products() -> List[Product]:
    """MacBook, Sony headphones, Nike sneakers, iPhone: created on Jan 1..4."""
    return [
        Product(
            id=1,
            name="MacBook Pro 14-inch",
            description="Professional laptop with M3 chip, Liquid Retina XDR display and all-day battery life.",
            price=1999.99,
            category="Electronics",
            attributes={"brand": "Apple", "processor": "M3", "storage": "512GB"},
            created_at=_ts(1),
        ),
        Product(
            id=2,
            name="Sony WH-1000XM5 Headphones",
            description="Wireless noise cancelling headphones with 30-hour battery.",
            price=399.99,
            category="Electronics",
            attributes={"brand": "Sony", "type": "Over-ear"},
            created_at=_ts(2),
        ),
        Product(
            id=3,
            name="Nike Air Jordan 1 High",
            description="Classic basketball sneakers with premium leather construction.",
            price=170.00,
            category="Footwear",
            attributes={"brand": "Nike", "color": "Black/Red/White", "material": "Leather"},
            created_at=_ts(3),
        ),
        Product(
            id=4,
            name="Apple iPhone 15 Pro",
            description="Titanium design, A17 Pro chip and advanced camera system.",
            price=999.99,
            category="Electronics",
            attributes={"brand": "Apple", "storage": "128GB", "color": "Natural Titanium"},
            created_at=_ts(4),
        ),
    ]


class FakeProductRepo:
    """In-memory stand-in for ProductRepo."""

    def __init__(self, products: List[Product]):
        self.products = {p.id: p for p in products}
        self.lookups: List[int] = []
        self.list_calls = 0

    async def list_products(self, filters: Optional[Dict[str, Any]] = None) -> List[Product]:
        self.list_calls += 1
        items = sorted(self.products.values(), key=lambda p: p.created_at, reverse=True)
        if filters and filters.get("category"):
            items = [p for p in items if p.category.lower() == filters["category"].lower()]
        return items

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        self.lookups.append(product_id)
        return self.products.get(product_id)

    async def find_by_category(self, category: str) -> List[Product]:
        return [p for p in self.products.values() if p.category.lower() == category.lower()]

    async def text_search(self, term: str) -> List[Product]:
        t = term.lower()
        return [p for p in self.products.values() if t in p.name.lower() or t in (p.description or "").lower()]

    async def create_product(self, data: Dict[str, Any]) -> Product:
        pid = max(self.products, default=0) + 1
        product = Product(id=pid, created_at=datetime.now(timezone.utc), **data)
        self.products[pid] = product
        return product

    async def update_product(self, product_id: int, data: Dict[str, Any]) -> Optional[Product]:
        current = self.products.get(product_id)
        if current is None:
            return None
        updated = current.model_copy(update=data)
        self.products[product_id] = updated
        return updated

    async def delete_product(self, product_id: int) -> Optional[Product]:
        return self.products.pop(product_id, None)


class FakeHistoryRepo:
    """In-memory stand-in for SearchHistoryRepo."""

    def __init__(self, fail: bool = False):
        self.entries = []
        self.fail = fail

    async def record(self, entry) -> None:
        if self.fail:
            raise RuntimeError("history store down")
        self.entries.append(entry)

    async def query(self, **kw):
        return [e.model_dump() for e in self.entries], len(self.entries)

    async def popular(self, limit=10, days=30, user_id=None):
        return [{"query": "laptop", "searchCount": 3}][:limit]


@pytest.fixture
def product_repo(sample_products):
    return FakeProductRepo(sample_products)


@pytest.fixture
def history_repo():
    return FakeHistoryRepo()


@pytest.fixture
def reco():
    """Recommendation client double; set reco.recommend.return_value per test."""
    client = MagicMock()
    client.recommend = AsyncMock()
    client.health_check = AsyncMock(return_value=True)
    client.configured = True
    return client


@pytest.fixture
def completion():
    """Factory for fake chat.completions.create results."""
    def _make(content: Optional[str]):
        resp = MagicMock()
        resp.choices = [MagicMock(message=MagicMock(content=content))]
        resp.usage = None
        resp.model = "test-model"
        return resp
    return _make


@pytest.fixture
def openai_client():
    """Fake AsyncOpenAI: configure openai_client.chat.completions.create per test."""
    client = MagicMock()
    client.chat.completions.create = AsyncMock()
    return client


@pytest.fixture
def empty_product_repo():
    return FakeProductRepo([])


@pytest.fixture
def failing_history_repo():
    return FakeHistoryRepo(fail=True)

"""
Repository tests against a mocked Motor database.
"""
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo import DESCENDING, ReturnDocument

from smartcatalog.domain.models.search import SearchHistoryEntry
from smartcatalog.domain.repositories.product_repo import ProductRepo
from smartcatalog.domain.repositories.search_history_repo import SearchHistoryRepo


class FakeCursor:
    """Chainable stand-in for an AsyncIOMotorCursor."""

    def __init__(self, docs):
        self.docs = list(docs)
        self.calls = []

    def sort(self, *args):
        self.calls.append(("sort", args))
        return self

    def skip(self, n):
        self.calls.append(("skip", n))
        return self

    def limit(self, n):
        self.calls.append(("limit", n))
        return self

    def __aiter__(self):
        return self._gen()

    async def _gen(self):
        for d in self.docs:
            yield d


def _db(**collections):
    db = MagicMock()
    db.__getitem__.side_effect = lambda name: collections.setdefault(name, MagicMock())
    return db


def _product_doc(pid=1, **kw):
    doc = {"id": pid, "name": "MacBook Pro", "price": 1999.99, "category": "Electronics",
           "attributes": {"brand": "Apple"}}
    doc.update(kw)
    return doc


# ---- products ---------------------------------------------------------------

def test_query_translation():
    assert ProductRepo._query(None) == {}
    q = ProductRepo._query({"category": "Electronics", "min_price": 10, "max_price": None, "brand": "Apple"})
    assert q["category"] == {"$regex": "^Electronics$", "$options": "i"}
    assert q["price"] == {"$gte": 10.0}
    assert q["attributes.brand"] == {"$regex": "^Apple$", "$options": "i"}


@pytest.mark.asyncio
async def test_list_products_newest_first():
    products = MagicMock()
    cursor = FakeCursor([_product_doc(2), _product_doc(1)])
    products.find.return_value = cursor
    repo = ProductRepo(_db(products=products))

    result = await repo.list_products({"category": "Electronics"})

    assert [p.id for p in result] == [2, 1]
    assert ("sort", ("created_at", DESCENDING)) in cursor.calls
    query, projection = products.find.call_args.args
    assert "category" in query
    assert projection == {"_id": 0}


@pytest.mark.asyncio
async def test_get_by_id():
    products = MagicMock()
    products.find_one = AsyncMock(side_effect=[_product_doc(1), None])
    repo = ProductRepo(_db(products=products))

    assert (await repo.get_by_id(1)).name == "MacBook Pro"
    assert await repo.get_by_id(2) is None


@pytest.mark.asyncio
async def test_text_search_escapes_term():
    products = MagicMock()
    products.find.return_value = FakeCursor([])
    repo = ProductRepo(_db(products=products))

    await repo.text_search("c++")

    query = products.find.call_args.args[0]
    assert query["$or"][0]["name"]["$regex"] == r"c\+\+"


@pytest.mark.asyncio
async def test_create_product_allocates_id():
    products = MagicMock()
    products.insert_one = AsyncMock()
    counters = MagicMock()
    counters.find_one_and_update = AsyncMock(return_value={"_id": "products", "seq": 12})
    repo = ProductRepo(_db(products=products, counters=counters))

    product = await repo.create_product({"name": "Kindle", "price": 99, "category": "Electronics", "id": 999})

    assert product.id == 12
    assert product.created_at is not None
    assert counters.find_one_and_update.await_args.kwargs["upsert"] is True
    stored = products.insert_one.await_args.args[0]
    assert stored["id"] == 12
    assert stored["attributes"] == {}


@pytest.mark.asyncio
async def test_update_product_only_sets_writable_fields():
    products = MagicMock()
    products.find_one_and_update = AsyncMock(return_value=_product_doc(1, price=10))
    repo = ProductRepo(_db(products=products))

    product = await repo.update_product(1, {"price": 10, "id": 77})

    assert product.price == 10
    filter_, update = products.find_one_and_update.await_args.args
    assert filter_ == {"id": 1}
    assert update["$set"]["price"] == 10
    assert "id" not in update["$set"]
    assert "updated_at" in update["$set"]
    assert products.find_one_and_update.await_args.kwargs["return_document"] == ReturnDocument.AFTER


@pytest.mark.asyncio
async def test_delete_missing_product():
    products = MagicMock()
    products.find_one_and_delete = AsyncMock(return_value=None)
    repo = ProductRepo(_db(products=products))

    assert await repo.delete_product(5) is None


# ---- search history ---------------------------------------------------------

@pytest.mark.asyncio
async def test_record_truncates_query():
    col = MagicMock()
    col.insert_one = AsyncMock()
    repo = SearchHistoryRepo(_db(search_history=col))

    await repo.record(SearchHistoryEntry(query="q" * 700, success=False, error_type="QUERY_TOO_LONG"))

    doc = col.insert_one.await_args.args[0]
    assert len(doc["query"]) == 500
    assert doc["error_type"] == "QUERY_TOO_LONG"
    assert doc["user_id"] is None


@pytest.mark.asyncio
async def test_history_query_builds_match_and_pages():
    col = MagicMock()
    col.count_documents = AsyncMock(return_value=25)
    cursor = FakeCursor([{"query": "laptop"}])
    col.find.return_value = cursor
    repo = SearchHistoryRepo(_db(search_history=col))
    start = datetime(2024, 1, 1, tzinfo=timezone.utc)

    items, total = await repo.query(page=3, limit=10, success_only=True, text_filter="lap", start_date=start, user_id=7)

    assert items == [{"query": "laptop"}]
    assert total == 25
    match = col.count_documents.await_args.args[0]
    assert match == {
        "user_id": 7,
        "success": True,
        "query": {"$regex": "lap", "$options": "i"},
        "created_at": {"$gte": start},
    }
    assert cursor.calls == [("sort", ("created_at", DESCENDING)), ("skip", 20), ("limit", 10)]


@pytest.mark.asyncio
async def test_history_query_defaults_to_anonymous():
    col = MagicMock()
    col.count_documents = AsyncMock(return_value=0)
    col.find.return_value = FakeCursor([])
    repo = SearchHistoryRepo(_db(search_history=col))

    await repo.query()

    assert col.count_documents.await_args.args[0] == {"user_id": None}


@pytest.mark.asyncio
async def test_popular_pipeline():
    col = MagicMock()
    agg = MagicMock()
    agg.to_list = AsyncMock(return_value=[{"query": "laptop", "searchCount": 4}])
    col.aggregate.return_value = agg
    repo = SearchHistoryRepo(_db(search_history=col))

    rows = await repo.popular(limit=5, days=7, user_id=3)

    assert rows == [{"query": "laptop", "searchCount": 4}]
    pipeline = col.aggregate.call_args.args[0]
    match = pipeline[0]["$match"]
    assert match["success"] is True
    assert match["user_id"] == 3
    assert "$gte" in match["created_at"]
    assert pipeline[-1] == {"$project": {"_id": 0, "query": "$_id", "searchCount": 1}}
    agg.to_list.assert_awaited_once_with(length=5)


@pytest.mark.asyncio
async def test_popular_is_global_without_user():
    col = MagicMock()
    col.aggregate.return_value.to_list = AsyncMock(return_value=[])
    repo = SearchHistoryRepo(_db(search_history=col))

    await repo.popular()

    assert "user_id" not in col.aggregate.call_args.args[0][0]["$match"]

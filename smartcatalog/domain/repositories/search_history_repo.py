# smartcatalog/domain/repositories/search_history_repo.py

from __future__ import annotations
from typing import Any, Dict, List, Optional, Tuple
from datetime import datetime, timedelta, timezone
import re
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from smartcatalog.domain.models.search import SearchHistoryEntry
from smartcatalog.domain.services.constants import HISTORY_QUERY_MAX_LENGTH


class SearchHistoryRepo:
    """
    Append-only log of search attempts in the 'search_history' collection.
    Entries are written once and never mutated.
    """

    def __init__(self, db: AsyncIOMotorDatabase, collection_name: str = "search_history"):
        self.col = db[collection_name]

    async def record(self, entry: SearchHistoryEntry) -> None:
        doc = entry.model_dump()
        doc["query"] = (doc.get("query") or "")[:HISTORY_QUERY_MAX_LENGTH]
        await self.col.insert_one(doc)

    async def query(
        self,
        *,
        page: int = 1,
        limit: int = 20,
        success_only: bool = False,
        text_filter: Optional[str] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        user_id: Optional[int] = None,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Newest-first page of entries for one user (None = anonymous entries).
        Returns (items, total matching).
        """
        match: Dict[str, Any] = {"user_id": user_id}
        if success_only:
            match["success"] = True
        if text_filter:
            match["query"] = {"$regex": re.escape(text_filter), "$options": "i"}
        if start_date or end_date:
            created: Dict[str, datetime] = {}
            if start_date:
                created["$gte"] = start_date
            if end_date:
                created["$lte"] = end_date
            match["created_at"] = created

        total = await self.col.count_documents(match)
        cursor = (
            self.col.find(match, {"_id": 0})
            .sort("created_at", DESCENDING)
            .skip((page - 1) * limit)
            .limit(limit)
        )
        items = [doc async for doc in cursor]
        return items, total

    async def popular(self, limit: int = 10, days: int = 30, user_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Most frequent successful queries in the trailing `days` window.
        Global when user_id is None, otherwise scoped to that user.
        """
        since = datetime.now(timezone.utc) - timedelta(days=days)
        match: Dict[str, Any] = {"success": True, "created_at": {"$gte": since}}
        if user_id is not None:
            match["user_id"] = user_id

        pipeline = [
            {"$match": match},
            {"$group": {"_id": "$query", "searchCount": {"$sum": 1}}},
            {"$sort": {"searchCount": -1, "_id": 1}},
            {"$limit": limit},
            {"$project": {"_id": 0, "query": "$_id", "searchCount": 1}},
        ]
        return await self.col.aggregate(pipeline).to_list(length=limit)

    async def ensure_indexes(self) -> None:
        await self.col.create_index([("created_at", DESCENDING)])
        await self.col.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
        await self.col.create_index([("success", ASCENDING)])
        await self.col.create_index([("query", ASCENDING)])

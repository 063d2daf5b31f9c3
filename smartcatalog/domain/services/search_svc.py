# smartcatalog/domain/services/search_svc.py

import logging
import time
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ValidationError
from pymongo.errors import PyMongoError

from smartcatalog.core.logging import preview
from smartcatalog.domain.models.recommendation import RecoErrorKind, RecoFailure
from smartcatalog.domain.models.search import SearchFilters, SearchHistoryEntry, SearchQuery
from smartcatalog.domain.services.constants import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    MAX_QUERY_LENGTH,
    RATE_LIMIT_RETRY_AFTER_S,
    SORT_RELEVANCE,
)
from smartcatalog.domain.services.enrichment import enrich
from smartcatalog.domain.services.filters import apply_filters
from smartcatalog.domain.services.pagination import coerce_positive_int, paginate
from smartcatalog.domain.services.sorting import apply_sorting

logger = logging.getLogger(__name__)

NO_MATCHES_MESSAGE = "No products match your search criteria. Try different keywords or broaden your search."
NO_CANDIDATES_MESSAGE = "No products match the selected filters. Try removing some filters or broaden your search."

# kind -> (status, error code, public message)
_RECO_FAILURES: Dict[RecoErrorKind, Tuple[int, str, str]] = {
    RecoErrorKind.VALIDATION_ERROR: (
        400, "VALIDATION_ERROR", "Invalid search request"),
    RecoErrorKind.CONFIGURATION_ERROR: (
        503, "SERVICE_UNAVAILABLE", "Search service is temporarily unavailable due to configuration issues"),
    RecoErrorKind.RATE_LIMIT_ERROR: (
        429, "RATE_LIMIT_EXCEEDED", "Too many requests. Please try again in a moment."),
    RecoErrorKind.QUOTA_ERROR: (
        503, "SERVICE_QUOTA_EXCEEDED", "Search service is temporarily unavailable due to quota limitations"),
    RecoErrorKind.TIMEOUT_ERROR: (
        504, "SEARCH_TIMEOUT", "Search request timed out. Please try again with a simpler query."),
    RecoErrorKind.RESPONSE_ERROR: (
        502, "INVALID_AI_RESPONSE", "Search service returned an invalid response. Please try again."),
    RecoErrorKind.API_ERROR: (
        500, "AI_SERVICE_ERROR", "Search service encountered an error. Please try again."),
}


class RequestContext(BaseModel):
    """Per-request facts attached to every history entry."""
    user_agent: Optional[str] = None
    ip_address: Optional[str] = None
    user_id: Optional[int] = None


class SearchResponse(BaseModel):
    status_code: int
    body: Dict[str, Any]


def validate_query(query: Any) -> Optional[Tuple[str, str]]:
    """
    First failing check wins: missing, wrong type, blank, too long.
    Returns (error code, message) or None when the query is usable.
    """
    if query is None or query == "":
        return "MISSING_QUERY", "Search query is required"
    if not isinstance(query, str):
        return "INVALID_QUERY_TYPE", "Query must be a string"
    if not query.strip():
        return "EMPTY_QUERY", "Query cannot be empty"
    if len(query) > MAX_QUERY_LENGTH:
        return "QUERY_TOO_LONG", f"Query must be less than {MAX_QUERY_LENGTH} characters"
    return None


class SearchService:
    """
    AI search pipeline for one request:
      validate → load catalog → filter → recommend → enrich → sort → paginate → log → respond

    Every terminal outcome is written to the history log exactly once before the
    response is returned. The recommendation client handles its own retries;
    nothing is retried here.
    """

    def __init__(self, products, history, reco):
        self.products = products  # list_products(), get_by_id(id)
        self.history = history    # record(entry)
        self.reco = reco          # recommend(query, products) -> RecoOutcome

    async def search(self, payload: Any, ctx: RequestContext) -> SearchResponse:
        t0 = time.perf_counter()
        if not isinstance(payload, dict):
            payload = {}  # arrays, strings, null: no query to read

        def elapsed_ms() -> int:
            return int((time.perf_counter() - t0) * 1000)

        raw_query = payload.get("query")
        raw_filters = payload.get("filters") or {}
        sort_by = payload.get("sortBy") or SORT_RELEVANCE
        page = coerce_positive_int(payload.get("page", DEFAULT_PAGE), DEFAULT_PAGE)
        limit = coerce_positive_int(payload.get("limit", DEFAULT_LIMIT), DEFAULT_LIMIT)

        def entry(query: str, **kw) -> SearchHistoryEntry:
            return SearchHistoryEntry(
                query=query,
                user_agent=ctx.user_agent,
                ip_address=ctx.ip_address,
                user_id=ctx.user_id,
                **kw,
            )

        # ---- Validating --------------------------------------------------------
        invalid = validate_query(raw_query)
        if invalid:
            code, message = invalid
            ms = elapsed_ms()
            logged = "" if raw_query is None else str(raw_query)
            logger.info(f"Search rejected error={code} user={ctx.user_id or 'anonymous'}")
            return await self._finish(
                entry(logged, success=False, error_type=code, execution_time_ms=ms),
                400,
                {"success": False, "error": code, "message": message, "execution_time_ms": ms},
            )

        try:
            filters = SearchFilters.model_validate(raw_filters)
        except ValidationError as e:
            ms = elapsed_ms()
            logger.info(f"Search rejected error=VALIDATION_ERROR filters={raw_filters!r}")
            return await self._finish(
                entry(raw_query.strip(), success=False, error_type="VALIDATION_ERROR",
                      execution_time_ms=ms, sort_by=str(sort_by)),
                400,
                {
                    "success": False,
                    "error": "VALIDATION_ERROR",
                    "message": "Invalid search request",
                    "details": f"Invalid filters: {e.error_count()} error(s)",
                    "execution_time_ms": ms,
                },
            )

        sq = SearchQuery(text=raw_query.strip(), filters=filters, sort_by=str(sort_by), page=page, limit=limit)
        echo_filters = sq.filters.model_dump(by_alias=True, exclude_defaults=True)
        logger.info(
            f"Search request user={ctx.user_id or 'anonymous'} query=\"{preview(sq.text)}\" "
            f"filters={echo_filters} sort={sq.sort_by} page={sq.page} limit={sq.limit}"
        )

        def ok_entry(results_count: int, ms: int) -> SearchHistoryEntry:
            return entry(sq.text, success=True, results_count=results_count, execution_time_ms=ms,
                         filters=echo_filters, sort_by=sq.sort_by)

        def fail_entry(error_type: str, ms: int) -> SearchHistoryEntry:
            return entry(sq.text, success=False, error_type=error_type, execution_time_ms=ms,
                         filters=echo_filters, sort_by=sq.sort_by)

        def empty_body(message: str, ms: int) -> Dict[str, Any]:
            _, meta = paginate([], sq.page, sq.limit)
            return {
                "success": True,
                "query": sq.text,
                "results": [],
                "filters": echo_filters,
                "sortBy": sq.sort_by,
                "pagination": meta.model_dump(by_alias=True),
                "total_results": 0,
                "message": message,
                "execution_time_ms": ms,
            }

        try:
            # ---- Loading catalog ----------------------------------------------
            catalog = await self.products.list_products()
            if not catalog:
                ms = elapsed_ms()
                logger.warning("Search aborted: catalog is empty")
                return await self._finish(
                    fail_entry("NO_PRODUCTS", ms),
                    404,
                    {"success": False, "error": "NO_PRODUCTS",
                     "message": "No products available in the database", "execution_time_ms": ms},
                )

            # ---- Filtering ----------------------------------------------------
            candidates = apply_filters(catalog, sq.filters)
            logger.debug(f"Filter stage kept {len(candidates)}/{len(catalog)} products")
            if not candidates:
                ms = elapsed_ms()
                logger.info(f"Search complete: filters left no candidates, time={ms}ms")
                return await self._finish(ok_entry(0, ms), 200, empty_body(NO_CANDIDATES_MESSAGE, ms))

            # ---- Recommending -------------------------------------------------
            outcome = await self.reco.recommend(sq.text, candidates)
            if isinstance(outcome, RecoFailure):
                ms = elapsed_ms()
                status, code, message = _RECO_FAILURES.get(outcome.kind, _RECO_FAILURES[RecoErrorKind.API_ERROR])
                body: Dict[str, Any] = {"success": False, "error": code, "message": message, "execution_time_ms": ms}
                if outcome.kind == RecoErrorKind.VALIDATION_ERROR:
                    body["details"] = outcome.message
                if outcome.kind == RecoErrorKind.RATE_LIMIT_ERROR:
                    body["retry_after"] = RATE_LIMIT_RETRY_AFTER_S
                logger.error(f"Search failed kind={outcome.kind.value} status={status} time={ms}ms")
                return await self._finish(fail_entry(outcome.kind.value, ms), status, body)

            if not outcome.items:
                ms = elapsed_ms()
                logger.info(f"Search complete: no matches found, time={ms}ms")
                return await self._finish(ok_entry(0, ms), 200, empty_body(NO_MATCHES_MESSAGE, ms))

            # ---- Enriching / Sorting / Paginating -----------------------------
            enriched = await enrich(outcome.items, self.products.get_by_id)
            ordered = apply_sorting(enriched, sq.sort_by)
            data, meta = paginate(ordered, sq.page, sq.limit)

            ms = elapsed_ms()
            logger.info(f"Search complete: found={len(enriched)} returned={len(data)} time={ms}ms")
            return await self._finish(
                ok_entry(len(enriched), ms),
                200,
                {
                    "success": True,
                    "query": sq.text,
                    "results": [r.model_dump(mode="json", by_alias=True) for r in data],
                    "filters": echo_filters,
                    "sortBy": sq.sort_by,
                    "pagination": meta.model_dump(by_alias=True),
                    "total_results": len(enriched),
                    "execution_time_ms": ms,
                },
            )

        except PyMongoError as e:
            ms = elapsed_ms()
            logger.error(f"Search database error time={ms}ms: {e}")
            return await self._finish(
                fail_entry("DATABASE_ERROR", ms),
                500,
                {"success": False, "error": "DATABASE_ERROR",
                 "message": "Database error occurred while searching products", "execution_time_ms": ms},
            )
        except Exception:
            ms = elapsed_ms()
            logger.exception(f"Search unexpected error time={ms}ms")
            return await self._finish(
                fail_entry("UNKNOWN_ERROR", ms),
                500,
                {"success": False, "error": "UNKNOWN_ERROR",
                 "message": "An unexpected error occurred during search", "execution_time_ms": ms},
            )

    async def _finish(self, entry: SearchHistoryEntry, status_code: int, body: Dict[str, Any]) -> SearchResponse:
        """Record the outcome, then hand back the response. History failures are swallowed."""
        try:
            await self.history.record(entry)
        except Exception as e:
            logger.error(f"Failed to record search history: {e}")
        return SearchResponse(status_code=status_code, body=body)

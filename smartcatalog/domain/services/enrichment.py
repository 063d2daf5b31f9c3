import logging
from typing import Awaitable, Callable, Iterable, List, Optional

from smartcatalog.domain.models.product import EnrichedResult, Product
from smartcatalog.domain.models.recommendation import Recommendation

logger = logging.getLogger(__name__)

ProductLookup = Callable[[int], Awaitable[Optional[Product]]]


async def enrich(recommendations: Iterable[Recommendation], lookup: ProductLookup) -> List[EnrichedResult]:
    """
    Join each recommendation onto its full product record.
    A product that is missing or fails to load is skipped; the rest still come back.
    """
    out: List[EnrichedResult] = []
    for reco in recommendations:
        try:
            product = await lookup(reco.product_id)
        except Exception as e:
            logger.error(f"Database error fetching product {reco.product_id}: {e}")
            continue
        if product is None:
            logger.warning(f"Product {reco.product_id} not found in database")
            continue
        out.append(EnrichedResult(
            **product.model_dump(),
            ai_explanation=reco.explanation,
            ai_relevance_score=reco.relevance_score,
        ))
    return out

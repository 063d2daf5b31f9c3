from unittest.mock import AsyncMock

import pytest

from smartcatalog.domain.models.recommendation import Recommendation
from smartcatalog.domain.services.enrichment import enrich


def _reco(pid, score):
    return Recommendation(product_id=pid, explanation="Fits the request really well.", relevance_score=score)


@pytest.mark.asyncio
async def test_enrich_joins_product_fields(product_repo):
    out = await enrich([_reco(2, 8), _reco(1, 6)], product_repo.get_by_id)

    assert [r.id for r in out] == [2, 1]
    assert out[0].name == "Sony WH-1000XM5 Headphones"
    assert out[0].ai_relevance_score == 8
    assert out[0].ai_explanation == "Fits the request really well."


@pytest.mark.asyncio
async def test_enrich_skips_missing_and_failing_lookups(sample_products):
    by_id = {p.id: p for p in sample_products}

    async def lookup(pid):
        if pid == 3:
            raise RuntimeError("connection reset")
        return by_id.get(pid)

    out = await enrich([_reco(1, 9), _reco(3, 8), _reco(99, 7)], lookup)

    assert [r.id for r in out] == [1]


@pytest.mark.asyncio
async def test_enrich_empty():
    lookup = AsyncMock()
    assert await enrich([], lookup) == []
    lookup.assert_not_awaited()

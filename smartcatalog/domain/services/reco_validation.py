import logging
from typing import Any, Iterable, List, Optional

from smartcatalog.domain.models.recommendation import Recommendation
from smartcatalog.domain.services.constants import (
    MAX_RECOMMENDATIONS,
    MAX_RELEVANCE_SCORE,
    MIN_EXPLANATION_LENGTH,
    MIN_RELEVANCE_SCORE,
)

logger = logging.getLogger(__name__)


class MalformedResponse(ValueError):
    """The model reply is valid JSON but not the expected array."""


def _coerce_id(v: Any) -> Optional[int]:
    if isinstance(v, bool):
        return None
    try:
        return int(v)
    except (TypeError, ValueError):
        return None


def clamp_score(v: Any) -> int:
    """
    Coerce a model score to an int in [1, 10].
    Invalid, missing or zero values default to the minimum.
    """
    try:
        n = int(float(v))
    except (TypeError, ValueError, OverflowError):
        n = 0
    n = n or MIN_RELEVANCE_SCORE
    return min(max(n, MIN_RELEVANCE_SCORE), MAX_RELEVANCE_SCORE)


def validate_recommendations(raw: Any, candidate_ids: Iterable[int]) -> List[Recommendation]:
    """
    Sanitize the parsed model output.

    - non-array => MalformedResponse (an empty array is a legitimate "nothing found")
    - drop entries missing id / explanation / relevance_score
    - drop ids that were not in the candidate set
    - clamp scores, drop explanations shorter than MIN_EXPLANATION_LENGTH once trimmed
    - sort by score desc and keep at most MAX_RECOMMENDATIONS
    """
    if not isinstance(raw, list):
        raise MalformedResponse(f"expected a JSON array, got {type(raw).__name__}")

    if not raw:
        logger.info("Model returned no recommendations")
        return []

    allowed = set(candidate_ids)
    out: List[Recommendation] = []
    for item in raw:
        if not isinstance(item, dict):
            logger.warning(f"Skipping non-object recommendation: {item!r}")
            continue
        if not item.get("id") or not item.get("explanation") or item.get("relevance_score") is None:
            logger.warning(f"Skipping incomplete recommendation: {item!r}")
            continue

        pid = _coerce_id(item["id"])
        if pid is None or pid not in allowed:
            logger.warning(f"Skipping recommendation for unknown product id={item['id']!r}")
            continue

        explanation = str(item["explanation"]).strip()
        if len(explanation) < MIN_EXPLANATION_LENGTH:
            logger.warning(f"Skipping recommendation with short explanation for product id={pid}")
            continue

        out.append(Recommendation(
            product_id=pid,
            explanation=explanation,
            relevance_score=clamp_score(item["relevance_score"]),
        ))

    out.sort(key=lambda r: r.relevance_score, reverse=True)
    return out[:MAX_RECOMMENDATIONS]

from datetime import datetime, timezone
from typing import Callable, Dict, List, Sequence, Tuple, TypeVar

from smartcatalog.domain.models.product import Product
from smartcatalog.domain.services.constants import (
    SORT_RELEVANCE,
    SORT_PRICE_ASC, SORT_PRICE_DESC,
    SORT_NAME_ASC, SORT_NAME_DESC,
    SORT_NEWEST, SORT_OLDEST,
)

P = TypeVar("P", bound=Product)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _created(p: Product) -> datetime:
    ts = p.created_at
    if ts is None:
        return _EPOCH  # unknown creation time sorts as oldest
    return ts if ts.tzinfo else ts.replace(tzinfo=timezone.utc)


def _name(p: Product) -> Tuple[str, str]:
    return (p.name.casefold(), p.name)


def _relevance(p: Product) -> int:
    return getattr(p, "ai_relevance_score", None) or 0


# key -> (sort key function, reverse)
_POLICIES: Dict[str, Tuple[Callable, bool]] = {
    SORT_PRICE_ASC: (lambda p: p.price, False),
    SORT_PRICE_DESC: (lambda p: p.price, True),
    SORT_NAME_ASC: (_name, False),
    SORT_NAME_DESC: (_name, True),
    SORT_NEWEST: (_created, True),
    SORT_OLDEST: (_created, False),
    SORT_RELEVANCE: (_relevance, True),
}


def apply_sorting(items: Sequence[P], sort_by: str | None) -> List[P]:
    """
    Return a new list ordered by `sort_by`.
    Unknown or missing keys fall back to relevance (score desc, missing score = 0).
    """
    key_fn, reverse = _POLICIES.get(sort_by or SORT_RELEVANCE, _POLICIES[SORT_RELEVANCE])
    return sorted(items, key=key_fn, reverse=reverse)

from typing import Any, Iterable, List, Optional

from smartcatalog.domain.models.product import Product
from smartcatalog.domain.models.search import SearchFilters


def _norm(v: Any) -> Optional[str]:
    """
    Case-insensitive comparison form of a scalar.
    Returns None if empty.
    """
    if v is None:
        return None
    s = str(v).strip().casefold()
    return s or None


def _attr_matches(actual: Any, expected: Any) -> bool:
    """
    Compare a product attribute with a requested value.
    List-valued attributes match when any element matches.
    """
    want = _norm(expected)
    if isinstance(actual, (list, tuple, set)):
        return any(_norm(x) == want for x in actual)
    got = _norm(actual)
    return got is not None and got == want


def apply_filters(products: Iterable[Product], criteria: Optional[SearchFilters]) -> List[Product]:
    """
    Narrow the catalog with conjunctive predicates:
      - category equality (case-insensitive)
      - price >= min_price, price <= max_price
      - brand equality (case-insensitive, read from attributes)
      - every key of `attributes` must match (missing attribute => no match)
    No criteria => identity (a new list with the same items).
    """
    items = list(products)
    if criteria is None or criteria.is_empty():
        return items

    if criteria.category:
        want = _norm(criteria.category)
        items = [p for p in items if _norm(p.category) == want]

    if criteria.min_price is not None:
        items = [p for p in items if p.price >= float(criteria.min_price)]

    if criteria.max_price is not None:
        items = [p for p in items if p.price <= float(criteria.max_price)]

    if criteria.brand:
        items = [p for p in items if _attr_matches(p.attributes.get("brand"), criteria.brand)]

    if criteria.attributes:
        items = [
            p for p in items
            if all(
                key in p.attributes and _attr_matches(p.attributes[key], value)
                for key, value in criteria.attributes.items()
            )
        ]

    return items

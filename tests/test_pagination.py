import pytest

from smartcatalog.domain.services.pagination import build_meta, coerce_positive_int, paginate


@pytest.mark.parametrize("total,page,limit", [(0, 1, 10), (5, 1, 2), (5, 3, 2), (5, 4, 2), (10, 2, 5), (7, 1, 100)])
def test_slice_length(total, page, limit):
    items = list(range(total))
    data, meta = paginate(items, page, limit)
    assert len(data) == max(0, min(limit, total - (page - 1) * limit))
    assert meta.total == total
    assert meta.page == page
    assert meta.limit == limit


def test_slice_contents():
    data, meta = paginate(list("abcde"), 2, 2)
    assert data == ["c", "d"]
    assert meta.total_pages == 3
    assert meta.has_next_page is True
    assert meta.has_prev_page is True


def test_last_page():
    data, meta = paginate(list("abcde"), 3, 2)
    assert data == ["e"]
    assert meta.has_next_page is False


def test_page_past_end_is_empty():
    data, meta = paginate([1, 2, 3], 5, 2)
    assert data == []
    assert meta.total_pages == 2
    assert meta.has_next_page is False
    assert meta.has_prev_page is True


def test_meta_aliases():
    meta = build_meta(0, 1, 10).model_dump(by_alias=True)
    assert meta == {
        "page": 1,
        "limit": 10,
        "total": 0,
        "totalPages": 0,
        "hasNextPage": False,
        "hasPrevPage": False,
    }


@pytest.mark.parametrize(
    "value,expected",
    [(3, 3), ("4", 4), (0, 10), (-2, 10), ("abc", 10), (None, 10), (2.7, 2)],
)
def test_coerce_positive_int(value, expected):
    assert coerce_positive_int(value, 10) == expected

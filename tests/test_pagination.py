import math

import pytest

from property_reviews.config import MAX_PAGE
from property_reviews.exceptions import ValidationError
from property_reviews.filters import ReviewFilters, build_filtered_query
from property_reviews.pagination import PageRequest, SortSpec, normalize_page_request, paginate
from property_reviews.schemas import PAGINATION_KEYS


def sources(rows):
    return [r.source_id for r in rows]


def test_page_request_defaults():
    assert normalize_page_request(None) == (1, 50)
    assert normalize_page_request(PageRequest()) == (1, 50)

def test_limit_is_clamped():
    assert normalize_page_request(PageRequest(limit=500)) == (1, 100)
    assert normalize_page_request(PageRequest(limit=0)) == (1, 1)
    assert normalize_page_request(PageRequest(limit=-5)) == (1, 1)

def test_page_below_one_is_rejected():
    with pytest.raises(ValidationError):
        normalize_page_request(PageRequest(page=0))

def test_page_above_maximum_is_rejected():
    assert normalize_page_request(PageRequest(page=MAX_PAGE)) == (MAX_PAGE, 50)
    with pytest.raises(ValidationError):
        normalize_page_request(PageRequest(page=MAX_PAGE + 1))

def test_sort_spec_validation():
    with pytest.raises(ValidationError):
        SortSpec(field="text")
    with pytest.raises(ValidationError):
        SortSpec(direction="sideways")
    assert SortSpec(direction="ASC").direction == "asc"

def test_default_sort_is_newest_first(db):
    rows, meta = paginate(db, build_filtered_query())
    assert sources(rows) == ["r5", "r4", "r3", "r2", "r1"]
    assert list(meta) == PAGINATION_KEYS
    assert meta == {"page": 1, "limit": 50, "total": 5, "totalPages": 1}

def test_sort_by_rating_and_property_name(db):
    rows, _ = paginate(db, build_filtered_query(), SortSpec("overallRating", "asc"))
    assert sources(rows) == ["r4", "r3", "r2", "r5", "r1"]
    rows, _ = paginate(db, build_filtered_query(), SortSpec("propertyName", "asc"))
    assert sources(rows) == ["r4", "r5", "r1", "r2", "r3"]

@pytest.mark.parametrize("limit", [1, 2, 3, 5, 7])
def test_page_sizes_and_total_pages(db, limit):
    stmt = build_filtered_query()
    seen = []
    _, meta = paginate(db, stmt, page_request=PageRequest(page=1, limit=limit))
    assert meta["totalPages"] == math.ceil(5 / limit)
    for page in range(1, meta["totalPages"] + 1):
        rows, meta = paginate(db, stmt, page_request=PageRequest(page=page, limit=limit))
        assert len(rows) <= limit
        seen.extend(sources(rows))
    assert sorted(seen) == ["r1", "r2", "r3", "r4", "r5"]

def test_page_past_the_end_is_empty(db):
    rows, meta = paginate(db, build_filtered_query(), page_request=PageRequest(page=999, limit=2))
    assert rows == []
    assert meta == {"page": 999, "limit": 2, "total": 5, "totalPages": 3}

def test_total_counts_reviews_not_category_rows(db):
    rows, meta = paginate(db, build_filtered_query(ReviewFilters(category="cleanliness")))
    assert meta["total"] == 3
    assert sorted(sources(rows)) == ["r1", "r2", "r4"]

def test_empty_result_has_zero_pages(db):
    rows, meta = paginate(db, build_filtered_query(ReviewFilters(channel="airbnb")))
    assert rows == []
    assert meta["total"] == 0 and meta["totalPages"] == 0

import pytest

from mpms.core.enums import SortOrder
from mpms.core.pagination import DEFAULT_LIMIT, MAX_LIMIT, Page, PageParams, parse_pagination, to_snake
from mpms.core.slug import slugify, unique_slug


@pytest.mark.parametrize(
    "title, expected",
    [
        ("Website Redesign", "website-redesign"),
        ("  Website   Redesign 2.0! ", "website-redesign-2-0"),
        ("Café Déjà Vu", "cafe-deja-vu"),
        ("!!!", "project"),
    ],
)
def test_slugify(title, expected):
    assert slugify(title) == expected


def test_unique_slug_takes_first_free_suffix():
    taken = {"alpha", "alpha-1", "alpha-2"}
    assert unique_slug("Alpha", taken.__contains__) == "alpha-3"


def test_unique_slug_sequence():
    taken = set()
    for expected in ["alpha", "alpha-1", "alpha-2"]:
        slug = unique_slug("Alpha", taken.__contains__)
        assert slug == expected
        taken.add(slug)


def test_pagination_defaults():
    params = parse_pagination()
    assert params == PageParams(page=1, limit=DEFAULT_LIMIT, sort_by="createdAt", sort_order=SortOrder.DESC)
    assert params.offset == 0


@pytest.mark.parametrize(
    "page, limit, expected_page, expected_limit",
    [
        ("0", "0", 1, DEFAULT_LIMIT),
        ("-3", "500", 1, MAX_LIMIT),
        ("abc", "x", 1, DEFAULT_LIMIT),
        ("3", "25", 3, 25),
    ],
)
def test_pagination_is_lenient(page, limit, expected_page, expected_limit):
    params = parse_pagination(page, limit)
    assert params.page == expected_page
    assert params.limit == expected_limit


def test_sort_order_parsing():
    assert parse_pagination(sort_order="asc").sort_order is SortOrder.ASC
    assert parse_pagination(sort_order="ASCENDING").sort_order is SortOrder.DESC


def test_to_snake():
    assert to_snake("createdAt") == "created_at"
    assert to_snake("startDate") == "start_date"
    assert to_snake("title") == "title"


def test_page_meta():
    page = Page(items=[1, 2], total=21, params=PageParams(page=2, limit=10))
    assert page.meta == {
        "page": 2,
        "limit": 10,
        "total": 21,
        "total_pages": 3,
        "has_next_page": True,
        "has_prev_page": True,
    }


def test_empty_page_meta():
    meta = Page(items=[], total=0, params=PageParams()).meta
    assert meta["total_pages"] == 0
    assert meta["has_next_page"] is False
    assert meta["has_prev_page"] is False

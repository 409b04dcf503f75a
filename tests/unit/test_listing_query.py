"""Tests for listing query parsing and pagination math."""
import pytest

from pgfinder.api.middleware.error_handler import BadRequestException
from pgfinder.models.listings import Availability, ListingType
from pgfinder.services.listing_query import (
    ListingQuery,
    Pagination,
    parse_flag,
    parse_price,
)


@pytest.mark.unit
def test_defaults():
    query = ListingQuery.from_params()

    assert query.page == 1
    assert query.limit == 20
    assert query.sort_by == "createdAt"
    assert query.sort_order == "desc"
    assert query.include_unpublished is False
    # published-only is always one of the conditions
    assert len(query.conditions()) == 1


@pytest.mark.unit
def test_type_all_means_no_type_filter():
    assert ListingQuery.from_params(type="all").type is None
    assert ListingQuery.from_params(type="co-ed").type == ListingType.CO_ED


@pytest.mark.unit
def test_unknown_type_rejected():
    with pytest.raises(BadRequestException) as exc_info:
        ListingQuery.from_params(type="hotel")

    assert "type" in exc_info.value.details


@pytest.mark.unit
@pytest.mark.parametrize("value", ["abc", "12k", "nan", "inf"])
def test_non_numeric_price_rejected(value):
    with pytest.raises(BadRequestException) as exc_info:
        parse_price("minPrice", value)

    assert exc_info.value.message == "minPrice must be a number"


@pytest.mark.unit
def test_blank_price_is_unbounded():
    assert parse_price("maxPrice", "") is None
    assert parse_price("maxPrice", None) is None
    assert parse_price("maxPrice", "8000") == 8000.0


@pytest.mark.unit
def test_invalid_sort_rejected():
    with pytest.raises(BadRequestException):
        ListingQuery.from_params(sort_by="popularity")
    with pytest.raises(BadRequestException):
        ListingQuery.from_params(sort_order="sideways")


@pytest.mark.unit
def test_sort_order_case_insensitive():
    assert ListingQuery.from_params(sort_order="ASC").sort_order == "asc"


@pytest.mark.unit
@pytest.mark.parametrize("page,limit", [(0, 10), (1, 0), (1, 101)])
def test_page_and_limit_bounds(page, limit):
    with pytest.raises(BadRequestException):
        ListingQuery.from_params(page=page, limit=limit)


@pytest.mark.unit
def test_offset():
    assert ListingQuery.from_params(page=3, limit=10).offset == 20


@pytest.mark.unit
def test_published_param_ignored_without_admin():
    query = ListingQuery.from_params(published="false")

    assert query.published is None
    assert query.include_unpublished is False


@pytest.mark.unit
def test_admin_query_has_no_publication_filter():
    assert ListingQuery.from_params(admin=True).conditions() == []
    assert len(ListingQuery.from_params(admin=True, published="false").conditions()) == 1


@pytest.mark.unit
def test_every_filter_adds_a_condition():
    query = ListingQuery.from_params(
        type="girls",
        city="Chandigarh",
        search="royal",
        min_price="5000",
        max_price="9000",
        featured="true",
        verified="1",
        availability="available",
    )

    assert query.availability == Availability.AVAILABLE
    assert len(query.conditions()) == 9


@pytest.mark.unit
def test_order_by_breaks_ties_by_id():
    assert len(ListingQuery.from_params(sort_by="price", sort_order="asc").order_by()) == 2


@pytest.mark.unit
def test_parse_flag():
    assert parse_flag("true") is True
    assert parse_flag("TRUE") is True
    assert parse_flag("1") is True
    assert parse_flag("false") is False
    assert parse_flag("maybe") is False
    assert parse_flag(None) is False


@pytest.mark.unit
def test_pagination_compute():
    pagination = Pagination.compute(page=3, limit=10, total_items=25)

    assert pagination.total_pages == 3
    assert pagination.has_next_page is False
    assert pagination.has_prev_page is True


@pytest.mark.unit
def test_pagination_empty_result():
    pagination = Pagination.compute(page=1, limit=20, total_items=0)

    assert pagination.total_pages == 0
    assert pagination.has_next_page is False
    assert pagination.has_prev_page is False


@pytest.mark.unit
def test_pagination_to_dict_uses_camel_case():
    assert Pagination.empty(1, 20).to_dict() == {
        "currentPage": 1,
        "totalPages": 0,
        "totalItems": 0,
        "itemsPerPage": 20,
        "hasNextPage": False,
        "hasPrevPage": False,
    }

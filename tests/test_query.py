# tests/test_query.py

from datetime import datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from storefront.schemas.product import (
    Pagination, Product, ProductFilter, ProductSort, SortDirection, SortField
)
from storefront.services.query import apply_query, filter_products, paginate, sort_products


def test_effective_price_uses_sale_price_only_when_on_sale(product_factory):
    regular = product_factory(1, price=Decimal("18000000"), regular_price=Decimal("18000000"))
    assert regular.effective_price == Decimal("18000000")

    sale = product_factory(
        2,
        price=Decimal("20000000"),
        regular_price=Decimal("20000000"),
        sale_price=Decimal("15000000"),
        on_sale=True,
    )
    assert sale.effective_price == Decimal("15000000")

    # Цена распродажи без флага on_sale не действует
    stale_sale = product_factory(3, price=Decimal("20000000"), sale_price=Decimal("15000000"), on_sale=False)
    assert stale_sale.effective_price == Decimal("20000000")


def test_sale_price_above_regular_price_is_rejected():
    with pytest.raises(ValidationError):
        Product(
            id=1,
            name="Broken",
            price=Decimal("100"),
            regular_price=Decimal("100"),
            sale_price=Decimal("150"),
            on_sale=True,
        )


def test_price_range_must_be_ordered():
    with pytest.raises(ValidationError):
        ProductFilter(min_price=Decimal("10"), max_price=Decimal("5"))


def test_search_is_case_insensitive_over_name_and_descriptions(product_factory):
    products = [
        product_factory(1, name="Calais Crocodile"),
        product_factory(2, name="Kale", description="Python LEATHER landscape"),
        product_factory(3, name="Herve", short_description="classic leather"),
        product_factory(4, name="Canvas tote", description="", short_description=""),
    ]

    ids = [p.id for p in filter_products(products, ProductFilter(search="leather"))]
    assert ids == [2, 3]

    ids = [p.id for p in filter_products(products, ProductFilter(search="CROCO"))]
    assert ids == [1]


def test_category_is_substring_of_any_category_name(product_factory):
    products = [
        product_factory(1, categories=["Crocodile Series", "Top Handle Bags"]),
        product_factory(2, categories=["Python Series"]),
        product_factory(3, categories=[]),
    ]

    ids = [p.id for p in filter_products(products, ProductFilter(category="handle"))]
    assert ids == [1]

    ids = [p.id for p in filter_products(products, ProductFilter(category="series"))]
    assert ids == [1, 2]


def test_price_range_is_inclusive_and_uses_effective_price(product_factory):
    products = [
        product_factory(1, price=Decimal("100"), regular_price=Decimal("100")),
        product_factory(2, price=Decimal("300"), regular_price=Decimal("300"), sale_price=Decimal("200"), on_sale=True),
        product_factory(3, price=Decimal("300"), regular_price=Decimal("300")),
    ]

    ids = [p.id for p in filter_products(products, ProductFilter(min_price=Decimal("100"), max_price=Decimal("200")))]
    assert ids == [1, 2]


def test_featured_and_on_sale_flags(product_factory):
    products = [
        product_factory(1, featured=True),
        product_factory(2, featured=False, on_sale=True, sale_price=Decimal("900000")),
        product_factory(3, featured=True, on_sale=True, sale_price=Decimal("900000")),
    ]

    assert [p.id for p in filter_products(products, ProductFilter(featured=True))] == [1, 3]
    assert [p.id for p in filter_products(products, ProductFilter(on_sale=True, featured=False))] == [2]


def test_sort_is_stable_in_both_directions(product_factory):
    products = [
        product_factory(1, price=Decimal("500"), regular_price=Decimal("500")),
        product_factory(2, price=Decimal("100"), regular_price=Decimal("100")),
        product_factory(3, price=Decimal("500"), regular_price=Decimal("500")),
        product_factory(4, price=Decimal("100"), regular_price=Decimal("100")),
    ]

    asc = sort_products(products, ProductSort(field=SortField.PRICE, direction=SortDirection.ASC))
    assert [p.id for p in asc] == [2, 4, 1, 3]

    desc = sort_products(products, ProductSort(field=SortField.PRICE, direction=SortDirection.DESC))
    assert [p.id for p in desc] == [1, 3, 2, 4]


def test_date_sort_puts_missing_dates_lowest(product_factory):
    products = [
        product_factory(1, date_created=None),
        product_factory(2, date_created=datetime(2024, 1, 1)),
        product_factory(3, date_created=datetime(2024, 6, 1)),
    ]

    newest_first = sort_products(products, ProductSort())
    assert [p.id for p in newest_first] == [3, 2, 1]


def test_name_and_popularity_sort(product_factory):
    products = [
        product_factory(1, name="beta", total_sales=5),
        product_factory(2, name="Alpha", total_sales=50),
        product_factory(3, name="gamma", total_sales=10),
    ]

    by_name = sort_products(products, ProductSort(field=SortField.NAME, direction=SortDirection.ASC))
    assert [p.id for p in by_name] == [2, 1, 3]

    by_popularity = sort_products(products, ProductSort(field=SortField.POPULARITY))
    assert [p.id for p in by_popularity] == [2, 3, 1]


def test_paginate_counts_pages_and_slices(product_factory):
    products = [product_factory(i) for i in range(1, 6)]

    page = paginate(products, Pagination(page=2, page_size=2))
    assert page.total_items == 5
    assert page.total_pages == 3
    assert page.current_page == 2
    assert [p.id for p in page.items] == [3, 4]

    past_end = paginate(products, Pagination(page=4, page_size=2))
    assert past_end.items == []

    empty = paginate([], Pagination())
    assert empty.total_pages == 0


def test_apply_query_filters_then_sorts(product_factory):
    products = [
        product_factory(1, price=Decimal("300"), regular_price=Decimal("300"), featured=True),
        product_factory(2, price=Decimal("100"), regular_price=Decimal("100"), featured=False),
        product_factory(3, price=Decimal("200"), regular_price=Decimal("200"), featured=True),
    ]

    result = apply_query(
        products,
        ProductFilter(featured=True),
        ProductSort(field=SortField.PRICE, direction=SortDirection.ASC),
    )
    assert [p.id for p in result] == [3, 1]

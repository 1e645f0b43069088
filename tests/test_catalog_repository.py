# tests/test_catalog_repository.py

import asyncio
import logging
from decimal import Decimal

import pytest

from storefront.core.errors import ErrorKind, NetworkUnreachableError, RequestTimeoutError, ServerError
from storefront.schemas.product import (
    Category, Pagination, ProductFilter, ProductQuery, ProductSort, SortDirection, SortField
)
from storefront.schemas.result import Error, Loading, Provenance, Success
from storefront.services.catalog import resolve


async def collect(stream):
    return [snapshot async for snapshot in stream]


def price_query(**filter_fields) -> ProductQuery:
    return ProductQuery(
        filter=ProductFilter(**filter_fields),
        sort=ProductSort(field=SortField.PRICE, direction=SortDirection.ASC),
    )


# --- Списки товаров ---

async def test_remote_results_are_sorted_and_cached(repository, store, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory([
        wire(1, price="18000000", regular_price="18000000"),
        wire(2, price="14650000", regular_price="14650000"),
        wire(3, price="24650000", regular_price="24650000"),
    ])

    snapshots = await collect(repository.query_products(price_query(category="handbags")))

    assert isinstance(snapshots[0], Loading)
    assert len(snapshots) == 2
    terminal = snapshots[-1]
    assert isinstance(terminal, Success)
    assert terminal.provenance == Provenance.REMOTE
    assert not terminal.is_stale
    assert [p.effective_price for p in terminal.data.items] == [
        Decimal("14650000"), Decimal("18000000"), Decimal("24650000")
    ]
    assert await store.count() == 3


async def test_cached_page_is_emitted_before_remote(repository, store, mock_wc_client, wire, response_factory, product_factory):
    await store.upsert(product_factory(1, name="Cached name"))
    mock_wc_client.get.return_value = response_factory([wire(1, name="Fresh name"), wire(2)])

    snapshots = await collect(repository.query_products(ProductQuery()))

    assert [type(s) for s in snapshots][0] is Loading
    cached, remote = snapshots[1], snapshots[2]
    assert cached.provenance == Provenance.CACHE
    assert cached.is_stale
    assert [p.name for p in cached.data.items] == ["Cached name"]
    assert remote.provenance == Provenance.REMOTE
    assert {p.name for p in remote.data.items} == {"Fresh name", "Test Bag 2"}
    assert (await store.get(1)).name == "Fresh name"


async def test_force_refresh_skips_cache(repository, store, mock_wc_client, wire, response_factory, product_factory):
    await store.upsert(product_factory(1))
    mock_wc_client.get.return_value = response_factory([wire(1)])

    snapshots = await collect(repository.query_products(ProductQuery(), force_refresh=True))

    assert len(snapshots) == 2
    assert snapshots[-1].provenance == Provenance.REMOTE


async def test_cache_emission_skipped_when_nothing_matches(repository, store, mock_wc_client, response_factory, product_factory):
    await store.upsert(product_factory(1, featured=False))
    mock_wc_client.get.return_value = response_factory([])

    snapshots = await collect(repository.query_products(ProductQuery(filter=ProductFilter(featured=True))))

    assert len(snapshots) == 2
    assert snapshots[-1].provenance == Provenance.REMOTE
    assert snapshots[-1].data.items == []


async def test_remote_page_metadata_from_headers(repository, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(
        [wire(3), wire(4)],
        headers={"X-WP-Total": "10", "X-WP-TotalPages": "5"},
    )
    query = ProductQuery(pagination=Pagination(page=2, page_size=2))

    page = (await resolve(repository.query_products(query))).terminal.data

    assert page.total_items == 10
    assert page.total_pages == 5
    assert page.current_page == 2


async def test_timeout_with_empty_cache_serves_fallback(repository, store, mock_wc_client):
    mock_wc_client.get.side_effect = RequestTimeoutError("Request to products timed out")

    snapshots = await collect(repository.query_products(ProductQuery(filter=ProductFilter(featured=True))))

    terminal = snapshots[-1]
    assert isinstance(terminal, Success)
    assert terminal.provenance == Provenance.FALLBACK
    assert sorted(p.id for p in terminal.data.items) == [1, 2]
    assert all(p.featured for p in terminal.data.items)
    # Фолбэк никогда не пишется в кеш
    assert await store.count() == 0


async def test_non_empty_cache_never_falls_through_to_fallback(repository, store, mock_wc_client, product_factory):
    await store.upsert(product_factory(42, featured=False))
    mock_wc_client.get.side_effect = NetworkUnreachableError("Catalog API is unreachable")

    # Фильтр не совпадает с кешем, но кеш не пуст - фолбэка быть не должно
    snapshots = await collect(repository.query_products(ProductQuery(filter=ProductFilter(featured=True))))

    terminal = snapshots[-1]
    assert isinstance(terminal, Error)
    assert terminal.kind == ErrorKind.NETWORK_UNREACHABLE
    assert not any(isinstance(s, Success) and s.provenance == Provenance.FALLBACK for s in snapshots)


async def test_failure_keeps_cached_page_as_last_good(repository, store, mock_wc_client, product_factory):
    await store.upsert(product_factory(1))
    mock_wc_client.get.side_effect = ServerError("Catalog API responded with status 502", status_code=502)

    resolved = await resolve(repository.query_products(ProductQuery()))

    assert isinstance(resolved.terminal, Error)
    assert resolved.terminal.kind == ErrorKind.SERVER_ERROR
    assert resolved.last_good is not None
    assert resolved.last_good.provenance == Provenance.CACHE
    assert [p.id for p in resolved.last_good.data.items] == [1]


async def test_failure_counts_cache_before_eviction_sweep(repository, store, mock_wc_client, clock, product_factory):
    # Единственная строка в кеше уже протухла
    stale_stamp = clock.now - repository.eviction_window_ms - 1
    await store.upsert(product_factory(1), last_updated=stale_stamp)
    mock_wc_client.get.side_effect = NetworkUnreachableError("offline")

    resolved = await resolve(repository.query_products(ProductQuery(), force_refresh=True))

    # Счетчик взят до очистки, поэтому результат - ошибка, а не фолбэк
    assert isinstance(resolved.terminal, Error)
    # Очистка все равно отработала
    assert await store.count() == 0


async def test_malformed_response_is_logged_and_falls_back(repository, mock_wc_client, response_factory, caplog):
    mock_wc_client.get.return_value = response_factory({"unexpected": True})

    with caplog.at_level(logging.ERROR, logger="storefront.services.catalog"):
        resolved = await resolve(repository.query_products(ProductQuery()))

    assert resolved.terminal.provenance == Provenance.FALLBACK
    assert any(
        record.levelno == logging.ERROR and "malformed" in record.getMessage()
        for record in caplog.records
    )


async def test_unexpected_exception_ends_stream_with_error(repository, store, mocker):
    mocker.patch.object(store, "list_products", side_effect=RuntimeError("boom"))

    snapshots = await collect(repository.query_products(ProductQuery()))

    assert isinstance(snapshots[0], Loading)
    assert isinstance(snapshots[-1], Error)
    assert snapshots[-1].kind == ErrorKind.UNEXPECTED


async def test_abandoned_query_still_writes_cache(repository, store, mock_wc_client, wire, response_factory):
    gate = asyncio.Event()

    async def slow_get(endpoint, params=None):
        await gate.wait()
        return response_factory([wire(1), wire(2)])

    mock_wc_client.get.side_effect = slow_get

    stream = repository.query_products(ProductQuery())
    assert isinstance(await stream.__anext__(), Loading)

    consumer = asyncio.ensure_future(stream.__anext__())
    for _ in range(5):
        await asyncio.sleep(0)
    assert mock_wc_client.get.called

    consumer.cancel()
    with pytest.raises(asyncio.CancelledError):
        await consumer

    gate.set()
    await repository.wait_background()

    assert await store.count() == 2


# --- Один товар ---

async def test_get_product_cache_hit_skips_remote(repository, store, mock_wc_client, product_factory):
    await store.upsert(product_factory(7))

    snapshots = await collect(repository.get_product(7))

    assert isinstance(snapshots[0], Loading)
    assert snapshots[-1].provenance == Provenance.CACHE
    assert snapshots[-1].data.id == 7
    mock_wc_client.get.assert_not_called()


async def test_get_product_remote_success_is_cached(repository, store, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(wire(7, name="Herve 30cm"))

    resolved = await resolve(repository.get_product(7))

    assert resolved.terminal.provenance == Provenance.REMOTE
    assert resolved.terminal.data.name == "Herve 30cm"
    mock_wc_client.get.assert_called_once_with("products/7")
    assert (await store.get(7)).name == "Herve 30cm"


async def test_get_product_404_is_not_found_and_forgets_cache(repository, store, mock_wc_client, product_factory):
    await store.upsert(product_factory(7))
    mock_wc_client.get.side_effect = ServerError("Catalog API responded with status 404", status_code=404)

    resolved = await resolve(repository.get_product(7, force_refresh=True))

    assert isinstance(resolved.terminal, Error)
    assert resolved.terminal.kind == ErrorKind.NOT_FOUND
    assert await store.get(7) is None


async def test_get_product_404_still_checks_fallback_catalog(repository, store, mock_wc_client, product_factory):
    await store.upsert(product_factory(1, name="Cached Calais"))
    mock_wc_client.get.side_effect = ServerError("Catalog API responded with status 404", status_code=404)

    resolved = await resolve(repository.get_product(1, force_refresh=True))

    assert isinstance(resolved.terminal, Success)
    assert resolved.terminal.provenance == Provenance.FALLBACK
    assert resolved.terminal.data.id == 1
    assert resolved.terminal.data.name != "Cached Calais"
    # Устаревшая строка кеша все равно удалена
    assert await store.get(1) is None


async def test_get_product_failure_prefers_cached_row(repository, store, mock_wc_client, product_factory):
    await store.upsert(product_factory(3, name="Cached Hasselt"))
    mock_wc_client.get.side_effect = RequestTimeoutError("timed out")

    resolved = await resolve(repository.get_product(3, force_refresh=True))

    assert resolved.terminal.provenance == Provenance.CACHE
    assert resolved.terminal.data.name == "Cached Hasselt"


async def test_get_product_failure_uses_fallback_then_not_found(repository, mock_wc_client):
    mock_wc_client.get.side_effect = NetworkUnreachableError("offline")

    from_fallback = await resolve(repository.get_product(5))
    assert from_fallback.terminal.provenance == Provenance.FALLBACK
    assert from_fallback.terminal.data.on_sale
    assert from_fallback.terminal.data.effective_price == Decimal("13500000")

    missing = await resolve(repository.get_product(999))
    assert isinstance(missing.terminal, Error)
    assert missing.terminal.kind == ErrorKind.NOT_FOUND


# --- Категории ---

async def test_categories_cache_then_remote(repository, store, mock_wc_client, response_factory):
    await store.upsert_categories([Category(id=1, name="Old Crocodile")])
    mock_wc_client.get.return_value = response_factory([{"id": 1, "name": "Crocodile Series", "count": 3}])

    snapshots = await collect(repository.query_categories())

    assert [s.provenance for s in snapshots[1:]] == [Provenance.CACHE, Provenance.REMOTE]
    assert [c.name for c in snapshots[-1].data] == ["Crocodile Series"]
    assert [c.name for c in await store.list_categories()] == ["Crocodile Series"]


async def test_categories_fallback_when_cache_empty(repository, mock_wc_client):
    mock_wc_client.get.side_effect = NetworkUnreachableError("offline")

    resolved = await resolve(repository.query_categories())

    assert resolved.terminal.provenance == Provenance.FALLBACK
    assert len(resolved.terminal.data) == 10


async def test_categories_error_when_cache_not_empty(repository, store, mock_wc_client):
    await store.upsert_categories([Category(id=1, name="Crocodile Series")])
    mock_wc_client.get.side_effect = RequestTimeoutError("timed out")

    resolved = await resolve(repository.query_categories())

    assert resolved.terminal.kind == ErrorKind.TIMEOUT
    assert resolved.last_good.provenance == Provenance.CACHE


# --- Вытеснение ---

async def test_eviction_window_boundary(repository, store, clock, product_factory):
    window = repository.eviction_window_ms
    await store.upsert(product_factory(1), last_updated=clock.now - window - 1)
    await store.upsert(product_factory(2), last_updated=clock.now - window + 1)
    await store.upsert_categories([Category(id=1, name="Old")], last_updated=clock.now - window - 1)

    result = await repository.evict_stale()

    assert result.products_deleted == 1
    assert result.categories_deleted == 1
    assert await store.get(1) is None
    assert await store.get(2) is not None

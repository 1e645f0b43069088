# tests/test_api.py

import json

from httpx import AsyncClient

from storefront.core.errors import NetworkUnreachableError, RequestTimeoutError, ServerError

USER_HEADERS = {"X-User-Id": "wp-1198"}


# --- Каталог ---

async def test_products_from_remote(client: AsyncClient, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(
        [wire(1, price="18000000"), wire(2, price="14650000"), wire(3, price="24650000")],
        headers={"X-WP-Total": "3", "X-WP-TotalPages": "1"},
    )

    response = await client.get("/api/v1/products", params={"category": "handbags", "orderby": "price", "order": "asc"})

    assert response.status_code == 200
    data = response.json()
    assert data["provenance"] == "remote"
    assert data["stale"] is False
    assert [item["id"] for item in data["data"]["items"]] == [2, 1, 3]
    assert data["data"]["total_items"] == 3


async def test_products_fallback_is_marked_stale(client: AsyncClient, mock_wc_client):
    mock_wc_client.get.side_effect = RequestTimeoutError("timed out")

    response = await client.get("/api/v1/products", params={"featured": "true"})

    assert response.status_code == 200
    data = response.json()
    assert data["provenance"] == "fallback"
    assert data["stale"] is True
    assert len(data["data"]["items"]) == 2


async def test_products_error_returns_503_with_last_good(client: AsyncClient, store, mock_wc_client, product_factory):
    await store.upsert(product_factory(1))
    mock_wc_client.get.side_effect = NetworkUnreachableError("offline")

    response = await client.get("/api/v1/products")

    assert response.status_code == 503
    detail = response.json()["detail"]
    assert detail["kind"] == "network_unreachable"
    assert detail["last_good"]["provenance"] == "cache"
    assert [item["id"] for item in detail["last_good"]["data"]["items"]] == [1]


async def test_products_invalid_price_range_is_422(client: AsyncClient):
    response = await client.get("/api/v1/products", params={"min_price": "500", "max_price": "100"})
    assert response.status_code == 422


async def test_products_stream_emits_ndjson_snapshots(client: AsyncClient, store, mock_wc_client, wire, response_factory, product_factory):
    await store.upsert(product_factory(1))
    mock_wc_client.get.return_value = response_factory([wire(1), wire(2)])

    response = await client.get("/api/v1/products/stream")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/x-ndjson")
    lines = [json.loads(line) for line in response.text.splitlines() if line]
    assert [line["status"] for line in lines] == ["loading", "success", "success"]
    assert [line["provenance"] for line in lines[1:]] == ["cache", "remote"]


async def test_single_product_not_found(client: AsyncClient, mock_wc_client):
    mock_wc_client.get.side_effect = ServerError("Catalog API responded with status 404", status_code=404)

    response = await client.get("/api/v1/products/404404")

    assert response.status_code == 404


async def test_single_product_404_served_from_fallback_catalog(client: AsyncClient, mock_wc_client):
    mock_wc_client.get.side_effect = ServerError("Catalog API responded with status 404", status_code=404)

    response = await client.get("/api/v1/products/1")

    assert response.status_code == 200
    assert response.json()["provenance"] == "fallback"
    assert response.json()["data"]["id"] == 1


async def test_single_product_refreshes_cart_snapshot(client: AsyncClient, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(wire(7, name="Herve 30cm", price="21500000", regular_price="21500000"))
    await client.post("/api/v1/cart/items", json={"product_id": 7, "quantity": 1})

    mock_wc_client.get.return_value = response_factory(wire(7, name="Herve 30cm v2", price="20000000", regular_price="21500000"))
    response = await client.get("/api/v1/products/7", params={"force_refresh": "true"})

    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Herve 30cm v2"
    cart = (await client.get("/api/v1/cart")).json()
    assert cart["items"][0]["product_name"] == "Herve 30cm v2"
    assert float(cart["items"][0]["product_price"]) == 20000000


async def test_categories_endpoint(client: AsyncClient, mock_wc_client, response_factory):
    mock_wc_client.get.return_value = response_factory([{"id": 1, "name": "Crocodile Series", "count": 3}])

    response = await client.get("/api/v1/categories")

    assert response.status_code == 200
    assert response.json()["data"][0]["name"] == "Crocodile Series"


# --- Корзина ---

async def test_cart_add_merge_and_remove_by_zero(client: AsyncClient, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(wire(7))

    first = await client.post("/api/v1/cart/items", json={"product_id": 7, "quantity": 1, "variation": {"color": "Black"}})
    second = await client.post("/api/v1/cart/items", json={"product_id": 7, "quantity": 2, "variation": {"color": "Black"}})

    assert first.status_code == 201
    assert second.json()["quantity"] == 3
    line_id = second.json()["id"]

    response = await client.patch(f"/api/v1/cart/items/{line_id}", json={"quantity": 0})
    assert response.status_code == 200
    assert response.json() is None

    cart = (await client.get("/api/v1/cart")).json()
    assert cart["item_count"] == 0


async def test_cart_rejects_out_of_stock(client: AsyncClient, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(wire(8, stock_status="outofstock", stock_quantity=0))

    response = await client.post("/api/v1/cart/items", json={"product_id": 8, "quantity": 1})

    assert response.status_code == 409


async def test_cart_rejects_quantity_above_stock(client: AsyncClient, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(wire(8, stock_quantity=2))

    response = await client.post("/api/v1/cart/items", json={"product_id": 8, "quantity": 5})

    assert response.status_code == 409


async def test_cart_stock_check_counts_quantity_already_in_cart(client: AsyncClient, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(wire(8, stock_quantity=3))

    first = await client.post("/api/v1/cart/items", json={"product_id": 8, "quantity": 3, "variation": {"color": "Black"}})
    # Другая вариация того же товара делит тот же остаток
    second = await client.post("/api/v1/cart/items", json={"product_id": 8, "quantity": 1, "variation": {"color": "Gold"}})

    assert first.status_code == 201
    assert second.status_code == 409
    cart = (await client.get("/api/v1/cart")).json()
    assert cart["total_quantity"] == 3


async def test_cart_product_status(client: AsyncClient, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(wire(7))
    await client.post("/api/v1/cart/items", json={"product_id": 7, "quantity": 2, "variation": {"color": "Black"}})
    await client.post("/api/v1/cart/items", json={"product_id": 7, "quantity": 1, "variation": {"color": "Gold"}})

    in_cart = (await client.get("/api/v1/cart/products/7")).json()
    absent = (await client.get("/api/v1/cart/products/7", headers=USER_HEADERS)).json()

    assert in_cart == {"product_id": 7, "in_cart": True, "quantity": 3}
    assert absent == {"product_id": 7, "in_cart": False, "quantity": 0}


async def test_cart_lines_are_private_to_owner(client: AsyncClient, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(wire(7))
    line_id = (await client.post("/api/v1/cart/items", json={"product_id": 7}, headers=USER_HEADERS)).json()["id"]

    # Гость не может трогать чужую позицию
    assert (await client.delete(f"/api/v1/cart/items/{line_id}")).status_code == 404
    assert (await client.delete(f"/api/v1/cart/items/{line_id}", headers=USER_HEADERS)).status_code == 200


async def test_clear_cart(client: AsyncClient, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(wire(7))
    await client.post("/api/v1/cart/items", json={"product_id": 7})

    response = await client.delete("/api/v1/cart")

    assert response.status_code == 200
    assert response.json()["deleted"] == 1


# --- Избранное и перенос ---

async def test_wishlist_toggle_and_remove(client: AsyncClient, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(wire(3))

    on = await client.post("/api/v1/wishlist/toggle", json={"product_id": 3})
    assert on.json() == {"product_id": 3, "wishlisted": True}
    assert (await client.get("/api/v1/wishlist")).json()["item_count"] == 1

    assert (await client.delete("/api/v1/wishlist/items/3")).status_code == 200
    assert (await client.delete("/api/v1/wishlist/items/3")).status_code == 404


async def test_wishlist_query_and_statistics(client: AsyncClient, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(wire(3, name="Alma 25cm", price="500", regular_price="500"))
    await client.post("/api/v1/wishlist/toggle", json={"product_id": 3})
    mock_wc_client.get.return_value = response_factory(wire(4, name="Birkin 30cm", price="900", regular_price="900"))
    await client.post("/api/v1/wishlist/toggle", json={"product_id": 4})

    by_price = (await client.get("/api/v1/wishlist", params={"sort": "price_asc"})).json()
    assert [item["product_id"] for item in by_price["items"]] == [3, 4]
    assert float(by_price["total_value"]) == 1400
    assert float(by_price["average_price"]) == 700
    assert float(by_price["min_price"]) == 500
    assert float(by_price["max_price"]) == 900

    found = (await client.get("/api/v1/wishlist", params={"search": "birk"})).json()
    assert [item["product_id"] for item in found["items"]] == [4]
    assert float(found["total_value"]) == 900

    recent = (await client.get("/api/v1/wishlist", params={"recent_days": 1})).json()
    assert recent["item_count"] == 2


async def test_wishlist_invalid_price_range_is_422(client: AsyncClient):
    response = await client.get("/api/v1/wishlist", params={"min_price": "900", "max_price": "500"})
    assert response.status_code == 422


async def test_wishlist_toggle_unknown_product(client: AsyncClient, mock_wc_client):
    mock_wc_client.get.side_effect = ServerError("Catalog API responded with status 404", status_code=404)

    response = await client.post("/api/v1/wishlist/toggle", json={"product_id": 999})

    assert response.status_code == 404


async def test_account_migration(client: AsyncClient, mock_wc_client, wire, response_factory):
    mock_wc_client.get.return_value = response_factory(wire(7))
    await client.post("/api/v1/cart/items", json={"product_id": 7, "quantity": 2})
    await client.post("/api/v1/wishlist/toggle", json={"product_id": 7})

    response = await client.post("/api/v1/account/migrate", json={"user_id": "wp-1198"})

    assert response.status_code == 200
    assert response.json() == {
        "cart_lines_migrated": 1,
        "cart_lines_merged": 0,
        "wishlist_items_migrated": 1,
        "wishlist_duplicates_dropped": 0,
    }
    user_cart = (await client.get("/api/v1/cart", headers=USER_HEADERS)).json()
    assert user_cart["total_quantity"] == 2


# --- Админка ---

async def test_admin_task_list(client: AsyncClient):
    response = await client.get("/api/v1/admin/tasks")

    assert response.status_code == 200
    assert {task["task_name"] for task in response.json()} == {"evict_stale_cache", "warm_catalog", "cleanup_old_items"}


async def test_admin_run_all_tasks_keeps_warmed_cache(client: AsyncClient, store, mock_wc_client, wire, response_factory):
    def respond(endpoint, params=None):
        if endpoint == "products/categories":
            return response_factory([{"id": 1, "name": "Crocodile Series"}])
        return response_factory([wire(1), wire(2)])

    mock_wc_client.get.side_effect = respond

    response = await client.post("/api/v1/admin/tasks/run", json={"task_name": "all"})

    assert response.status_code == 202
    assert await store.count() == 2
    assert await store.count_categories() == 1


async def test_admin_clear_cache_is_not_a_registry_task(client: AsyncClient):
    response = await client.post("/api/v1/admin/tasks/run", json={"task_name": "clear_cache"})
    assert response.status_code == 422


async def test_admin_run_unknown_task_is_rejected(client: AsyncClient):
    response = await client.post("/api/v1/admin/tasks/run", json={"task_name": "drop_database"})
    assert response.status_code == 422


async def test_admin_evict_endpoint(client: AsyncClient, store, clock, repository, product_factory):
    await store.upsert(product_factory(1), last_updated=clock.now - repository.eviction_window_ms - 1)
    await store.upsert(product_factory(2))

    response = await client.post("/api/v1/admin/cache/evict")

    assert response.status_code == 200
    assert response.json() == {"products_deleted": 1, "categories_deleted": 0}


async def test_admin_clear_cache_endpoint(client: AsyncClient, store, product_factory):
    await store.upsert_many([product_factory(1), product_factory(2)])

    response = await client.delete("/api/v1/admin/cache")

    assert response.status_code == 200
    assert response.json()["products_deleted"] == 2
    assert await store.count() == 0
